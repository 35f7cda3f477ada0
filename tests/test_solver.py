from cpreactor.capability import ReactorAdapter
from cpreactor.config import ReactorSettings, SpeciesFormulation
from cpreactor.mechanism import ConstantPropertyMechanism, hydrogen_air_mechanism
from cpreactor.mixture import InitialComposition
from cpreactor.reactors import ReactorModel
from cpreactor.solver import geometric_output_times, integrate_capability, integrate_ode
import numpy as np
import pytest

STOICH_H2_AIR = InitialComposition({"H2": 0.0285, "O2": 0.2264, "N2": 0.7451})


def test_geometric_output_times():
    t = geometric_output_times(1e-6, 10.0, 4)
    assert np.allclose(t, [1e-6, 1e-5, 1e-4, 1e-3])
    with pytest.raises(ValueError):
        geometric_output_times(0.0, 10.0, 4)
    with pytest.raises(ValueError):
        geometric_output_times(1e-6, 1.0, 4)


def test_integrate_ode_exponential_decay():
    res = integrate_ode(lambda t, y: [-y[0]], y0=[1.0], t_span=(0.0, 1.0), t_eval=[0.0, 1.0])
    assert res.success
    assert res.y[0][-1] == pytest.approx(np.exp(-1.0), rel=1e-4)
    assert res.stats["nfev"] > 0


def test_inert_reactor_on_default_schedule():
    mech = ConstantPropertyMechanism([2.0, 32.0], [14000.0, 900.0], [0.0, 0.0])
    r = ReactorModel(mech, 2, temperature=500.0, composition=[0.3, 0.7])
    res = integrate_capability(ReactorAdapter(r))
    assert res.success
    assert len(res.t) == r.settings.output_count
    assert np.allclose(res.y[0], 500.0)
    assert np.allclose(res.y[1], 0.3)


def test_hydrogen_air_ignites_and_conserves_mass():
    settings = ReactorSettings(species_formulation=SpeciesFormulation.MASS_CONSERVING)
    mech = hydrogen_air_mechanism(settings.gas_constant)
    r = ReactorModel(mech, 4, temperature=1000.0, pressure=101325.0, composition=STOICH_H2_AIR, settings=settings)
    res = integrate_capability(ReactorAdapter(r), t_eval=np.linspace(0.0, 2e-3, 21), settings=settings)
    assert res.success
    df = res.to_frame(r.species_names)
    assert list(df.columns) == ["t", "T", "H2", "O2", "H2O", "N2"]
    assert df["T"].iloc[-1] > 1500.0
    assert df["H2"].iloc[-1] < 0.5 * 0.0285
    assert df["H2O"].iloc[-1] > 0.0
    assert np.allclose(df["N2"], 0.7451)
    sums = df[["H2", "O2", "H2O", "N2"]].sum(axis=1)
    assert np.max(np.abs(sums - 1.0)) < 1e-3


def test_to_frame_checks_species_count():
    res = integrate_ode(lambda t, y: [0.0, 0.0], y0=[300.0, 1.0], t_span=(0.0, 1.0), t_eval=[0.0, 1.0])
    with pytest.raises(ValueError):
        res.to_frame(["A", "B"])
    assert list(res.stats_frame().columns[:2]) == ["status", "message"]
