import logging

from cpreactor.capability import ReactorAdapter
from cpreactor.config import MolecularWeightPolicy, ReactorSettings, SpeciesFormulation
from cpreactor.errors import (
    InvalidSpeciesCount,
    MalformedStateVector,
    NonPositiveTemperature,
    SingularEnergyBalance,
)
from cpreactor.mechanism import ConstantPropertyMechanism
from cpreactor.mixture import InitialComposition, MixtureState
from cpreactor.reactors import ReactorModel
import numpy as np
import pytest

RU = 8.314
P0 = 101325.0
T0 = 1000.0
MW = [2.0, 32.0]
CP = [14000.0, 900.0]


def _reactor(omega=None, h=(0.0, 0.0), Y=(0.5, 0.5), **overrides):
    mech = ConstantPropertyMechanism(MW, CP, list(h), omega=omega, species_names=["A", "B"])
    return ReactorModel(mech, 2, temperature=T0, pressure=P0, composition=list(Y), settings=ReactorSettings(**overrides))


def test_inert_mixture_has_zero_derivative():
    r = _reactor()
    ydot = r.eval_rhs(0.0, [T0, 0.5, 0.5])
    assert ydot.shape == (3,)
    assert np.all(ydot == 0.0)


def test_reference_species_equation_golden_values():
    omega = np.array([-1.0, 0.0625])
    r = _reactor(omega=omega)
    ydot = r.eval_rhs(0.0, [T0, 0.5, 0.5])

    # RuT/P = 8314/101325 = 0.0820528; MWtot = 1/0.265625; sum(C) = P/(RuT)
    # dY_A = RuT/P * (-2 * 0.265625 + 0.5 * 0.9375) = -0.0625 * RuT/P
    # dY_B = RuT/P * (+2 * 0.265625 + 0.5 * 0.9375) =  1.0    * RuT/P
    assert ydot[0] == 0.0  # h = 0
    assert ydot[1] == pytest.approx(-5.12830e-3, rel=1e-5)
    assert ydot[2] == pytest.approx(8.20528e-2, rel=1e-5)
    assert ydot[1:].sum() == pytest.approx(7.69245e-2, rel=1e-5)


def test_mass_conserving_formulation_keeps_sum_of_mass_fractions():
    omega = np.array([-1.0, 0.0625])  # sum(omega * MW) == 0
    r = _reactor(omega=omega, h=(1.0e6, -2.0e5), species_formulation=SpeciesFormulation.MASS_CONSERVING)
    ydot = r.eval_rhs(0.0, [T0, 0.5, 0.5])
    assert ydot[0] != 0.0
    assert abs(ydot[1:].sum()) < 1e-12


def test_energy_equation():
    omega = np.array([-1.0, 0.0625])
    h = np.array([1.0e6, -2.0e5])
    r = _reactor(omega=omega, h=h)
    ydot = r.eval_rhs(0.0, [T0, 0.5, 0.5])
    C = r.concentrations
    dTdt = np.sum(-h * np.array(MW) * omega) / np.sum(C * np.array(CP) * np.array(MW))
    assert ydot[0] == pytest.approx(dTdt, rel=1e-12)
    assert r.temperature == T0
    assert np.allclose(r.production_rates, omega)


def test_callable_rates_see_current_concentrations():
    seen = {}

    def omega(C, T):
        seen["C"] = np.array(C)
        seen["T"] = T
        return np.zeros(2)

    r = _reactor(omega=omega)
    r.eval_rhs(0.0, [1200.0, 1.0, 0.0])
    assert seen["T"] == 1200.0
    assert seen["C"][1] == 0.0
    assert seen["C"][0] == pytest.approx(P0 / (RU * 1200.0))


def test_failed_evaluation_keeps_previous_state():
    r = _reactor(omega=[-1.0, 0.0625])
    r.eval_rhs(0.0, [1100.0, 0.6, 0.4])
    before = r.concentrations
    with pytest.raises(NonPositiveTemperature):
        r.eval_rhs(0.0, [-5.0, 0.5, 0.5])
    assert r.temperature == 1100.0
    assert np.allclose(r.concentrations, before)
    assert np.allclose(r.mass_fractions, [0.6, 0.4])


def test_empty_mixture_raises_singular_energy_balance():
    r = _reactor()
    with pytest.raises(SingularEnergyBalance):
        r.eval_rhs(0.0, [T0, 0.0, 0.0])
    assert np.allclose(r.mass_fractions, [0.5, 0.5])


@pytest.mark.parametrize("vector", [[T0, 0.5], [T0, 0.5, 0.5, 0.0], [[T0, 0.5, 0.5]]])
def test_wrong_length_state_is_rejected(vector):
    r = _reactor()
    with pytest.raises(MalformedStateVector):
        r.eval_rhs(0.0, vector)


def test_non_finite_mass_fraction_is_rejected():
    r = _reactor()
    with pytest.raises(MalformedStateVector):
        r.eval_rhs(0.0, [T0, float("nan"), 0.5])


@pytest.mark.parametrize("n", [0, -1])
def test_non_positive_species_count(n):
    mech = ConstantPropertyMechanism(MW, CP, [0.0, 0.0])
    with pytest.raises(InvalidSpeciesCount):
        ReactorModel(mech, n)


def test_species_count_must_match_mechanism():
    mech = ConstantPropertyMechanism(MW, CP, [0.0, 0.0])
    with pytest.raises(InvalidSpeciesCount):
        ReactorModel(mech, 3)


def test_non_positive_molecular_weight():
    mech = ConstantPropertyMechanism([2.0, 0.0], CP, [0.0, 0.0])
    with pytest.raises(ValueError):
        ReactorModel(mech, 2)


def test_default_composition_is_uniform():
    mech = ConstantPropertyMechanism([2.0, 32.0, 28.0, 18.0], [1.0] * 4, [0.0] * 4)
    r = ReactorModel(mech, 4)
    assert np.allclose(r.mass_fractions, 0.25)
    assert r.temperature == 300.0
    assert r.pressure == 101325.0


def test_named_initial_composition():
    mech = ConstantPropertyMechanism(MW, CP, [0.0, 0.0], species_names=["H2", "O2"])
    r = ReactorModel(mech, 2, composition=InitialComposition({"O2": 1.0}))
    assert np.allclose(r.mass_fractions, [0.0, 1.0])
    assert r.mixture_molecular_weight == pytest.approx(32.0)


def test_molecular_weight_policies():
    recompute = _reactor()
    frozen = _reactor(molecular_weight_policy=MolecularWeightPolicy.FROZEN)
    for r in (recompute, frozen):
        r.eval_rhs(0.0, [T0, 1.0, 0.0])
    assert recompute.mixture_molecular_weight == pytest.approx(2.0)
    assert frozen.mixture_molecular_weight == pytest.approx(1.0 / 0.265625)


def test_explicit_temperature_wins_in_absorb_state():
    r = _reactor()
    state = r.absorb_state([T0, 0.5, 0.5], temperature=1500.0)
    assert state.temperature == 1500.0
    assert r.temperature == 1500.0


def test_renormalize_option():
    r = _reactor(renormalize=True)
    r.absorb_state([T0, 1.0, 1.0])
    assert np.allclose(r.mass_fractions, [0.5, 0.5])
    plain = _reactor()
    plain.absorb_state([T0, 1.0, 1.0])
    assert np.allclose(plain.mass_fractions, [1.0, 1.0])


def test_evaluate_snapshot_does_not_touch_reactor():
    r = _reactor(omega=[-1.0, 0.0625])
    snapshot = MixtureState.build(1400.0, P0, [0.9, 0.1], MW, RU)
    result = r.evaluate_snapshot(snapshot)
    assert result.state is snapshot
    assert result.derivative().shape == (3,)
    assert r.temperature == T0
    assert np.allclose(r.mass_fractions, [0.5, 0.5])


def test_accessors_return_copies():
    r = _reactor(omega=[-1.0, 0.0625])
    r.production_rates[0] = 99.0
    r.molecular_weights[0] = 99.0
    assert r.production_rates[0] == -1.0
    assert r.molecular_weights[0] == 2.0
    assert np.allclose(r.molar_specific_heats, np.array(CP) * np.array(MW))
    assert np.allclose(r.specific_heats, CP)
    assert np.allclose(r.enthalpies, 0.0)


def test_species_frame_and_summary():
    r = _reactor()
    frame = r.species_frame()
    assert list(frame.index) == ["A", "B"]
    assert list(frame.columns) == ["MW", "Y", "C", "cp", "cp_bar", "h", "omega"]
    summary = r.summary()
    assert summary["n_equations"] == 3
    assert summary["sum_Y"] == pytest.approx(1.0)


def test_constructor_rejects_non_positive_temperature():
    mech = ConstantPropertyMechanism(MW, CP, [0.0, 0.0])
    with pytest.raises(NonPositiveTemperature):
        ReactorModel(mech, 2, temperature=0.0, composition=[0.5, 0.5])


def test_frozen_policy_with_zero_total_concentration():
    # sum(Y/MW) = 0.0625/2 - 1/32 = 0, so sum(C) vanishes while sum(C cp_bar) does not
    r = _reactor(molecular_weight_policy=MolecularWeightPolicy.FROZEN)
    with pytest.raises(SingularEnergyBalance):
        r.eval_rhs(0.0, [T0, 0.0625, -1.0])
    assert np.allclose(r.mass_fractions, [0.5, 0.5])


def test_construction_identities():
    r = _reactor()
    MWtot = 1.0 / (0.5 / 2.0 + 0.5 / 32.0)
    assert r.mixture_molecular_weight == pytest.approx(MWtot)
    expected = P0 * MWtot * np.array([0.5, 0.5]) / (RU * T0 * np.array(MW))
    assert np.allclose(r.concentrations, expected)
    assert r.concentrations.sum() == pytest.approx(P0 / (RU * T0))


def test_all_zero_initial_composition_is_singular():
    r = _reactor(Y=(0.0, 0.0))
    adapter = ReactorAdapter(r)
    y0 = np.zeros(adapter.equation_count())
    adapter.fill_initial_state(y0)
    assert np.allclose(y0, [T0, 0.0, 0.0])
    with pytest.raises(SingularEnergyBalance):
        adapter.evaluate(0.0, y0, np.zeros(3))


def test_composition_drift_warns_once(caplog):
    r = _reactor()
    caplog.set_level(logging.DEBUG, logger="cpreactor.reactors")
    r.absorb_state([T0, 0.7, 0.5])
    r.absorb_state([T0, 0.8, 0.5])
    warnings = [rec for rec in caplog.records if rec.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "renormalize" in warnings[0].getMessage()
    assert any(rec.levelno == logging.DEBUG for rec in caplog.records)
