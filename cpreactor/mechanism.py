"""Mechanism providers consumed by the reactor core.

A mechanism supplies four things: constant species molecular weights,
temperature-dependent mass-specific cp and h, and net molar production rates
for a given concentration vector. The reactor never looks inside; anything
satisfying :class:`Mechanism` can be plugged in, including generated code.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence, Union

import numpy as np

from .kinetics import Arrhenius, Network, Reaction
from .thermo import NASA7Piece, NASA7Species, species_cp_mass, species_enthalpy_mass

RateFunction = Callable[[np.ndarray, float], Sequence[float]]


class Mechanism(Protocol):
    species_names: Sequence[str]

    def molecular_weights(self) -> np.ndarray:
        """Species molecular weights, constant for the run."""

    def specific_heat(self, T: float) -> np.ndarray:
        """Mass-specific cp of every species at T."""

    def enthalpy(self, T: float) -> np.ndarray:
        """Mass-specific enthalpy of every species at T."""

    def production_rates(self, concentrations: np.ndarray, T: float) -> np.ndarray:
        """Net molar production rate of every species."""


class GasMechanism:
    """NASA-7 thermo plus an Arrhenius reaction network."""

    def __init__(self, species: Sequence[NASA7Species], network: Network, gas_constant: float = 8.314) -> None:
        names = [sp.name for sp in species]
        if names != list(network.species):
            raise ValueError(
                f"Thermo species {names} do not match network species {list(network.species)}"
            )
        self.species = list(species)
        self.network = network
        self.gas_constant = gas_constant
        self.species_names = names
        self._mw = np.array([sp.molecular_weight for sp in self.species], dtype=float)

    def molecular_weights(self) -> np.ndarray:
        return self._mw.copy()

    def specific_heat(self, T: float) -> np.ndarray:
        return species_cp_mass(self.species, T, self.gas_constant)

    def enthalpy(self, T: float) -> np.ndarray:
        return species_enthalpy_mass(self.species, T, self.gas_constant)

    def production_rates(self, concentrations: np.ndarray, T: float) -> np.ndarray:
        return self.network.production_rates(concentrations, T)


class ConstantPropertyMechanism:
    """Temperature-independent cp and h with fixed or callable production rates.

    ``omega`` may be a sequence (returned unchanged on every call), a callable
    ``(C, T) -> omega``, or ``None`` for a chemically inert mixture.
    """

    def __init__(
        self,
        molecular_weights: Sequence[float],
        cp: Sequence[float],
        h: Sequence[float],
        omega: Union[Sequence[float], RateFunction, None] = None,
        species_names: Optional[Sequence[str]] = None,
    ) -> None:
        self._mw = np.asarray(molecular_weights, dtype=float)
        self._cp = np.asarray(cp, dtype=float)
        self._h = np.asarray(h, dtype=float)
        n = len(self._mw)
        if len(self._cp) != n or len(self._h) != n:
            raise ValueError("molecular_weights, cp and h must have equal lengths")
        if omega is None:
            omega = np.zeros(n, dtype=float)
        if not callable(omega):
            omega = np.asarray(omega, dtype=float)
            if len(omega) != n:
                raise ValueError("omega must have one entry per species")
        self._omega = omega
        self.species_names: List[str] = (
            list(species_names) if species_names is not None else [f"S{i}" for i in range(n)]
        )

    def molecular_weights(self) -> np.ndarray:
        return self._mw.copy()

    def specific_heat(self, T: float) -> np.ndarray:
        return self._cp.copy()

    def enthalpy(self, T: float) -> np.ndarray:
        return self._h.copy()

    def production_rates(self, concentrations: np.ndarray, T: float) -> np.ndarray:
        if callable(self._omega):
            return np.asarray(self._omega(concentrations, T), dtype=float)
        return self._omega.copy()


# Coefficients: GRI-Mech 3.0 thermo data, [low (200-1000 K), high (1000-3500 K)]
_H2 = NASA7Species(
    name="H2",
    molecular_weight=2.016,
    low=NASA7Piece(2.34433112, 0.00798052075, -1.9478151e-05, 2.01572094e-08, -7.37611761e-12, -917.935173, 0.683010238),
    high=NASA7Piece(3.3372792, -4.94024731e-05, 4.99456778e-07, -1.79566394e-10, 2.00255376e-14, -950.158922, -3.20502331),
)
_O2 = NASA7Species(
    name="O2",
    molecular_weight=31.998,
    low=NASA7Piece(3.78245636, -0.00299673416, 9.84730201e-06, -9.68129509e-09, 3.24372837e-12, -1063.94356, 3.65767573),
    high=NASA7Piece(3.28253784, 0.00148308754, -7.57966669e-07, 2.09470555e-10, -2.16717794e-14, -1088.45772, 5.45323129),
)
_H2O = NASA7Species(
    name="H2O",
    molecular_weight=18.015,
    low=NASA7Piece(4.19864056, -0.0020364341, 6.52040211e-06, -5.48797062e-09, 1.77197817e-12, -30293.7267, -0.849032208),
    high=NASA7Piece(3.03399249, 0.00217691804, -1.64072518e-07, -9.7041987e-11, 1.68200992e-14, -30004.2971, 4.9667701),
)
_N2 = NASA7Species(
    name="N2",
    molecular_weight=28.014,
    low=NASA7Piece(3.298677, 0.0014082404, -3.963222e-06, 5.641515e-09, -2.444854e-12, -1020.8999, 3.950372),
    high=NASA7Piece(2.92664, 0.0014879768, -5.68476e-07, 1.0097038e-10, -6.753351e-15, -922.7977, 5.980528),
)


def hydrogen_air_mechanism(gas_constant: float = 8.314) -> GasMechanism:
    """Single-step global 2 H2 + O2 -> 2 H2O with inert N2.

    Rate is first order in H2 and O2 on a mol/m^3 basis; good enough to drive
    a thermal runaway for demonstrations and tests, not for ignition studies.
    """
    species = [_H2, _O2, _H2O, _N2]
    reaction = Reaction(
        forward=Arrhenius(A=1.0e9, Ea=1.2e5, R=gas_constant),
        stoich={"H2": -2.0, "O2": -1.0, "H2O": 2.0},
        order={"H2": 1.0, "O2": 1.0},
    )
    network = Network(species=[sp.name for sp in species], reactions=[reaction])
    return GasMechanism(species, network, gas_constant=gas_constant)
