"""NASA 7-coefficient polynomials for ideal-gas species thermo.

Per species, two temperature ranges split at ``t_mid``:

    cp/R   = a1 + a2 T + a3 T^2 + a4 T^3 + a5 T^4
    h/(RT) = a1 + a2 T/2 + a3 T^2/3 + a4 T^3/4 + a5 T^4/5 + a6/T

Molecular weights are in kg/kmol, so mass-specific values come out in J/kg-K
and J/kg when R is in J/mol-K.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .mixture import check_temperature


@dataclass(frozen=True)
class NASA7Piece:
    a1: float
    a2: float
    a3: float
    a4: float
    a5: float
    a6: float
    a7: float

    def cp_r(self, T: float) -> float:
        return self.a1 + self.a2 * T + self.a3 * T**2 + self.a4 * T**3 + self.a5 * T**4

    def h_rt(self, T: float) -> float:
        return (
            self.a1
            + self.a2 * T / 2.0
            + self.a3 * T**2 / 3.0
            + self.a4 * T**3 / 4.0
            + self.a5 * T**4 / 5.0
            + self.a6 / T
        )


@dataclass(frozen=True)
class NASA7Species:
    name: str
    molecular_weight: float  # kg/kmol
    low: NASA7Piece
    high: NASA7Piece
    t_mid: float = 1000.0

    def piece(self, T: float) -> NASA7Piece:
        return self.low if T <= self.t_mid else self.high


def species_cp_mass(species: Sequence[NASA7Species], T: float, gas_constant: float) -> np.ndarray:
    """Mass-specific cp [J/kg-K] of every species at T."""
    T = check_temperature(T)
    cp_r: List[float] = [sp.piece(T).cp_r(T) for sp in species]
    mw = np.array([sp.molecular_weight for sp in species], dtype=float)
    return np.asarray(cp_r, dtype=float) * gas_constant * 1.0e3 / mw


def species_enthalpy_mass(species: Sequence[NASA7Species], T: float, gas_constant: float) -> np.ndarray:
    """Mass-specific enthalpy [J/kg] of every species at T."""
    T = check_temperature(T)
    h_rt: List[float] = [sp.piece(T).h_rt(T) for sp in species]
    mw = np.array([sp.molecular_weight for sp in species], dtype=float)
    return np.asarray(h_rt, dtype=float) * gas_constant * T * 1.0e3 / mw
