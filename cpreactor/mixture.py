"""Immutable snapshots of the reactor mixture.

Every state transition builds a new :class:`MixtureState`; nothing here is
mutated after construction, so a snapshot handed to a trial evaluation cannot
be changed by a later one.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import NonPositiveTemperature

logger = logging.getLogger(__name__)

SpeciesKey = Union[int, str]


def _frozen(values: Sequence[float]) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


def check_temperature(T: float) -> float:
    T = float(T)
    if not math.isfinite(T) or T <= 0.0:
        raise NonPositiveTemperature(f"Temperature must be positive and finite, got {T}")
    return T


def mixture_molecular_weight(mass_fractions: np.ndarray, molecular_weights: np.ndarray) -> float:
    """Mass-weighted harmonic mean 1 / sum(Y_i / MW_i).

    An empty mixture (all Y_i == 0) has no defined molecular weight; 0.0 is
    returned so that concentrations and the heat-capacity denominator vanish.
    """
    inverse = float(np.sum(mass_fractions / molecular_weights))
    if inverse == 0.0:
        return 0.0
    return 1.0 / inverse


def concentrations(
    pressure: float,
    temperature: float,
    mass_fractions: np.ndarray,
    molecular_weights: np.ndarray,
    mixture_mw: float,
    gas_constant: float,
) -> np.ndarray:
    """Ideal-gas molar concentrations C_i = P MWtot Y_i / (Ru T MW_i)."""
    return pressure * mixture_mw * mass_fractions / (gas_constant * temperature * molecular_weights)


@dataclass(frozen=True)
class InitialComposition:
    """Initial mass fractions keyed by species index or species name.

    Species not listed start at zero. The fractions must be non-negative and
    sum to one within ``tolerance``.
    """

    fractions: Mapping[SpeciesKey, float]
    tolerance: float = 1.0e-6

    @classmethod
    def parse(cls, text: str, tolerance: float = 1.0e-6) -> "InitialComposition":
        """Parse ``"H2=0.03,O2=0.22,N2=0.75"``; integer keys are species indices."""
        fractions: Dict[SpeciesKey, float] = {}
        for item in text.split(","):
            item = item.strip()
            if not item:
                continue
            if "=" not in item:
                raise ValueError(f"Expected name=value, got {item!r}")
            key, value = (part.strip() for part in item.split("=", 1))
            fractions[int(key) if key.isdigit() else key] = float(value)
        return cls(fractions=fractions, tolerance=tolerance)

    def resolve(self, species_names: Sequence[str]) -> np.ndarray:
        n = len(species_names)
        index = {name: i for i, name in enumerate(species_names)}
        Y = np.zeros(n, dtype=float)
        for key, value in self.fractions.items():
            if isinstance(key, str):
                if key not in index:
                    raise ValueError(f"Unknown species {key!r}; expected one of {list(species_names)}")
                i = index[key]
            else:
                i = int(key)
                if not 0 <= i < n:
                    raise ValueError(f"Species index {i} out of range for {n} species")
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"Mass fraction for {key!r} must be non-negative, got {value}")
            Y[i] = value
        total = float(Y.sum())
        if abs(total - 1.0) > self.tolerance:
            raise ValueError(f"Mass fractions must sum to 1 (got {total:.8g})")
        return Y


@dataclass(frozen=True, eq=False)
class ThermoState:
    """Species thermo at one temperature, mass- and molar-specific."""

    temperature: float
    cp: np.ndarray
    h: np.ndarray
    cp_bar: np.ndarray
    h_bar: np.ndarray

    @classmethod
    def from_mass_specific(
        cls, temperature: float, cp: Sequence[float], h: Sequence[float], molecular_weights: np.ndarray
    ) -> "ThermoState":
        cp_arr = np.asarray(cp, dtype=float)
        h_arr = np.asarray(h, dtype=float)
        return cls(
            temperature=temperature,
            cp=_frozen(cp_arr),
            h=_frozen(h_arr),
            cp_bar=_frozen(cp_arr * molecular_weights),
            h_bar=_frozen(h_arr * molecular_weights),
        )


@dataclass(frozen=True, eq=False)
class MixtureState:
    """Temperature, pressure, composition and the quantities derived from them.

    Parameters
    ----------
    temperature : float
        Mixture temperature [K].
    pressure : float
        Reactor pressure [Pa]; constant for the run.
    mass_fractions : np.ndarray
        Y_i, length n.
    molecular_weights : np.ndarray
        MW_i, length n, from the mechanism.
    mixture_molecular_weight : float
        MWtot used for the concentrations. Equal to 1/sum(Y/MW) unless the
        reactor runs with a frozen molecular weight.
    concentrations : np.ndarray
        C_i = P MWtot Y_i / (Ru T MW_i).
    gas_constant : float
        Ru used for the concentrations.
    """

    temperature: float
    pressure: float
    mass_fractions: np.ndarray
    molecular_weights: np.ndarray
    mixture_molecular_weight: float
    concentrations: np.ndarray
    gas_constant: float

    @classmethod
    def build(
        cls,
        temperature: float,
        pressure: float,
        mass_fractions: Sequence[float],
        molecular_weights: Sequence[float],
        gas_constant: float,
        mixture_mw: Optional[float] = None,
    ) -> "MixtureState":
        T = check_temperature(temperature)
        Y = np.asarray(mass_fractions, dtype=float)
        mw = np.asarray(molecular_weights, dtype=float)
        if mixture_mw is None:
            mixture_mw = mixture_molecular_weight(Y, mw)
        C = concentrations(pressure, T, Y, mw, mixture_mw, gas_constant)
        return cls(
            temperature=T,
            pressure=float(pressure),
            mass_fractions=_frozen(Y),
            molecular_weights=_frozen(mw),
            mixture_molecular_weight=float(mixture_mw),
            concentrations=_frozen(C),
            gas_constant=float(gas_constant),
        )

    @property
    def species_count(self) -> int:
        return len(self.mass_fractions)

    @property
    def total_concentration(self) -> float:
        return float(np.sum(self.concentrations))

    def as_vector(self) -> np.ndarray:
        """Integrator layout [T, Y_1..Y_n]."""
        return np.concatenate([[self.temperature], self.mass_fractions])
