"""Ideal-gas, constant-pressure, adiabatic 0-D reactor.

State vector layout is ``[T, Y_1..Y_n]`` and the derivative layout is
``[dT/dt, dY_1/dt..dY_n/dt]``; the equation count is always ``n + 1``.

Energy:

    dT/dt = sum_i(-h_bar_i * omega_i) / sum_i(C_i * cp_bar_i)

Species (reference form):

    dY_i/dt = omega_i MW_i Ru T / (P MWtot) - Y_i (sum(omega)/sum(C) + (dT/dt)/T)

Evaluation is split into a pure transition (:meth:`ReactorModel.evaluate_snapshot`)
and a commit step, so a failed trial evaluation leaves the last good state
readable through the accessors.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import MolecularWeightPolicy, ReactorSettings, SpeciesFormulation, settings as default_settings
from .errors import InvalidSpeciesCount, MalformedStateVector, SingularEnergyBalance
from .mechanism import Mechanism
from .mixture import InitialComposition, MixtureState, ThermoState, check_temperature

logger = logging.getLogger(__name__)

Composition = Union[InitialComposition, Sequence[float], None]


@dataclass(frozen=True, eq=False)
class RhsEvaluation:
    """Everything one RHS evaluation produced, without side effects."""

    state: MixtureState
    thermo: ThermoState
    production_rates: np.ndarray
    dTdt: float
    dYdt: np.ndarray

    def derivative(self) -> np.ndarray:
        return np.concatenate([[self.dTdt], self.dYdt])


class ReactorModel:
    """Constant-pressure adiabatic reactor driven by an external time stepper.

    Parameters
    ----------
    mechanism : Mechanism
        Source of molecular weights, species thermo and production rates.
    n_species : int
        Number of species; must be positive and match the mechanism.
    temperature : float
        Initial temperature [K].
    pressure : float
        Reactor pressure [Pa], fixed for the lifetime of the object.
    composition : InitialComposition, sequence of float or None
        Initial mass fractions. A mapping-based ``InitialComposition`` is
        validated to sum to one; a raw sequence is only checked for length and
        sign. ``None`` falls back to a uniform composition.
    settings : ReactorSettings, optional
        Gas constant, tolerances and policy switches.
    """

    def __init__(
        self,
        mechanism: Mechanism,
        n_species: int,
        temperature: float = 300.0,
        pressure: float = 101325.0,
        composition: Composition = None,
        settings: Optional[ReactorSettings] = None,
    ) -> None:
        if n_species <= 0:
            raise InvalidSpeciesCount(f"Species count must be positive, got {n_species}")
        self.mechanism = mechanism
        self.settings = settings or default_settings
        self._n = int(n_species)

        mw = np.asarray(mechanism.molecular_weights(), dtype=float)
        if mw.shape != (self._n,):
            raise InvalidSpeciesCount(
                f"Mechanism provides {mw.size} molecular weights for {self._n} species"
            )
        if np.any(mw <= 0.0):
            raise ValueError("Molecular weights must be positive")
        self._mw = mw
        self._pressure = float(pressure)
        self._drift_reported = False

        Y0 = self._initial_mass_fractions(composition)
        self._state = MixtureState.build(
            temperature, self._pressure, Y0, self._mw, self.settings.gas_constant
        )
        self._initial = self._state
        self._frozen_mixture_mw = self._state.mixture_molecular_weight

        self._thermo = self.refresh_thermo(self._state.temperature)
        self._omega = self.refresh_kinetics(self._state.concentrations, self._state.temperature)

        logger.info(
            "Reactor created: %d species, T=%.4g K, P=%.6g Pa, MWtot=%.6g, policy=%s, formulation=%s",
            self._n,
            self._state.temperature,
            self._pressure,
            self._state.mixture_molecular_weight,
            self.settings.molecular_weight_policy.value,
            self.settings.species_formulation.value,
        )

    @classmethod
    def create(
        cls,
        mechanism: Mechanism,
        n_species: int,
        temperature: float = 300.0,
        pressure: float = 101325.0,
        composition: Composition = None,
        settings: Optional[ReactorSettings] = None,
    ) -> "ReactorModel":
        return cls(mechanism, n_species, temperature, pressure, composition, settings)

    def _initial_mass_fractions(self, composition: Composition) -> np.ndarray:
        if composition is None:
            logger.warning(
                "No initial composition supplied; using uniform mass fractions 1/%d", self._n
            )
            return np.full(self._n, 1.0 / self._n)
        if isinstance(composition, InitialComposition):
            return composition.resolve(self.species_names)
        Y = np.asarray(composition, dtype=float)
        if Y.shape != (self._n,):
            raise ValueError(f"Expected {self._n} mass fractions, got {Y.size}")
        if not np.all(np.isfinite(Y)) or np.any(Y < 0.0):
            raise ValueError("Mass fractions must be finite and non-negative")
        return Y

    # ------------------------------------------------------------------
    # Property refreshes
    # ------------------------------------------------------------------

    def _thermo_at(self, T: float) -> ThermoState:
        T = check_temperature(T)
        cp = np.asarray(self.mechanism.specific_heat(T), dtype=float)
        h = np.asarray(self.mechanism.enthalpy(T), dtype=float)
        if cp.shape != (self._n,) or h.shape != (self._n,):
            raise ValueError("Mechanism thermo returned the wrong number of species")
        return ThermoState.from_mass_specific(T, cp, h, self._mw)

    def _omega_at(self, C: np.ndarray, T: float) -> np.ndarray:
        omega = np.asarray(self.mechanism.production_rates(C, T), dtype=float)
        if omega.shape != (self._n,):
            raise ValueError("Mechanism production rates returned the wrong number of species")
        return omega

    def refresh_thermo(self, T: float) -> ThermoState:
        """Species cp, h at ``T`` and their molar forms cp_bar = cp MW, h_bar = h MW."""
        self._thermo = self._thermo_at(T)
        return self._thermo

    def refresh_kinetics(self, C: Sequence[float], T: float) -> np.ndarray:
        """Net molar production rates omega(C, T) from the mechanism."""
        self._omega = self._omega_at(np.asarray(C, dtype=float), T)
        return self._omega.copy()

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _check_length(self, buffer: Sequence[float], name: str) -> None:
        n_eq = self.equation_count()
        if np.ndim(buffer) != 1 or len(buffer) != n_eq:
            raise MalformedStateVector(
                f"{name} must have length {n_eq} ([T, Y_1..Y_{self._n}]), got shape {np.shape(buffer)}"
            )

    def _absorb(self, state_vector: Sequence[float], temperature: Optional[float]) -> MixtureState:
        self._check_length(state_vector, "State vector")
        y = np.asarray(state_vector, dtype=float)
        T = check_temperature(y[0] if temperature is None else temperature)
        Y = y[1:].copy()
        if not np.all(np.isfinite(Y)):
            raise MalformedStateVector("State vector contains non-finite mass fractions")

        total = float(Y.sum())
        if self.settings.renormalize and total > 0.0:
            Y /= total
        elif abs(total - 1.0) > self.settings.composition_tolerance:
            if not self._drift_reported:
                logger.warning(
                    "Mass fractions sum to %.10g at T=%.6g K (tolerance %g); enable renormalize to rescale",
                    total, T, self.settings.composition_tolerance,
                )
                self._drift_reported = True
            else:
                logger.debug("Mass fractions sum to %.10g at T=%.6g K", total, T)

        mixture_mw = None
        if self.settings.molecular_weight_policy is MolecularWeightPolicy.FROZEN:
            mixture_mw = self._frozen_mixture_mw
        return MixtureState.build(
            T, self._pressure, Y, self._mw, self.settings.gas_constant, mixture_mw=mixture_mw
        )

    def absorb_state(self, state_vector: Sequence[float], temperature: Optional[float] = None) -> MixtureState:
        """Overwrite T and Y from ``[T, Y_1..Y_n]`` and recompute concentrations.

        An explicit ``temperature`` takes precedence over ``state_vector[0]``.
        """
        self._state = self._absorb(state_vector, temperature)
        return self._state

    def evaluate_snapshot(self, state: MixtureState) -> RhsEvaluation:
        """Pure RHS evaluation of a mixture snapshot; the reactor is not modified."""
        T = state.temperature
        P = state.pressure
        Ru = state.gas_constant
        MWtot = state.mixture_molecular_weight
        Y = state.mass_fractions
        C = state.concentrations

        thermo = self._thermo_at(T)
        omega = self._omega_at(C, T)

        # Energy equation; C_i = Y_i P MWtot / (Ru T MW_i)
        numerator = float(np.sum(-thermo.h_bar * omega))
        denominator = float(np.sum(C * thermo.cp_bar))
        if not math.isfinite(denominator) or abs(denominator) <= self.settings.denominator_epsilon:
            raise SingularEnergyBalance(
                f"Mixture heat-capacity denominator is {denominator!r} at T={T} K"
            )
        dTdt = numerator / denominator

        # Species equations
        production = omega * (self._mw * Ru * T) / (P * MWtot)
        if self.settings.species_formulation is SpeciesFormulation.REFERENCE:
            omega_sum = float(np.sum(omega))
            concentration_sum = float(np.sum(C))
            if not math.isfinite(concentration_sum) or abs(concentration_sum) <= self.settings.denominator_epsilon:
                raise SingularEnergyBalance(
                    f"Total concentration is {concentration_sum!r} at T={T} K"
                )
            dYdt = production - Y * (omega_sum / concentration_sum + dTdt / T)
        else:
            dYdt = production

        if not math.isfinite(dTdt) or not np.all(np.isfinite(dYdt)):
            raise SingularEnergyBalance(f"Non-finite derivative at T={T} K")

        return RhsEvaluation(
            state=state,
            thermo=thermo,
            production_rates=omega,
            dTdt=dTdt,
            dYdt=dYdt,
        )

    def eval_rhs(self, t: float, state_vector: Sequence[float]) -> np.ndarray:
        """Return ``[dT/dt, dY_1/dt..dY_n/dt]`` for ``state_vector``.

        ``t`` is unused; the system is autonomous. On success the absorbed state,
        thermo and production rates become the reactor's current values. On any
        failure they are left untouched.
        """
        evaluation = self.evaluate_snapshot(self._absorb(state_vector, None))
        self._state = evaluation.state
        self._thermo = evaluation.thermo
        self._omega = evaluation.production_rates
        return evaluation.derivative()

    # ------------------------------------------------------------------
    # Integration capability
    # ------------------------------------------------------------------

    def equation_count(self) -> int:
        return self._n + 1

    def fill_initial_state(self, buffer) -> None:
        """Write the construction-time ``[T0, Y0_1..Y0_n]`` into ``buffer``."""
        self._check_length(buffer, "Initial-state buffer")
        buffer[:] = self._initial.as_vector()

    def evaluate(self, t: float, state, derivative) -> None:
        self._check_length(state, "State vector")
        self._check_length(derivative, "Derivative buffer")
        derivative[:] = self.eval_rhs(t, state)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def species_names(self) -> List[str]:
        names = getattr(self.mechanism, "species_names", None)
        if names is not None and len(names) == self._n:
            return list(names)
        return [f"S{i}" for i in range(self._n)]

    @property
    def state(self) -> MixtureState:
        return self._state

    @property
    def initial_state(self) -> MixtureState:
        return self._initial

    @property
    def temperature(self) -> float:
        return self._state.temperature

    @property
    def pressure(self) -> float:
        return self._pressure

    @property
    def species_count(self) -> int:
        return self._n

    @property
    def molecular_weights(self) -> np.ndarray:
        return self._mw.copy()

    @property
    def mixture_molecular_weight(self) -> float:
        return self._state.mixture_molecular_weight

    @property
    def mass_fractions(self) -> np.ndarray:
        return np.array(self._state.mass_fractions)

    @property
    def concentrations(self) -> np.ndarray:
        return np.array(self._state.concentrations)

    @property
    def specific_heats(self) -> np.ndarray:
        return np.array(self._thermo.cp)

    @property
    def molar_specific_heats(self) -> np.ndarray:
        return np.array(self._thermo.cp_bar)

    @property
    def enthalpies(self) -> np.ndarray:
        return np.array(self._thermo.h)

    @property
    def production_rates(self) -> np.ndarray:
        return self._omega.copy()

    def species_frame(self) -> pd.DataFrame:
        """Per-species view of the last committed state."""
        return pd.DataFrame(
            {
                "MW": self._mw,
                "Y": self._state.mass_fractions,
                "C": self._state.concentrations,
                "cp": self._thermo.cp,
                "cp_bar": self._thermo.cp_bar,
                "h": self._thermo.h,
                "omega": self._omega,
            },
            index=pd.Index(self.species_names, name="species"),
        )

    def summary(self) -> pd.Series:
        return pd.Series(
            {
                "T": self.temperature,
                "P": self.pressure,
                "n_species": self.species_count,
                "n_equations": self.equation_count(),
                "MWtot": self.mixture_molecular_weight,
                "C_total": self._state.total_concentration,
                "sum_Y": float(np.sum(self._state.mass_fractions)),
            }
        )
