from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence
import math

import numpy as np

Species = str


@dataclass(frozen=True)
class Arrhenius:
    A: float  # pre-exponential factor (units depend on order), mol/m^3 basis
    Ea: float  # activation energy (J/mol)
    b: float = 0.0  # temperature exponent
    R: float = 8.314  # gas constant (J/mol-K)

    def k(self, T: float) -> float:
        return self.A * T**self.b * math.exp(-self.Ea / (self.R * T))


@dataclass(frozen=True)
class ThirdBody:
    """Collision-partner concentration [M] = sum_i eff_i * C_i."""

    efficiencies: Dict[Species, float] = field(default_factory=dict)
    default: float = 1.0

    def concentration(self, concentrations: Dict[Species, float]) -> float:
        return sum(
            self.efficiencies.get(sp, self.default) * max(c, 0.0)
            for sp, c in concentrations.items()
        )


@dataclass(frozen=True)
class Lindemann:
    """Pressure fall-off with unit broadening factor."""

    low: Arrhenius

    def broadening(self, T: float, reduced_pressure: float) -> float:
        return 1.0


@dataclass(frozen=True)
class Troe:
    """Troe fall-off broadening (3- or 4-parameter form)."""

    low: Arrhenius
    alpha: float
    T3: float
    T1: float
    T2: float | None = None

    def broadening(self, T: float, reduced_pressure: float) -> float:
        f_cent = (1.0 - self.alpha) * math.exp(-T / self.T3) + self.alpha * math.exp(-T / self.T1)
        if self.T2 is not None:
            f_cent += math.exp(-self.T2 / T)
        log_f_cent = math.log10(max(f_cent, 1e-300))
        c = -0.4 - 0.67 * log_f_cent
        n = 0.75 - 1.27 * log_f_cent
        log_pr = math.log10(max(reduced_pressure, 1e-300))
        f1 = (log_pr + c) / (n - 0.14 * (log_pr + c))
        return 10.0 ** (log_f_cent / (1.0 + f1 * f1))


@dataclass(frozen=True)
class Reaction:
    """Elementary or global reaction with mass-action rate.

    stoich: species -> nu, negative for reactants
    order: species -> power-law exponent; defaults to abs(nu)
    reverse: Arrhenius for the reverse direction, products raised to their orders
    third_body: collision efficiencies; multiplies the rate by [M] unless falloff is set
    falloff: Lindemann or Troe; forward is then the high-pressure limit
    """
    forward: Arrhenius
    stoich: Dict[Species, float]
    order: Dict[Species, float] | None = None
    reverse: Arrhenius | None = None
    third_body: ThirdBody | None = None
    falloff: Lindemann | Troe | None = None

    def _collision_concentration(self, concentrations: Dict[Species, float]) -> float:
        if self.third_body is not None:
            return self.third_body.concentration(concentrations)
        return sum(max(c, 0.0) for c in concentrations.values())

    def _pressure_factor(self, T: float, concentrations: Dict[Species, float]) -> float:
        """Multiplier applied to both directions for third-body / fall-off reactions."""
        if self.falloff is not None:
            k_inf = self.forward.k(T)
            if k_inf <= 0.0:
                return 0.0
            m = self._collision_concentration(concentrations)
            pr = self.falloff.low.k(T) * m / k_inf
            return pr / (1.0 + pr) * self.falloff.broadening(T, pr)
        if self.third_body is not None:
            return self.third_body.concentration(concentrations)
        return 1.0

    def _concentration_product(self, concentrations: Dict[Species, float], reactants: bool) -> float:
        """prod(C_s ** order_s) over reactants (nu < 0) or products (nu > 0)."""
        product = 1.0
        for sp, nu in self.stoich.items():
            if (nu < 0) != reactants or nu == 0:
                continue
            power = self.order.get(sp, abs(nu)) if self.order else abs(nu)
            product *= max(concentrations.get(sp, 0.0), 0.0) ** power
        return product

    def rate(self, T: float, concentrations: Dict[Species, float]) -> float:
        """Net rate of progress [mol/m^3/s] at T."""
        factor = self._pressure_factor(T, concentrations)
        forward = self.forward.k(T) * factor * self._concentration_product(concentrations, True)
        if self.reverse is None:
            return forward
        backward = self.reverse.k(T) * factor * self._concentration_product(concentrations, False)
        return forward - backward


@dataclass(frozen=True)
class Network:
    species: List[Species]
    reactions: List[Reaction]

    def __post_init__(self) -> None:
        known = set(self.species)
        for idx, rxn in enumerate(self.reactions):
            unknown = [sp for sp in rxn.stoich if sp not in known]
            if unknown:
                raise ValueError(f"Reaction {idx} references unknown species: {unknown}")

    def stoichiometric_matrix(self) -> np.ndarray:
        """Array of shape (n_reactions, n_species)."""
        nu = np.zeros((len(self.reactions), len(self.species)), dtype=float)
        for r_idx, rxn in enumerate(self.reactions):
            for s_idx, sp in enumerate(self.species):
                nu[r_idx, s_idx] = rxn.stoich.get(sp, 0.0)
        return nu

    def rates(self, T: float, concentrations: Dict[Species, float]) -> List[float]:
        return [rxn.rate(T, concentrations) for rxn in self.reactions]

    def production_rates(self, conc_vector: Sequence[float], T: float) -> np.ndarray:
        """Net molar production rate of each species, nu^T r."""
        if len(conc_vector) != len(self.species):
            raise ValueError(
                f"Expected {len(self.species)} concentrations, got {len(conc_vector)}"
            )
        if not self.reactions:
            return np.zeros(len(self.species), dtype=float)
        conc = {sp: float(c) for sp, c in zip(self.species, conc_vector)}
        r = np.asarray(self.rates(T, conc), dtype=float)
        return self.stoichiometric_matrix().T @ r
