from enum import Enum

from pydantic_settings import BaseSettings


class MolecularWeightPolicy(str, Enum):
    """How the mixture molecular weight follows absorbed compositions."""

    RECOMPUTE = "recompute"  # 1/sum(Y/MW) on every absorbed state
    FROZEN = "frozen"  # construction-time value held for the whole run


class SpeciesFormulation(str, Enum):
    """Form of the mass-fraction equations.

    REFERENCE subtracts Y_i * (omega_sum/C_sum + dT/dt / T) from the production
    term; MASS_CONSERVING keeps only omega_i * MW_i / rho.
    """

    REFERENCE = "reference"
    MASS_CONSERVING = "mass-conserving"


class ReactorSettings(BaseSettings):
    gas_constant: float = 8.314  # J/mol-K

    initial_temperature: float = 350.0  # K
    initial_pressure: float = 1.0e5  # Pa

    # Stepper tolerances; the reactor core never reads these
    rtol: float = 1.0e-4
    atol: float = 1.0e-8
    method: str = "BDF"

    # Output schedule: first, first*m, first*m^2, ...
    first_output_time: float = 1.0e-6  # s
    output_multiplier: float = 10.0
    output_count: int = 7

    denominator_epsilon: float = 1.0e-300
    composition_tolerance: float = 1.0e-6
    renormalize: bool = False
    molecular_weight_policy: MolecularWeightPolicy = MolecularWeightPolicy.RECOMPUTE
    species_formulation: SpeciesFormulation = SpeciesFormulation.REFERENCE

    class Config:
        env_prefix = "CPREACTOR_"
        env_file = ".env"


settings = ReactorSettings()
