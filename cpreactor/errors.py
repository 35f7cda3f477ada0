"""Failure conditions raised by the reactor core.

All of them derive from ``ValueError`` so callers that only guard against bad
numeric input keep working. None is caught inside the package: recovery, such
as shrinking a trial step, belongs to whoever drives the integration.
"""


class ReactorError(ValueError):
    """Base class for reactor evaluation failures."""


class InvalidSpeciesCount(ReactorError):
    """Species count is not positive or disagrees with the mechanism."""


class NonPositiveTemperature(ReactorError):
    """Temperature is zero, negative or not finite."""


class SingularEnergyBalance(ReactorError):
    """Mixture heat-capacity denominator of dT/dt is (numerically) zero."""


class MalformedStateVector(ReactorError):
    """State or derivative buffer length does not match the equation count."""
