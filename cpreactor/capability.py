"""Boundary between the reactor and an external time stepper.

A stepper only ever needs three operations: the size of the system, the
initial state, and the right-hand side. Buffers are caller-owned and are
length-checked against :meth:`IntegrationCapability.equation_count`.
"""
from __future__ import annotations

from typing import MutableSequence, Protocol, Sequence, runtime_checkable

from .reactors import ReactorModel


@runtime_checkable
class IntegrationCapability(Protocol):
    def equation_count(self) -> int:
        """Dimension of the state and derivative vectors."""

    def fill_initial_state(self, buffer: MutableSequence[float]) -> None:
        """Write the initial state into ``buffer``."""

    def evaluate(self, t: float, state: Sequence[float], derivative: MutableSequence[float]) -> None:
        """Write d(state)/dt at ``(t, state)`` into ``derivative``."""


class ReactorAdapter:
    """Expose a :class:`ReactorModel` through :class:`IntegrationCapability`.

    The adapter does not own the reactor; every call is forwarded.
    """

    def __init__(self, reactor: ReactorModel) -> None:
        self.reactor = reactor

    def equation_count(self) -> int:
        return self.reactor.equation_count()

    def fill_initial_state(self, buffer: MutableSequence[float]) -> None:
        self.reactor.fill_initial_state(buffer)

    def evaluate(self, t: float, state: Sequence[float], derivative: MutableSequence[float]) -> None:
        self.reactor.evaluate(t, state, derivative)
