from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.integrate import solve_ivp

from .capability import IntegrationCapability
from .config import ReactorSettings, settings as default_settings
from .errors import ReactorError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolveResult:
    t: List[float]
    y: List[List[float]]  # y[i][k] equation i at time k
    status: int
    message: str
    stats: Dict[str, float] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status >= 0

    def to_frame(self, species_names: Sequence[str]) -> pd.DataFrame:
        """Trajectory with columns ``t, T, <species...>`` for a ``[T, Y...]`` system."""
        if len(self.y) != len(species_names) + 1:
            raise ValueError(
                f"Result has {len(self.y)} equations, expected {len(species_names) + 1}"
            )
        df = pd.DataFrame({"t": self.t, "T": self.y[0]})
        for i, name in enumerate(species_names):
            df[name] = self.y[i + 1]
        return df

    def stats_frame(self) -> pd.DataFrame:
        row = {"status": self.status, "message": self.message}
        row.update(self.stats)
        return pd.DataFrame([row])


def geometric_output_times(first: float, multiplier: float, count: int) -> np.ndarray:
    """Output times first, first*m, first*m^2, ... (count values)."""
    if first <= 0.0 or multiplier <= 1.0 or count < 1:
        raise ValueError("Need first > 0, multiplier > 1 and count >= 1")
    return first * multiplier ** np.arange(count, dtype=float)


def _resolve_method(method: str) -> str:
    if method.upper() == "LSODA":
        return "LSODA"
    if method.upper() == "BDF":
        return "BDF"
    return method


def _stats(sol, wall_time_s: float) -> Dict[str, float]:
    return {
        "nfev": int(sol.nfev),
        "njev": int(sol.njev),
        "nlu": int(sol.nlu),
        "n_points": int(len(sol.t)),
        "wall_time_s": wall_time_s,
    }


def integrate_ode(
    rhs: Callable[[float, Sequence[float]], Sequence[float]],
    y0: Sequence[float],
    t_span: Tuple[float, float],
    t_eval: Optional[Sequence[float]] = None,
    method: str = "LSODA",
    rtol: float = 1e-6,
    atol: float = 1e-9,
) -> SolveResult:
    start = time.perf_counter()
    sol = solve_ivp(
        fun=lambda t, y: rhs(t, y),
        y0=np.asarray(y0, dtype=float),
        t_span=t_span,
        t_eval=np.asarray(t_eval, dtype=float) if t_eval is not None else None,
        method=_resolve_method(method),
        rtol=rtol,
        atol=atol,
    )
    return SolveResult(
        t=sol.t.tolist(),
        y=sol.y.tolist(),
        status=sol.status,
        message=sol.message,
        stats=_stats(sol, time.perf_counter() - start),
    )


def integrate_capability(
    capability: IntegrationCapability,
    t_span: Optional[Tuple[float, float]] = None,
    t_eval: Optional[Sequence[float]] = None,
    settings: Optional[ReactorSettings] = None,
) -> SolveResult:
    """Drive an :class:`IntegrationCapability` with ``solve_ivp``.

    Without ``t_eval`` the output schedule comes from the settings (geometric
    spacing); without ``t_span`` the run starts at 0 and ends at the last
    output time. Reactor failures propagate to the caller after being logged.
    """
    settings = settings or default_settings
    n_eq = capability.equation_count()
    y0 = np.zeros(n_eq, dtype=float)
    capability.fill_initial_state(y0)

    if t_eval is None:
        t_eval = geometric_output_times(
            settings.first_output_time, settings.output_multiplier, settings.output_count
        )
    t_eval = np.asarray(t_eval, dtype=float)
    if t_span is None:
        t_span = (0.0, float(t_eval[-1]))

    def fun(t: float, y: np.ndarray) -> np.ndarray:
        ydot = np.empty(n_eq, dtype=float)
        capability.evaluate(t, y, ydot)
        return ydot

    logger.info(
        "Integrating %d equations over t=[%g, %g] with %s (rtol=%g, atol=%g)",
        n_eq, t_span[0], t_span[1], settings.method, settings.rtol, settings.atol,
    )
    try:
        result = integrate_ode(
            fun,
            y0=y0,
            t_span=t_span,
            t_eval=t_eval,
            method=settings.method,
            rtol=settings.rtol,
            atol=settings.atol,
        )
    except ReactorError as exc:
        logger.error("Right-hand side evaluation failed: %s", exc)
        raise

    if result.success:
        logger.info("Integration finished: %s", result.stats)
    else:
        logger.error("Integration failed (status %d): %s", result.status, result.message)
    return result
