from __future__ import annotations

import logging
import math as mt
import os
import warnings
from typing import Any, Callable, NamedTuple

import numpy as np

import nbrack.utils as nbu

logger = logging.getLogger(__name__)

# Status codes returned by glob_min, same convention as a 0-success int flag.
OK = 0
CANCELLED = 1  # quit before both neighbors were known, x1 y1 x3 y3 can't be trusted
EXTEND_LIMIT = 2  # endpoint extension hit max_extend or ran out of float range, best effort bracket
CANCELLED_CLOSED = 3  # quit after the bracket closed, bracket is valid but the grid wasn't finished

# Each extension step is 3x the previous, 60 steps is already ~4e28 grid steps out.
MAX_EXTEND = int(os.environ.get("NBRACK_MAX_EXTEND", "60"))


class SearchRange(NamedTuple):
    """Grid definition for ``bracket_search``. ``y_low`` is the criterion at ``low`` when already known."""

    low: float
    high: float
    n_pts: int
    log_space: bool = False
    y_low: float | None = None


class Bracket(NamedTuple):
    x1: float
    y1: float
    x2: float
    y2: float
    x3: float
    y3: float


class GlobMinResult(NamedTuple):
    bracket: Bracket
    status: int

    @property
    def cancelled(self) -> bool:
        return self.status == CANCELLED or self.status == CANCELLED_CLOSED

    @property
    def valid(self) -> bool:
        """Both neighbors are known and bracket the best point."""
        return self.status == OK or self.status == CANCELLED_CLOSED


@nbu.rgst
def check_range(low, high, n_pts, log_space=False):
    """Raise ``ValueError`` for a grid that can't be scanned. Constant messages so it also raises from nopython."""
    if n_pts < 2: raise ValueError("n_pts must be at least 2")
    if not (mt.isfinite(low) and mt.isfinite(high)): raise ValueError("low and high must be finite")
    if not low < high: raise ValueError("low must be less than high")
    if log_space and low <= 0.0: raise ValueError("log spacing requires 0 < low")


@nbu.rgst
def grid_rate(low, high, n_pts, log_space=False):
    """Additive step, or multiplicative ratio under log spacing."""
    if log_space: return (high / low) ** (1.0 / (n_pts - 1))
    return (high - low) / (n_pts - 1)


@nbu.rgst
def _grid_x(low, high, rate, i, n_pts, log_space):
    if i == n_pts - 1: return high  # exact endpoint
    if log_space: return low * rate**i
    return low + i * rate


@nbu.jtst
def grid_points(low, high, n_pts, log_space=False):
    """
    The x values ``glob_min`` scans, low to high inclusive.

    :returns: float64 array of length ``n_pts``.
    """
    low, high = float(low), float(high)
    check_range(low, high, n_pts, log_space)
    rate = grid_rate(low, high, n_pts, log_space)
    out = np.empty(n_pts, dtype=np.float64)
    for i in range(n_pts): out[i] = _grid_x(low, high, rate, i, n_pts, log_space)
    return out


@nbu.jtst
def glob_min(crit_op, low, high, n_pts, log_space=False, critlim=-np.inf, has_ylow=False, y_low=0.0,
             stop_op=None, max_extend=MAX_EXTEND):
    """
    Rough global minimum of a univariate function by checking equispaced points, returning a 3 point bracket.

    The interval ``[low, high]`` is divided into ``n_pts - 1`` arithmetic (or geometric with ``log_space``) steps.
    The middle point of the result is the best sample and its neighbors both have a value at least as large, equal
    only in flat (pathological) regions. If the function is still decreasing at an endpoint the search walks past
    it with a step that triples each time, until the function turns up.

    Once the best value drops to ``critlim`` or below the scan stops at the first closed bracket, so the global
    search is given up for the first local minimum that is good enough.

    :param crit_op: Criterion, a function or a call operator ``(f, *bound)``. Called as ``f(x, *bound)`` and
        returns ``(y, cancel)``, cancel True asks the search to stop.
    :param n_pts: Number of grid points, at least 2.
    :param critlim: Quit the global scan once the best value is this low and bracketed.
    :param has_ylow: ``y_low`` is the criterion at ``low``, so the first grid point isn't evaluated.
    :param stop_op: Optional cancellation poll, function or call operator returning bool. Polled after every grid
        point and before every extension step.
    :param max_extend: Max criterion evaluations per endpoint extension, ``<= 0`` for no count limit. The walk
        also stops when the next x would leave the finite (or, log spaced, positive) float range.
    :returns: ``x1, y1, x2, y2, x3, y3, status``. See the module status codes, only OK and CANCELLED_CLOSED
        guarantee ``x1 < x2 < x3`` with ``y2 <= y1, y3``.

    Variable calculations are all f64.
    """
    low, high, critlim, y_low = float(low), float(high), float(critlim), float(y_low)
    check_range(low, high, n_pts, log_space)
    rate = grid_rate(low, high, n_pts, log_space)

    x1, y1, x3, y3 = mt.nan, mt.nan, mt.nan, mt.nan
    x2, y2 = low, y_low
    previous = mt.nan  # y at the previous grid point, the left neighbor when a new best lands
    ibest = -1
    turned_up = False  # the right neighbor of the best is known
    quit_ = False

    for i in range(n_pts):
        x = _grid_x(low, high, rate, i, n_pts, log_space)
        if i > 0 or not has_ylow:
            y, quit_ = nbu.op_call_args(crit_op, x)
        else:
            y = y_low

        if i == 0 or y < y2:  # strict, the first of equal minima is kept
            ibest = i
            x2 = x
            y2 = y
            y1 = previous
            turned_up = False
        elif i == ibest + 1:
            y3 = y
            turned_up = True

        previous = y

        if not quit_: quit_ = nbu.op_call(stop_op, False)

        if (quit_ or y2 <= critlim) and ibest > 0 and turned_up: break

        if quit_: return x1, y1, x2, y2, x3, y3, CANCELLED

    # Minimum within the grid is at (x2,y2). y1 and y3 are known unless it sits on an endpoint.
    if log_space:
        x1 = x2 / rate
        x3 = x2 * rate
    else:
        x1 = x2 - rate
        x3 = x2 + rate

    if quit_: return x1, y1, x2, y2, x3, y3, CANCELLED_CLOSED

    ext = 0
    if not turned_up:  # still decreasing at high, extend to the right
        while True:
            if nbu.op_call(stop_op, False): return x1, y1, x2, y2, x3, y3, CANCELLED
            y3, quit_ = nbu.op_call_args(crit_op, x3)
            if quit_: return x1, y1, x2, y2, x3, y3, CANCELLED
            ext += 1

            if y3 > y2: break
            if y1 == y2 and y2 == y3: break  # flat, accept as a local minimum

            rate *= 3.0
            nx = x3 * rate if log_space else x3 + rate
            if (max_extend > 0 and ext >= max_extend) or not mt.isfinite(nx):
                return x1, y1, x2, y2, x3, y3, EXTEND_LIMIT

            x1, y1 = x2, y2
            x2, y2 = x3, y3
            x3 = nx

    elif ibest == 0:  # still decreasing at low, extend to the left
        while True:
            if nbu.op_call(stop_op, False): return x1, y1, x2, y2, x3, y3, CANCELLED
            y1, quit_ = nbu.op_call_args(crit_op, x1)
            if quit_: return x1, y1, x2, y2, x3, y3, CANCELLED
            ext += 1

            if y1 > y2: break
            if y1 == y2 and y2 == y3: break

            rate *= 3.0
            nx = x1 / rate if log_space else x1 - rate
            if (max_extend > 0 and ext >= max_extend) or not mt.isfinite(nx) or (log_space and nx <= 0.0):
                return x1, y1, x2, y2, x3, y3, EXTEND_LIMIT

            x3, y3 = x2, y2
            x2, y2 = x1, y1
            x1 = nx

    return x1, y1, x2, y2, x3, y3, OK


def bracket_search(
    criterion: nbu.Op,
    search_range: SearchRange,
    critlim: float = -np.inf,
    stop: nbu.Op = None,
    max_extend: int | None = None,
) -> GlobMinResult:
    """
    Python front end for ``glob_min``.

    Runs the compiled search when the criterion and the poll are numba dispatchers (or call operators led by one),
    otherwise the python layer, so plain lambdas work too. Bound arguments numba can't type drop the compiled
    search back to the python layer.

    .. code-block:: python

        res = bracket_search(lambda x: ((x - 2.0) ** 2, False), SearchRange(0.0, 10.0, 11))
        if res.valid:
            x1, y1, x2, y2, x3, y3 = res.bracket

    :param criterion: ``x -> (y, cancel)`` function or call operator.
    :param search_range: Grid bounds, point count, spacing and the optional known value at ``low``.
    :param critlim: Stop the global scan at the first closed bracket once the best value is at or below this.
    :param stop: Optional ``() -> bool`` cancellation poll or call operator.
    :param max_extend: Extension cutoff, defaults to ``MAX_EXTEND``.
    :returns: ``GlobMinResult``. Check ``valid``/``cancelled`` before trusting the outer points.
    :raises ValueError: When the range can't be scanned.
    """
    low, high, n_pts, log_space, y_low = search_range
    n_pts = int(n_pts)
    check_range(float(low), float(high), n_pts, bool(log_space))
    has_ylow = y_low is not None
    args = (
        criterion, float(low), float(high), n_pts, bool(log_space), float(critlim),
        has_ylow, float(y_low) if has_ylow else 0.0, stop, MAX_EXTEND if max_extend is None else int(max_extend),
    )

    if nbu.is_jit_op(criterion) and nbu.is_jit_op(stop):
        logger.debug("glob_min: compiled layer, %d points on [%g, %g]", n_pts, low, high)
        out = nbu.run_numba(glob_min, *args)
    else:
        logger.debug("glob_min: python layer, %d points on [%g, %g]", n_pts, low, high)
        out = nbu.run_py(glob_min, *args)

    res = GlobMinResult(Bracket(*(float(v) for v in out[:6])), int(out[6]))
    if res.status == EXTEND_LIMIT:
        logger.warning("glob_min extension stopped at x=%g without the function turning up", res.bracket.x2)
        warnings.warn(
            "glob_min endpoint extension hit its limit, the minimum may lie further out than the returned bracket",
            RuntimeWarning,
            stacklevel=2,
        )
    return res


def criterion_from(func: Callable[[float], Any]) -> Callable[[float], tuple[float, bool]]:
    """Wrap a plain python ``x -> y`` function into the ``x -> (y, cancel)`` criterion shape, never cancelling."""

    def crit(x: float) -> tuple[float, bool]:
        return float(func(x)), False

    return crit
