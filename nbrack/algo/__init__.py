from __future__ import annotations

from ._globmin import (
    CANCELLED,
    CANCELLED_CLOSED,
    EXTEND_LIMIT,
    MAX_EXTEND,
    OK,
    Bracket,
    GlobMinResult,
    SearchRange,
    bracket_search,
    check_range,
    criterion_from,
    glob_min,
    grid_points,
    grid_rate,
)

__all__ = [
    "CANCELLED",
    "CANCELLED_CLOSED",
    "EXTEND_LIMIT",
    "MAX_EXTEND",
    "OK",
    "Bracket",
    "GlobMinResult",
    "SearchRange",
    "bracket_search",
    "check_range",
    "criterion_from",
    "glob_min",
    "grid_points",
    "grid_rate",
]
