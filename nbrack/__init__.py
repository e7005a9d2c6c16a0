from __future__ import annotations

from . import algo, rng, utils
from .algo import Bracket, GlobMinResult, SearchRange, bracket_search, glob_min

__all__ = [
    "algo",
    "rng",
    "utils",
    "Bracket",
    "GlobMinResult",
    "SearchRange",
    "bracket_search",
    "glob_min",
]
