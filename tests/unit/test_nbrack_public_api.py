from __future__ import annotations

import nbrack


def test_nbrack_root_exports_and_modules() -> None:
    """Validate root-level exports and module aliases in the public API."""
    for name in nbrack.__all__:
        assert hasattr(nbrack, name)
    assert nbrack.glob_min is nbrack.algo.glob_min
    assert nbrack.bracket_search is nbrack.algo.bracket_search
    assert nbrack.rng is not None
    assert nbrack.utils is not None
    for name in ("normal", "normal_pair", "gamma_half", "beta_variate", "random_on_sphere", "cauchy_variate"):
        assert callable(getattr(nbrack.rng, name))
