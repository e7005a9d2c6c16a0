from __future__ import annotations

import nbrack
from nbrack import algo, rng, utils


def main() -> None:
    assert nbrack is not None
    assert algo is not None
    assert rng is not None
    assert utils is not None


def test_imports() -> None:
    main()


if __name__ == "__main__":
    main()
