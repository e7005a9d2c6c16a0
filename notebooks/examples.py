import math as mt

import numba as nb
import numpy as np

import nbrack
from nbrack.algo import glob_min, OK

### --- 1: CALL OPERATOR STRATEGY
# The criterion and the poll are call operators (func, *bound). Bound arrays are how a jitted caller keeps state
# (evaluation budget, counters, work memory) without closures.

@nb.njit
def crit(x, evals, budget):
    evals[0] += 1
    return mt.cos(3.0 * x) + 0.1 * x * x, evals[0] >= budget


@nb.njit
def stop(evals, budget):
    return evals[0] >= budget


@nb.njit
def coarse_then_fine(lo, hi, budget):
    # two passes: coarse grid, then a fine grid over the coarse bracket
    evals = np.zeros(1, dtype=np.int64)
    x1, y1, x2, y2, x3, y3, status = glob_min((crit, evals, budget), lo, hi, 21, stop_op=(stop, evals, budget))
    if status != OK: return x2, y2, status, evals[0]
    # f(x1) is already known, so the fine pass skips it
    x1, y1, x2, y2, x3, y3, status = glob_min((crit, evals, budget), x1, x3, 21, False, -np.inf, True, y1,
                                              (stop, evals, budget))
    return x2, y2, status, evals[0]


if __name__ == "__main__":
    print(coarse_then_fine(-5.0, 5.0, 200))
    print(coarse_then_fine(-5.0, 5.0, 10))  # budget runs out, cancelled

    ### --- 2: PLAIN PYTHON
    res = nbrack.bracket_search(lambda x: (abs(x - 1.3) + 0.2 * mt.sin(8 * x), False), nbrack.SearchRange(-4, 4, 41))
    print(res.bracket, res.valid)
