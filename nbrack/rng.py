from __future__ import annotations

import math as mt
import random as rand

import numpy as np
from numba import types

import nbrack.utils as nbu

# Non-uniform random variates, all drawn from a single uniform generator on [0, 1).
# unif_op=None uses random.random, which inside jitted code is numba's own (separately seeded) stream, see set_seed.
# unif_op can be a function or a call operator (f, *bound), so a jitted caller can pass its own generator state.

PI = mt.pi


@nbu.jtc
def _ss(f) -> None:
    rand.seed(f)
    np.random.seed(f)


def set_seed(seed: int | None) -> None:
    """Set both ``random`` and ``numpy.random`` seeds for both python and jit execution, from a python scope.
    Or just jit execution from a jit scope."""
    if seed is not None:
        _ss(seed)
        rand.seed(seed)
        np.random.seed(seed)


@nbu.ovs(set_seed)
def _set_seed(seed):  # pragma: no cover
    if isinstance(seed, (types.NoneType, types.Omitted)): return lambda seed: None

    def impl(seed):
        rand.seed(seed)
        np.random.seed(seed)

    return impl


def unifrand(unif_op=None) -> float:
    """One uniform draw on [0, 1) from ``unif_op``, or ``random.random`` when it's None."""
    if unif_op is None: return rand.random()
    return nbu.op_call(unif_op)


@nbu.ovs(unifrand)
def _unifrand(unif_op=None):  # pragma: no cover
    # resolved on the argument type, an omitted or None generator never reaches op_call
    if unif_op is None or isinstance(unif_op, (types.NoneType, types.Omitted)):
        return lambda unif_op=None: rand.random()
    return lambda unif_op=None: nbu.op_call(unif_op)


### Normal
@nbu.rg
def normal(unif_op=None) -> float:
    """
    Standard normal (mean 0, unit variance) by the Box-Muller method.

    :param unif_op: Uniform generator on [0, 1).
    :returns: One standard normal sample.
    """
    while True:
        u = unifrand(unif_op)
        if u <= 0.0: continue  # log(0)
        r = mt.sqrt(-2.0 * mt.log(u))
        return r * mt.cos(2.0 * PI * unifrand(unif_op))


@nbu.rg
def normal_pair(unif_op=None) -> tuple[float, float]:
    """Both Box-Muller outputs of one radius and angle, two independent standard normals."""
    while True:
        u = unifrand(unif_op)
        if u <= 0.0: continue
        r = mt.sqrt(-2.0 * mt.log(u))
        t = 2.0 * PI * unifrand(unif_op)
        return r * mt.sin(t), r * mt.cos(t)


### Gamma and Beta
@nbu.rg
def gamma_half(v, unif_op=None) -> float:
    """
    Gamma random variable with shape ``v / 2``, unit scale. ``2 * gamma_half(v)`` is chi-square with ``v`` df.

    v=1 is half a squared normal, v=2 is exponential(1). Larger v uses rejection from a Cauchy envelope, which is
    valid for any real shape above 1.

    :param v: Degrees of freedom, integer >= 1.
    :param unif_op: Uniform generator on [0, 1).
    :returns: One gamma sample.
    """
    if v < 1: raise ValueError("gamma_half needs v >= 1")
    if v == 1:
        x = normal(unif_op)
        return 0.5 * x * x
    if v == 2:
        while True:
            x = unifrand(unif_op)
            if x > 0.0: return -mt.log(x)

    vm1 = 0.5 * v - 1.0
    root = mt.sqrt(v - 1.0)
    while True:
        y = mt.tan(PI * unifrand(unif_op))
        x = root * y + vm1
        if x <= 0.0: continue
        z = (1.0 + y * y) * mt.exp(vm1 * mt.log(x / vm1) - root * y)
        if unifrand(unif_op) <= z: return x


@nbu.rg
def beta_variate(v1, v2, unif_op=None) -> float:
    """Beta random variable with parameters ``v1 / 2`` and ``v2 / 2``, as a ratio of gammas."""
    x1 = gamma_half(v1, unif_op)
    x2 = gamma_half(v2, unif_op)
    return x1 / (x1 + x2)


### Sphere and Cauchy
@nbu.rg
def place_sphere(a: np.ndarray, unif_op=None) -> None:
    """
    Fill ``a`` in-place with a point uniformly distributed on the surface of the unit sphere in ``a.shape[0]``
    dimensions. Normals are drawn in pairs, the odd dimension out gets a single draw.

    :param a: 1D target buffer, length >= 1.
    :param unif_op: Uniform generator on [0, 1).
    :returns: None.
    """
    n = a.shape[0]
    if n < 1: raise ValueError("place_sphere needs at least one dimension")
    length = 0.0
    for i in range(n // 2):
        g1, g2 = normal_pair(unif_op)
        a[2 * i] = g1
        a[2 * i + 1] = g2
        length += g1 * g1 + g2 * g2

    if n % 2:
        g = normal(unif_op)
        a[n - 1] = g
        length += g * g

    length = 1.0 / mt.sqrt(length)
    for i in range(n): a[i] *= length


@nbu.jt
def random_on_sphere(dim, unif_op=None) -> np.ndarray:
    """New ``dim`` length array, uniform on the unit sphere."""
    if dim < 1: raise ValueError("random_on_sphere needs dim >= 1")
    a = np.empty(dim, dtype=np.float64)
    place_sphere(a, unif_op)
    return a


@nbu.rg
def place_cauchy(a: np.ndarray, scale=1.0, unif_op=None) -> None:
    """
    Fill ``a`` in-place with a draw from the ``a.shape[0]``-variate Cauchy density of the given scale.

    A uniform direction on the sphere times the radius ``scale * sqrt(b / (1 - b))`` with ``b ~ Beta(n/2, 1/2)``.
    The univariate case is the inverse cdf, with the angle pulled in slightly off +-pi/2. If ``b`` rounds to 1 the
    radius is capped at 1e10.

    :param a: 1D target buffer, length >= 1.
    :param scale: Scale (half width at half maximum in 1D).
    :param unif_op: Uniform generator on [0, 1).
    :returns: None.
    """
    n = a.shape[0]
    if n < 1: raise ValueError("place_cauchy needs at least one dimension")
    if n == 1:
        t = PI * unifrand(unif_op) - 0.5 * PI
        a[0] = scale * mt.tan(0.99999999 * t)
        return

    place_sphere(a, unif_op)
    b = beta_variate(n, 1, unif_op)
    r = scale * mt.sqrt(b / (1.0 - b)) if b < 1.0 else 1.0e10
    for i in range(n): a[i] *= r


@nbu.jt
def cauchy_variate(dim, scale=1.0, unif_op=None) -> np.ndarray:
    """New ``dim`` length multivariate Cauchy draw."""
    if dim < 1: raise ValueError("cauchy_variate needs dim >= 1")
    a = np.empty(dim, dtype=np.float64)
    place_cauchy(a, scale, unif_op)
    return a
