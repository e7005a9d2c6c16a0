from __future__ import annotations

import logging
import os
from types import NoneType
from typing import Any, Callable

import numba as nb
import numba.core.errors as nb_error
from numba import types
from numba.extending import overload, register_jitable

logger = logging.getLogger(__name__)

_N = types.none
CSeq = tuple[Any, ...] | list[Any]
CSeqRuntime = (tuple, list)
Op = Callable[..., Any] | NoneType | CSeq


def _env_flag(name: str, default: str) -> Any:
    # "false"/"" -> False, a literal like {"nsz","arcp"} -> that set of fastmath flags, anything else -> True
    raw = os.environ.get(name, default)
    if not raw or raw.strip().lower() in ("false", "0", "no"): return False
    if any(i in raw for i in ("[", "{", "(")):
        return set(raw.strip("[]{}() ").replace('"', "").replace("'", "").replace(" ", "").split(","))
    return True


# These only change once at import time.
# --- Numba Global Fastmath : frequently a 2x speedup for array math, at 4x the epsilon error range.
_fm = _env_flag("NB_GLOB_FM", "true")
# --- Numba Global Error Model : 'numpy' skips the python-style division checks.
_erm = os.environ.get("NB_GLOB_EM", "numpy")


"""
## Configurations
s : Sync, nothing in this package evaluates in parallel.
c : Cache the compilation for new signatures.
i : Forced Numba-IR level inline, used by the op_call overloads.
st : Strict IEEE math, fastmath off regardless of NB_GLOB_FM. NaN/inf checks are folded away under fastmath.

## Decorators
jt - numba.njit with the presets above.
rg - register_jitable, runs as the python function from the interpreter and compiles in when referenced
from a jitted scope.
ov - overload decorators.

Caching a small function called from other jitted code turns it into an opaque function pointer, so cache
at the scope of the outer procedure only.
"""

_dft = dict(fastmath=_fm, error_model=_erm)
jit_s = _dft
jit_sc = jit_s | dict(cache=True)
jit_st = jit_s | dict(fastmath=False)

# --- JIT DECORATORS
jt = nb.njit(**jit_s)  # plain jit
jtc = nb.njit(**jit_sc)  # cache
jtst = nb.njit(**jit_st)  # strict math

# --- REGISTER JITTABLE DECORATORS
_rg = register_jitable
rg = _rg(**jit_s)  # base sync
rgst = _rg(**jit_st)  # strict math


# --- OVERLOADS DECORATORS
def ovs(impl: Callable[..., Any]) -> Callable[..., Any]: return overload(impl, jit_options=jit_s)


def ovsic(impl: Callable[..., Any]) -> Callable[..., Any]: return overload(impl, jit_options=jit_sc, inline="always")


def op_call(call_op: Op, defr: Any = True) -> Any:
    """
    An evaluator for call operators. Works the same from python and from a nopython block.

    A call operator is either a callable or a sequence ``(callable, *bound_args)``:

    .. code-block:: python

        @nbrack.utils.jt
        def poll(counter):
            counter[0] += 1
            return counter[0] > 10

        op = (poll, np.zeros(1, np.int64))
        op_call(op)  # -> poll(counter)

    Bound arguments are how jitted callers thread mutable state (counters, work arrays) through a first class
    function without closures.

    :param call_op: ``None``, a callable, or an operator sequence.
    :param defr: Value returned when ``call_op`` is ``None``. An optional stopping poll should return False.
    :returns: The evaluated result, or ``defr``.
    """
    if callable(call_op): return call_op()
    elif isinstance(call_op, CSeqRuntime):
        if callable(call_op[0]): return call_op[0](*call_op[1:])
    if defr is not None: return defr
    return call_op


@ovsic(op_call)
def _op_call(call_op, defr=True):  # pragma: no cover
    if isinstance(call_op, types.Callable): return lambda call_op, defr=True: call_op()
    elif isinstance(call_op, types.BaseTuple):
        if isinstance(call_op[0], types.Callable): return lambda call_op, defr=True: call_op[0](*call_op[1:])
    if defr is not _N: return lambda call_op, defr=True: defr
    return lambda call_op, defr=True: call_op


def op_call_args(call_op: Op, args: CSeq | Any = (), defr: Any = None) -> Any:
    """
    Call ``call_op`` with ``args`` placed ahead of any bound arguments.

    .. code-block:: python

        def crit(x, scale):
            return scale * x * x, False

        op_call_args((crit, 2.0), 3.0)  # -> crit(3.0, 2.0)
        op_call_args(crit, (3.0, 2.0))  # -> crit(3.0, 2.0)

    If ``args`` is a tuple or list it is expanded, otherwise it is a single argument.

    :param call_op: Callable or tuple/list whose first element is callable, remaining elements are bound arguments.
    :param args: Arguments to apply.
    :param defr: Default return value when ``call_op`` is ``None``.
    :returns: Function output.
    """
    if isinstance(call_op, NoneType):
        if defr is None: return call_op
        else: return defr

    ct = callable(call_op)
    rt = isinstance(args, CSeqRuntime)
    if ct:
        if rt: return call_op(*args)
        return call_op(args)
    else:
        if rt: return call_op[0](*args, *call_op[1:])
        return call_op[0](args, *call_op[1:])


@ovsic(op_call_args)
def _op_call_args(call_op, args=(), defr=None):  # pragma: no cover
    if call_op is _N:
        if defr is _N or defr is None: return lambda call_op, args=(), defr=None: None
        else: return lambda call_op, args=(), defr=None: defr

    ct = isinstance(call_op, types.Callable)
    rt = isinstance(args, (types.BaseTuple, types.LiteralList))

    if ct:
        if rt: return lambda call_op, args=(), defr=None: call_op(*args)
        return lambda call_op, args=(), defr=None: call_op(args)
    else:
        if rt: return lambda call_op, args=(), defr=None: call_op[0](*args, *call_op[1:])
        return lambda call_op, args=(), defr=None: call_op[0](args, *call_op[1:])


def is_jit_op(call_op: Op) -> bool:
    """
    True when ``call_op`` can be typed inside a nopython block: ``None``, a numba dispatcher, or an operator
    tuple led by a dispatcher.

    Only the callable is inspected, bound arguments are left to numba's own typing.
    """
    if call_op is None: return True
    if isinstance(call_op, CSeqRuntime):
        return len(call_op) > 0 and hasattr(call_op[0], "py_func")
    return hasattr(call_op, "py_func")


def run_py(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Numba keeps the plain python definition in ``py_func``, if it exists call that instead.

    :param func: callable.
    :returns: The function result.
    """
    if hasattr(func, "py_func"): func = func.py_func

    return func(*args, **kwargs)


def py_op(call_op: Any) -> Any:
    """The python definition of a dispatcher or of an operator led by one, anything else is returned as is."""
    if hasattr(call_op, "py_func"): return call_op.py_func
    if isinstance(call_op, CSeqRuntime) and len(call_op) > 0 and hasattr(call_op[0], "py_func"):
        return type(call_op)((call_op[0].py_func, *call_op[1:]))
    return call_op


def run_numba(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Call the numba dispatcher in nopython mode, falling back to the python layer when the arguments can't be typed.
    In the fallback, dispatcher callbacks passed as arguments also run as python, see ``py_op``.

    :param func: callable.
    :returns: The function result.
    """
    try:
        return func(*args, **kwargs)
    except (nb_error.TypingError, nb_error.UnsupportedError):
        logger.debug("Failed to run full-numba for %s, running in python.", getattr(func, "__name__", func))
        return run_py(func, *(py_op(a) for a in args), **{k: py_op(v) for k, v in kwargs.items()})
