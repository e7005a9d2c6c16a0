from __future__ import annotations

import numba as nb
import numba.core.errors as nb_error
import numpy as np

import nbrack.utils as nbu


@nb.njit
def _bump(counter: np.ndarray, k: int) -> bool:
    counter[0] += k
    return counter[0] > 5


@nb.njit
def _scaled(x: float, s: float) -> float:
    return s * x


@nbu.jt
def _poll_twice(stop_op) -> tuple[bool, bool]:
    return nbu.op_call(stop_op, False), nbu.op_call(stop_op, False)


@nbu.jt
def _apply(f_op, x):
    return nbu.op_call_args(f_op, x)


def test_op_call_python_paths() -> None:
    assert nbu.op_call(lambda: 4) == 4
    assert nbu.op_call((lambda x, y: x + y, 2, 3)) == 5
    assert nbu.op_call(None, False) is False
    assert nbu.op_call("noop", None) == "noop"

    assert nbu.op_call_args(lambda x, y: x * y, (3, 5)) == 15
    assert nbu.op_call_args((lambda x, y, z: x + y + z, 4), (1, 2)) == 7
    assert nbu.op_call_args((lambda x, s: x * s, 2.0), 3.0) == 6.0
    assert nbu.op_call_args(None, (), None) is None
    assert nbu.op_call_args(None, (), 1.5) == 1.5


def test_op_call_jit_paths_thread_bound_state() -> None:
    counter = np.zeros(1, dtype=np.int64)
    assert _poll_twice((_bump, counter, 3)) == (False, True)
    assert counter[0] == 6
    assert _poll_twice(None) == (False, False)

    assert _apply((_scaled, 4.0), 2.5) == 10.0
    assert _apply(nb.njit(lambda x: x + 1.0), 2.0) == 3.0


def test_is_jit_op_and_layer_runners() -> None:
    assert nbu.is_jit_op(None)
    assert nbu.is_jit_op(_scaled)
    assert nbu.is_jit_op((_bump, np.zeros(1, dtype=np.int64), 1))
    assert not nbu.is_jit_op(lambda x: x)
    assert not nbu.is_jit_op((lambda x: x, 1))
    assert not nbu.is_jit_op(())

    class _Dummy:
        @staticmethod
        def py_func(v: int) -> int:
            return v + 10

        @staticmethod
        def __call__(v: int) -> int:
            raise nb_error.TypingError("dispatch failed")

    assert nbu.run_py(_scaled, 2.0, 3.0) == 6.0
    assert nbu.run_numba(_Dummy(), 7) == 17
    assert nbu.run_numba(_scaled, 2.0, 3.0) == 6.0


def test_py_op_unwraps_dispatchers_and_keeps_bound_args() -> None:
    counter = np.zeros(1, dtype=np.int64)
    op = nbu.py_op((_bump, counter, 2))
    assert op[0] is _bump.py_func and op[1] is counter and op[2] == 2
    assert nbu.py_op(_scaled) is _scaled.py_func
    assert nbu.py_op([_scaled, 1.0]) == [_scaled.py_func, 1.0]

    f = lambda x: x  # noqa: E731
    assert nbu.py_op(f) is f
    assert nbu.py_op(3.0) == 3.0
    assert nbu.py_op(None) is None


def test_env_flag_parsing(monkeypatch) -> None:
    monkeypatch.setenv("NBRACK_TEST_FLAG", "false")
    assert nbu._env_flag("NBRACK_TEST_FLAG", "true") is False
    monkeypatch.setenv("NBRACK_TEST_FLAG", "{'nsz', 'arcp'}")
    assert nbu._env_flag("NBRACK_TEST_FLAG", "true") == {"nsz", "arcp"}
    monkeypatch.setenv("NBRACK_TEST_FLAG", "1")
    assert nbu._env_flag("NBRACK_TEST_FLAG", "true") is True
    monkeypatch.delenv("NBRACK_TEST_FLAG")
    assert nbu._env_flag("NBRACK_TEST_FLAG", "true") is True
    assert nbu.jit_st["fastmath"] is False
