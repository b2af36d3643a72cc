"""Unit tests for the shared stepper pieces"""

import numpy as np
import pytest

from stepper import PingPongBuffers, SimulationResult, sub_step_count


@pytest.mark.parametrize("span,step,expected", [
    (1.0, 0.0025, 400),
    (5.0, 1.0, 5),
    (0.5, 1.0, 1),       # rounds half up
    (0.49, 1.0, 0),
    (0.0, 1.0, 0),
    (1.0, 0.0, 0),
    (1.0, -1.0, 0),
    (float("nan"), 1.0, 0),
    (1.0, float("nan"), 0),
])
def test_sub_step_count(span, step, expected):
    assert sub_step_count(span, step) == expected


def test_ping_pong_swap():
    buffers = PingPongBuffers(np.arange(4, dtype=np.float32))
    first, second = buffers.current, buffers.next

    assert first is not second
    assert np.array_equal(first, second)

    buffers.swap()
    assert buffers.current is second
    assert buffers.next is first

    buffers.swap()
    assert buffers.current is first


def test_result_finiteness():
    assert SimulationResult(np.zeros(3, dtype=np.float32), steady=True).is_finite
    assert not SimulationResult(np.array([0.0, np.inf]), steady=False).is_finite
    assert not SimulationResult(np.array([np.nan]), steady=False).is_finite
