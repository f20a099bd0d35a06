"""Tests for order key allocation (board/ordering.py)."""

from __future__ import annotations

import random

import pytest

from farm_task_board.board.model import Task
from farm_task_board.board.ordering import allocate, is_between, needs_rebalance, rebalance


def _lane(*keys: float) -> list[Task]:
    return [Task(id=i + 1, order_key=k) for i, k in enumerate(keys)]


class TestAllocate:
    def test_empty_lane_is_zero(self) -> None:
        assert allocate([], 0) == 0
        assert allocate([], 4) == 0

    def test_front(self) -> None:
        assert allocate(_lane(5.0), 0) == 4.0

    def test_end(self) -> None:
        assert allocate(_lane(5.0), 1) == 6.0
        assert allocate(_lane(5.0), 10) == 6.0

    def test_between(self) -> None:
        assert allocate(_lane(1.0, 3.0), 1) == 2.0

    @pytest.mark.parametrize("index", [0, 1, 2, 3, 4])
    def test_result_sorts_into_place(self, index: int) -> None:
        lane = _lane(-2.0, 0.5, 0.75, 10.0)
        key = allocate(lane, index)
        keys = [t.order_key for t in lane]
        keys.insert(index, key)
        assert keys == sorted(keys)
        assert len(set(keys)) == len(keys)

    def test_random_inserts_stay_strictly_between(self) -> None:
        rng = random.Random(42)
        lane: list[Task] = []
        for n in range(300):
            index = rng.randint(0, len(lane))
            key = allocate(lane, index)
            if 0 < index < len(lane):
                assert lane[index - 1].order_key < key < lane[index].order_key
            assert is_between(key, lane, index)
            lane.insert(index, Task(id=n, order_key=key))
        keys = [t.order_key for t in lane]
        assert keys == sorted(keys)

    def test_repeated_midpoints_eventually_collide(self) -> None:
        lane = _lane(0.0, 1.0)
        for _ in range(2000):
            key = allocate(lane, 1)
            if not is_between(key, lane, 1):
                break
            lane = [lane[0], Task(id=99, order_key=key)]
        else:
            pytest.fail("float midpoints never collapsed")
        assert needs_rebalance([t.order_key for t in lane])


class TestRebalance:
    def test_needs_rebalance(self) -> None:
        assert not needs_rebalance([])
        assert not needs_rebalance([0.0, 1.0, 2.5])
        assert needs_rebalance([0.0, 0.0])
        assert needs_rebalance([2.0, 1.0])

    def test_respaces_keeping_order(self) -> None:
        lane = _lane(-3.0, 1.0, 1.5)
        assert rebalance(lane) == [(1, 0.0), (3, 2.0)]

    def test_already_balanced(self) -> None:
        assert rebalance(_lane(0.0, 1.0, 2.0)) == []
