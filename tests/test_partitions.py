import hypothesis.strategies as st
import pytest
from hypothesis import given

from uniq_core.partitions import Partition, effective_worker_count, plan_partitions


def test_even_split() -> None:
    assert plan_partitions(100, 4) == [
        Partition(0, 0, 25),
        Partition(1, 25, 50),
        Partition(2, 50, 75),
        Partition(3, 75, 100),
    ]


def test_last_partition_absorbs_remainder() -> None:
    parts = plan_partitions(10, 3)
    assert [(p.start, p.end) for p in parts] == [(0, 3), (3, 6), (6, 10)]
    assert parts[-1].length == 4


def test_zero_length_input_yields_empty_partitions() -> None:
    parts = plan_partitions(0, 4)
    assert len(parts) == 4
    assert all(p.is_empty for p in parts)


def test_more_workers_than_bytes_leaves_leading_ranges_empty() -> None:
    parts = plan_partitions(3, 5)
    assert [p.length for p in parts] == [0, 0, 0, 0, 3]


@pytest.mark.parametrize(("total", "workers"), [(10, 0), (-1, 2)])
def test_invalid_arguments(total: int, workers: int) -> None:
    with pytest.raises(ValueError):
        plan_partitions(total, workers)


def test_effective_worker_count() -> None:
    assert effective_worker_count(3, 8) == 3
    assert effective_worker_count(0, 8) == 1
    assert effective_worker_count(1 << 30, 8) == 8
    with pytest.raises(ValueError):
        effective_worker_count(10, 0)


@given(total=st.integers(min_value=0, max_value=10**12), workers=st.integers(1, 64))
def test_partitions_cover_input_without_gaps(total: int, workers: int) -> None:
    parts = plan_partitions(total, workers)
    assert len(parts) == workers
    assert parts[0].start == 0
    assert parts[-1].end == total
    for prev, nxt in zip(parts, parts[1:]):
        assert prev.end == nxt.start
    assert [p.index for p in parts] == list(range(workers))
    assert sum(p.length for p in parts) == total
