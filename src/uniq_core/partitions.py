"""Byte-range planning for parallel scans of a single input."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Partition:
    """Half-open byte range ``[start, end)`` assigned to one worker."""

    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start


def plan_partitions(total_length: int, worker_count: int) -> list[Partition]:
    """Split ``[0, total_length)`` into ``worker_count`` contiguous ranges.

    Ranges are equal up to integer division; the last one absorbs the
    remainder. A zero-length input still yields ``worker_count`` empty ranges.
    Record boundaries are not considered here, see ``ingest.iter_records``.
    """

    if worker_count < 1:
        raise ValueError("worker_count must be at least 1")
    if total_length < 0:
        raise ValueError("total_length must not be negative")
    part_size = total_length // worker_count
    partitions: list[Partition] = []
    for i in range(worker_count):
        start = i * part_size
        end = total_length if i == worker_count - 1 else start + part_size
        partitions.append(Partition(index=i, start=start, end=end))
    return partitions


def effective_worker_count(total_length: int, requested: int) -> int:
    """Cap the worker count at one per byte, keeping at least one worker."""
    if requested < 1:
        raise ValueError("requested worker count must be at least 1")
    return max(1, min(requested, total_length))
