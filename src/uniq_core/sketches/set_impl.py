"""Exact set-backed counter used as a ground-truth baseline."""

from __future__ import annotations

from collections.abc import Iterable

from .base import DistinctSketch, SketchConfig


class ExactSetSketch(DistinctSketch):
    """Exact distinct counter; memory grows with the number of distinct keys.

    Only used to measure the estimator's error, never as part of it.
    """

    def __init__(
        self, config: SketchConfig | None = None, keys: Iterable[bytes] | None = None
    ) -> None:
        self._config = config or SketchConfig()
        self._keys = set(keys or [])

    def add(self, key: bytes) -> None:
        self._keys.add(bytes(key))

    def merge(self, other: DistinctSketch) -> None:
        if not isinstance(other, ExactSetSketch):
            raise TypeError("ExactSetSketch can only merge another ExactSetSketch.")
        self._keys.update(other._keys)

    def estimate(self) -> int:
        return len(self._keys)

    def copy(self) -> "ExactSetSketch":
        return ExactSetSketch(self._config, self._keys)

    def keys(self) -> set[bytes]:
        """Testing helper exposing the underlying keys."""
        return set(self._keys)
