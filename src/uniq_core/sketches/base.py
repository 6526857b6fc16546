"""Abstract sketch interface and factory utilities."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Callable


@dataclass(frozen=True)
class SketchConfig:
    """Runtime configuration shared by sketch implementations."""

    precision: int = 14
    hash_name: str = "blake2b_32"


class DistinctSketch(ABC):
    """Common interface for distinct-count sketches."""

    @abstractmethod
    def add(self, key: bytes) -> None: ...

    @abstractmethod
    def merge(self, other: "DistinctSketch") -> None: ...

    @abstractmethod
    def estimate(self) -> int: ...

    @abstractmethod
    def copy(self) -> "DistinctSketch": ...

    def add_many(self, keys: Iterable[bytes]) -> int:
        count = 0
        for key in keys:
            self.add(key)
            count += 1
        return count


SketchBuilder = Callable[[SketchConfig], DistinctSketch]


@dataclass(slots=True)
class SketchFactory:
    """Factory that produces sketches based on configuration."""

    config: SketchConfig
    builders: dict[str, SketchBuilder] = field(default_factory=dict)
    default_impl: str = "hll"

    def register(self, name: str, builder: SketchBuilder) -> None:
        self.builders[name] = builder

    def _resolve(self, name: str | None) -> SketchBuilder:
        impl_name = name or self.default_impl
        if impl_name not in self.builders:
            raise KeyError(f"Unknown sketch implementation: {impl_name}")
        return self.builders[impl_name]

    def create(self, name: str | None = None) -> DistinctSketch:
        return self._resolve(name)(self.config)
