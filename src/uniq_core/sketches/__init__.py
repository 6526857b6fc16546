"""Sketch selection helpers."""

from .base import DistinctSketch, SketchConfig, SketchFactory
from .hll_impl import HyperLogLogSketch, alpha_for
from .set_impl import ExactSetSketch


def default_factory(config: SketchConfig, default_impl: str = "hll") -> SketchFactory:
    factory = SketchFactory(config=config, default_impl=default_impl)
    factory.register("hll", HyperLogLogSketch.from_config)
    factory.register("set", ExactSetSketch)
    return factory


__all__ = [
    "DistinctSketch",
    "ExactSetSketch",
    "HyperLogLogSketch",
    "SketchConfig",
    "SketchFactory",
    "alpha_for",
    "default_factory",
]
