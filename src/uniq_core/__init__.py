"""Approximate distinct-record counting with mergeable HyperLogLog sketches."""

from .config import AppConfig, IngestSettings, SketchSettings
from .errors import (
    CardinalityError,
    HashFailure,
    HashMismatch,
    InputUnavailable,
    PrecisionMismatch,
    ReadFailure,
)
from .ingest import ParallelIngestor
from .partitions import Partition, plan_partitions
from .pipeline import CardinalityPipeline
from .sketches import ExactSetSketch, HyperLogLogSketch

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "CardinalityError",
    "CardinalityPipeline",
    "ExactSetSketch",
    "HashFailure",
    "HashMismatch",
    "HyperLogLogSketch",
    "IngestSettings",
    "InputUnavailable",
    "ParallelIngestor",
    "Partition",
    "PrecisionMismatch",
    "ReadFailure",
    "SketchSettings",
    "plan_partitions",
]
