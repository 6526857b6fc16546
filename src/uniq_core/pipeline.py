"""Estimation pipeline orchestration."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Any, BinaryIO

from . import config as config_module
from .errors import CardinalityError, InputUnavailable, ReadFailure
from .ingest import IngestReport, ParallelIngestor, iter_records
from .sketches import SketchConfig, default_factory
from .sketches.hll_impl import HyperLogLogSketch

logger = logging.getLogger(__name__)


class CardinalityPipeline:
    def __init__(self, config: config_module.AppConfig | None = None) -> None:
        self.config = config or config_module.AppConfig.from_env()
        self.sketch_factory = default_factory(
            SketchConfig(
                precision=self.config.sketch.precision,
                hash_name=self.config.sketch.hash_name,
            )
        )
        self.ingestor = ParallelIngestor(
            precision=self.config.sketch.precision,
            workers=self.config.ingest.workers,
            executor=self.config.ingest.executor,  # type: ignore[arg-type]
            hash_name=self.config.sketch.hash_name,
            delimiter=self.config.ingest.delimiter_bytes,
            sketch_factory=self.sketch_factory,
        )

    def _report(self) -> IngestReport:
        report = self.ingestor.last_report
        if report is None:
            raise CardinalityError("ingestion finished without a report")
        return report

    def _payload(
        self, source: str, sketch: HyperLogLogSketch, report: IngestReport
    ) -> dict[str, Any]:
        return {
            "path": source,
            "estimate": sketch.estimate(),
            "precision": sketch.precision,
            "registers": sketch.m,
            "hash": sketch.hash_name,
            "standard_error": sketch.standard_error(),
            "workers": report.workers,
            "partitions": report.partitions,
            "records": report.records,
            "elapsed_seconds": report.elapsed_seconds,
        }

    def estimate_file(self, path: str | Path, exact: bool = False) -> dict[str, Any]:
        sketch = self.ingestor.ingest_file(path)
        payload = self._payload(str(path), sketch, self._report())
        if exact:
            exact_value = self.exact_count(path)
            payload["exact"] = exact_value
            payload["relative_error"] = _relative_error(payload["estimate"], exact_value)
        return payload

    def estimate_stream(self, fp: BinaryIO, name: str = "<stdin>") -> dict[str, Any]:
        sketch = self.ingestor.ingest_stream(fp, name=name)
        return self._payload(name, sketch, self._report())

    def exact_count(self, path: str | Path) -> int:
        """Count distinct records exactly; memory grows with the distinct count."""
        baseline = self.sketch_factory.create("set")
        try:
            fp = open(path, "rb")
            st = os.fstat(fp.fileno())
        except OSError as exc:
            raise InputUnavailable(f"error opening file {path}: {exc}") from exc
        if not stat.S_ISREG(st.st_mode):
            fp.close()
            raise InputUnavailable(f"exact count needs a regular file, got {path}")
        total_length = st.st_size
        try:
            with fp:
                baseline.add_many(iter_records(fp, 0, total_length, self.ingestor.delimiter))
        except OSError as exc:
            raise ReadFailure(f"error reading file {path}: {exc}") from exc
        logger.debug("Exact baseline for %s: %d", path, baseline.estimate())
        return baseline.estimate()


def _relative_error(estimate: int, exact: int) -> float:
    if exact == 0:
        return 0.0 if estimate == 0 else float("inf")
    return abs(estimate - exact) / exact
