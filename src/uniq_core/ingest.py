"""Partitioned parallel ingestion of delimited records into HyperLogLog sketches.

Every worker opens its own handle on the input, scans the records that start
inside its byte range and fills a private sketch. The coordinator waits for
all workers and folds the partial sketches together with ``merge``, which is
order-independent, so the estimate does not depend on the worker count.
"""

from __future__ import annotations

import concurrent.futures
import logging
import math
import os
import stat
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Literal

from .errors import CardinalityError, InputUnavailable, ReadFailure
from .hashing import DEFAULT_HASH
from .partitions import Partition, effective_worker_count, plan_partitions
from .sketches import SketchConfig, SketchFactory, default_factory
from .sketches.hll_impl import HyperLogLogSketch

logger = logging.getLogger(__name__)

ExecutorKind = Literal["process", "thread"]
READ_CHUNK_SIZE = 1 << 16


def check_delimiter(delimiter: bytes) -> bytes:
    if len(delimiter) != 1:
        raise ValueError("delimiter must be exactly one byte")
    return delimiter


class _RecordReader:
    """Reads delimiter-terminated records, delimiter included, from a binary handle."""

    def __init__(self, fp: BinaryIO, delimiter: bytes = b"\n") -> None:
        self._fp = fp
        self._delimiter = check_delimiter(delimiter)
        self._buf = bytearray()
        self._pos = 0

    def read_record(self) -> bytes:
        """Return the next record, a trailing fragment at EOF, or ``b""`` when exhausted."""
        if self._delimiter == b"\n":
            return self._fp.readline()
        while True:
            found = self._buf.find(self._delimiter, self._pos)
            if found >= 0:
                record = bytes(self._buf[self._pos : found + 1])
                self._pos = found + 1
                return record
            chunk = self._fp.read(READ_CHUNK_SIZE)
            if not chunk:
                record = bytes(self._buf[self._pos :])
                self._buf.clear()
                self._pos = 0
                return record
            del self._buf[: self._pos]
            self._pos = 0
            self._buf += chunk


def _scan(reader: _RecordReader, offset: int, end: float, delimiter: bytes) -> Iterator[bytes]:
    while offset < end:
        record = reader.read_record()
        if not record:
            break
        offset += len(record)
        if record.endswith(delimiter):
            record = record[:-1]
        yield record


def iter_records(
    fp: BinaryIO, start: int, end: int, delimiter: bytes = b"\n"
) -> Iterator[bytes]:
    """Yield the records owned by the byte range ``[start, end)``.

    A record belongs to the range its first byte falls in. A range that does
    not begin at zero steps back one byte and drops everything through the
    first delimiter: that fragment was read in full by the previous range,
    while a record starting exactly at ``start`` survives the step back. The
    last owned record is read through its delimiter even past ``end``.
    Yielded records exclude the delimiter; an unterminated final record is
    still yielded if non-empty.
    """

    reader = _RecordReader(fp, delimiter)
    if start > 0:
        fp.seek(start - 1)
        offset = start - 1 + len(reader.read_record())
    else:
        fp.seek(0)
        offset = 0
    yield from _scan(reader, offset, end, delimiter)


def iter_stream_records(fp: BinaryIO, delimiter: bytes = b"\n") -> Iterator[bytes]:
    """Yield every record of a non-seekable stream such as stdin."""
    yield from _scan(_RecordReader(fp, delimiter), 0, math.inf, delimiter)


@dataclass(slots=True)
class PartialResult:
    """A finished worker's sketch; the coordinator becomes its only owner."""

    partition: Partition
    sketch: HyperLogLogSketch
    records: int


@dataclass(slots=True)
class IngestReport:
    total_bytes: int | None
    workers: int
    partitions: int
    records: int
    elapsed_seconds: float


def scan_partition(
    path: str | Path,
    partition: Partition,
    precision: int,
    hash_name: str = DEFAULT_HASH,
    delimiter: bytes = b"\n",
) -> PartialResult:
    """Worker entry point: scan one partition through a private file handle."""

    sketch = HyperLogLogSketch(precision=precision, hash_name=hash_name)
    try:
        with open(path, "rb") as fp:
            records = sketch.add_many(iter_records(fp, partition.start, partition.end, delimiter))
    except OSError as exc:
        raise ReadFailure(
            f"error reading partition {partition.index} "
            f"[{partition.start}, {partition.end}) of {path}: {exc}"
        ) from exc
    logger.debug(
        "Partition %d [%d, %d) scanned %d records",
        partition.index,
        partition.start,
        partition.end,
        records,
    )
    return PartialResult(partition=partition, sketch=sketch, records=records)


class ParallelIngestor:
    """Coordinates one sketch per worker and merges them into the final sketch."""

    def __init__(
        self,
        precision: int = 14,
        workers: int | None = None,
        executor: ExecutorKind = "process",
        hash_name: str = DEFAULT_HASH,
        delimiter: bytes = b"\n",
        sketch_factory: SketchFactory | None = None,
    ) -> None:
        if executor not in ("process", "thread"):
            raise ValueError("executor must be 'process' or 'thread'")
        if workers is not None and workers < 1:
            raise ValueError("workers must be at least 1")
        if sketch_factory is None:
            sketch_factory = default_factory(SketchConfig(precision=precision, hash_name=hash_name))
        elif sketch_factory.config != SketchConfig(precision=precision, hash_name=hash_name):
            raise ValueError("sketch factory config does not match ingestor precision and hash")
        self.sketch_factory = sketch_factory
        self.precision = precision
        self.workers = workers
        self.executor = executor
        self.hash_name = hash_name
        self.delimiter = check_delimiter(delimiter)
        self.last_report: IngestReport | None = None
        # Fail fast on a bad precision or hash name before any worker starts.
        self._empty_sketch()

    def _empty_sketch(self) -> HyperLogLogSketch:
        sketch = self.sketch_factory.create("hll")
        if not isinstance(sketch, HyperLogLogSketch):
            raise TypeError(f"'hll' builder returned {type(sketch).__name__}")
        return sketch

    def _requested_workers(self) -> int:
        return self.workers or os.cpu_count() or 1

    def ingest_file(self, path: str | Path) -> HyperLogLogSketch:
        """Estimate a file by byte ranges, or stream it when its size is unknown."""
        started = time.perf_counter()
        path = Path(path)
        try:
            st = path.stat()
        except OSError as exc:
            raise InputUnavailable(f"error opening file {path}: {exc}") from exc
        if not stat.S_ISREG(st.st_mode):
            # Pipes and process substitutions have no size to partition.
            logger.debug("%s is not a regular file, streaming on one worker", path)
            try:
                fp = path.open("rb")
            except OSError as exc:
                raise InputUnavailable(f"error opening file {path}: {exc}") from exc
            with fp:
                return self.ingest_stream(fp, name=str(path))
        try:
            with path.open("rb"):
                pass
        except OSError as exc:
            raise InputUnavailable(f"error opening file {path}: {exc}") from exc

        total_length = st.st_size
        workers = effective_worker_count(total_length, self._requested_workers())
        partitions = plan_partitions(total_length, workers)
        logger.debug(
            "Planned %d partitions over %d bytes of %s", len(partitions), total_length, path
        )

        results = self._run(path, partitions)
        merged = self._empty_sketch()
        for result in sorted(results, key=lambda r: r.partition.index):
            merged.merge(result.sketch)

        records = sum(result.records for result in results)
        self.last_report = IngestReport(
            total_bytes=total_length,
            workers=workers,
            partitions=len(partitions),
            records=records,
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info(
            "Scanned %d records from %s with %d workers in %.3fs",
            records,
            path,
            workers,
            self.last_report.elapsed_seconds,
        )
        return merged

    def ingest_stream(self, fp: BinaryIO, name: str = "<stream>") -> HyperLogLogSketch:
        """Scan an unsized input on a single worker."""
        started = time.perf_counter()
        sketch = self._empty_sketch()
        try:
            records = sketch.add_many(iter_stream_records(fp, self.delimiter))
        except OSError as exc:
            raise ReadFailure(f"error reading {name}: {exc}") from exc
        self.last_report = IngestReport(
            total_bytes=None,
            workers=1,
            partitions=1,
            records=records,
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info("Scanned %d records from %s", records, name)
        return sketch

    def _run(self, path: Path, partitions: list[Partition]) -> list[PartialResult]:
        if len(partitions) == 1:
            return [
                scan_partition(path, partitions[0], self.precision, self.hash_name, self.delimiter)
            ]

        pool_cls = (
            concurrent.futures.ProcessPoolExecutor
            if self.executor == "process"
            else concurrent.futures.ThreadPoolExecutor
        )
        try:
            pool = pool_cls(max_workers=len(partitions))
        except (OSError, NotImplementedError) as exc:
            # Raised by ProcessPoolExecutor on hosts without working semaphores.
            raise ReadFailure(f"could not start {self.executor} workers: {exc}") from exc
        with pool:
            futures = {
                pool.submit(
                    scan_partition,
                    str(path),
                    partition,
                    self.precision,
                    self.hash_name,
                    self.delimiter,
                ): partition
                for partition in partitions
            }
            concurrent.futures.wait(futures)

        results: list[PartialResult] = []
        failures: list[tuple[Partition, BaseException]] = []
        for future, partition in futures.items():
            exc = future.exception()
            if exc is None:
                results.append(future.result())
            else:
                failures.append((partition, exc))
        if failures:
            failures.sort(key=lambda item: item[0].index)
            for partition, exc in failures:
                logger.error("Worker for partition %d failed: %s", partition.index, exc)
            partition, exc = failures[0]
            if isinstance(exc, CardinalityError):
                raise exc
            raise ReadFailure(f"worker for partition {partition.index} failed: {exc}") from exc
        return results
