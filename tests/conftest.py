import sys
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC_ROOT = ROOT / "src"
for entry in (SRC_ROOT, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("HLL_PRECISION", "14")
    monkeypatch.setenv("HASH_FUNCTION", "blake2b_32")
    monkeypatch.setenv("INGEST_WORKERS", "2")
    monkeypatch.setenv("INGEST_EXECUTOR", "thread")
    monkeypatch.delenv("RECORD_DELIMITER", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    yield


@pytest.fixture
def write_lines(tmp_path: Path) -> Callable[..., Path]:
    """Write records to a newline-delimited file under tmp_path."""

    def _write(
        lines: Iterable[str], name: str = "input.txt", trailing_newline: bool = True
    ) -> Path:
        path = tmp_path / name
        body = "\n".join(lines)
        if trailing_newline and body:
            body += "\n"
        path.write_bytes(body.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def unique_lines_file(write_lines: Callable[..., Path]) -> Path:
    return write_lines((f"unique-line-{i:05d}" for i in range(10_000)), name="unique.txt")
