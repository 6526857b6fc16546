# ruff: noqa: B008
"""Command-line entry point for approximate distinct-line counting."""

from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

SRC_ROOT = Path(__file__).resolve().parent.parent / "src"

try:
    from uniq_core import __version__
    from uniq_core import config as config_module
    from uniq_core.errors import CardinalityError
    from uniq_core.hashing import HASHERS
    from uniq_core.pipeline import CardinalityPipeline
except ModuleNotFoundError:  # pragma: no cover - fallback when running from a checkout
    if str(SRC_ROOT) not in sys.path:
        sys.path.insert(0, str(SRC_ROOT))
    from uniq_core import __version__
    from uniq_core import config as config_module
    from uniq_core.errors import CardinalityError
    from uniq_core.hashing import HASHERS
    from uniq_core.pipeline import CardinalityPipeline

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"uniqcount version {__version__}")
        raise typer.Exit()


app = typer.Typer(help="Estimate the number of distinct lines in large files.")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """HyperLogLog distinct-line counter CLI."""
    pass


def _config() -> config_module.AppConfig:
    return config_module.AppConfig.from_env()


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _summary_lines(payload: dict[str, Any]) -> list[str]:
    lines = [f"Estimated number of unique rows: {payload['estimate']}"]
    if "exact" in payload:
        lines.append(f"Exact number of unique rows: {payload['exact']}")
        lines.append(
            f"Relative error: {payload['relative_error']:.4%} "
            f"(expected ~{payload['standard_error']:.4%})"
        )
    return lines


@app.command()
def estimate(
    path: str = typer.Argument(..., help="Input file, or '-' to read stdin"),
    precision: int | None = typer.Option(
        None,
        "--precision",
        "-p",
        min=4,
        max=16,
        help="Register index bits; m = 2^p registers (default: {{HLL_PRECISION}} or 14)",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Parallel scanners (default: {{INGEST_WORKERS}} or CPU count)",
    ),
    executor: str | None = typer.Option(
        None, "--executor", help="Worker pool kind [process|thread]"
    ),
    hash_name: str | None = typer.Option(
        None, "--hash", help=f"Hash function [{'|'.join(HASHERS)}]"
    ),
    exact: bool = typer.Option(
        False, "--exact", help="Also count distinct lines exactly and report the error"
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit the result as JSON"),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (default: {{LOG_LEVEL}} or WARNING)"
    ),
) -> None:
    """Estimate the number of distinct lines in PATH."""

    try:
        cfg = _config().with_overrides(
            sketch__precision=precision,
            sketch__hash_name=hash_name,
            ingest__workers=workers,
            ingest__executor=executor,
            log__level=log_level,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _configure_logging(cfg.log.level)

    pipeline = CardinalityPipeline(config=cfg)
    try:
        if path == "-":
            if exact:
                raise typer.BadParameter("--exact needs a file; stdin can only be read once.")
            payload = pipeline.estimate_stream(typer.get_binary_stream("stdin"))
        else:
            payload = pipeline.estimate_file(Path(path), exact=exact)
    except CardinalityError as exc:
        typer.echo(f"Error [{exc.stage}]: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(json.dumps(payload, indent=2))
        return
    for line in _summary_lines(payload):
        typer.echo(line)


@app.command(name="generate-synthetic")
def generate_synthetic(
    out: Path = typer.Option(..., "--out", "-o", help="Destination file"),
    lines: int = typer.Option(100000, "--lines", "-n", min=0, help="Total lines to write"),
    unique: int = typer.Option(
        10000, "--unique", "-u", min=0, help="Distinct values among the lines"
    ),
    seed: int = typer.Option(20251009, "--seed", help="Random seed"),
) -> None:
    """Write a shuffled file of LINES lines drawn from exactly UNIQUE distinct values."""

    if unique > lines:
        raise typer.BadParameter("--unique cannot exceed --lines.")
    if lines and not unique:
        raise typer.BadParameter("--unique must be positive when --lines is positive.")

    rng = random.Random(seed)
    values = [f"value-{i:010d}" for i in range(unique)]
    rows = values + [rng.choice(values) for _ in range(lines - unique)]
    rng.shuffle(rows)

    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as fp:
        for row in rows:
            fp.write(row + "\n")

    typer.echo(f"Generated {lines} lines with {unique} distinct values.\n  File: {out}")


if __name__ == "__main__":
    app()
