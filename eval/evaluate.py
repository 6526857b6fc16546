# ruff: noqa: B008
"""Evaluation harness for estimator accuracy across precisions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer

from uniq_core import config as config_module
from uniq_core.pipeline import CardinalityPipeline

app = typer.Typer(help="Run accuracy evaluations against the exact baseline.")


def build_config(precision: int, workers: int) -> config_module.AppConfig:
    cfg = config_module.AppConfig.from_env()
    return cfg.with_overrides(sketch__precision=precision, ingest__workers=workers)


def evaluate(input_path: Path, precisions: list[int], workers: int) -> list[dict[str, Any]]:
    exact_value: int | None = None
    results: list[dict[str, Any]] = []
    for precision in precisions:
        pipeline = CardinalityPipeline(config=build_config(precision, workers))
        if exact_value is None:
            exact_value = pipeline.exact_count(input_path)
        payload = pipeline.estimate_file(input_path)
        error = abs(payload["estimate"] - exact_value) / exact_value if exact_value else 0.0
        results.append(
            {
                "precision": precision,
                "registers": payload["registers"],
                "estimate": payload["estimate"],
                "exact_value": exact_value,
                "relative_error": error,
                "standard_error": payload["standard_error"],
                "workers": payload["workers"],
                "elapsed_seconds": payload["elapsed_seconds"],
            }
        )
    return results


@app.command()
def main(
    input: Path = typer.Option(..., help="Line-delimited input file"),
    precisions: list[int] = typer.Option([10, 12, 14, 16], help="Precisions to sweep"),
    workers: int = typer.Option(1, min=1, help="Parallel scanners per run"),
    out: Path = typer.Option(Path("results.json"), help="Output results path"),
) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    results = evaluate(input, precisions, workers)
    with out.open("w", encoding="utf-8") as fp:
        json.dump(results, fp, indent=2)
    for row in results:
        typer.echo(
            f"p={row['precision']:>2} estimate={row['estimate']} "
            f"error={row['relative_error']:.4%} bound~{row['standard_error']:.4%}"
        )


if __name__ == "__main__":
    app()
