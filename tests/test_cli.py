import json
from pathlib import Path

from typer.testing import CliRunner

from cli import uniqcount

runner = CliRunner()


def _generate(path: Path, lines: int, unique: int) -> None:
    result = runner.invoke(
        uniqcount.app,
        [
            "generate-synthetic",
            "--out",
            str(path),
            "--lines",
            str(lines),
            "--unique",
            str(unique),
            "--seed",
            "7",
        ],
    )
    assert result.exit_code == 0, result.output


def test_generate_then_estimate_with_exact(tmp_path: Path) -> None:
    dataset = tmp_path / "streams" / "synthetic.txt"
    _generate(dataset, lines=5000, unique=1200)
    assert len(dataset.read_text(encoding="utf-8").splitlines()) == 5000

    result = runner.invoke(uniqcount.app, ["estimate", str(dataset), "--workers", "3", "--exact"])
    assert result.exit_code == 0, result.output
    assert "Estimated number of unique rows:" in result.stdout
    assert "Exact number of unique rows: 1200" in result.stdout
    assert "Relative error:" in result.stdout


def test_estimate_json_output(tmp_path: Path) -> None:
    dataset = tmp_path / "data.txt"
    _generate(dataset, lines=300, unique=300)

    result = runner.invoke(
        uniqcount.app, ["estimate", str(dataset), "--precision", "12", "--json"]
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["precision"] == 12
    assert payload["records"] == 300
    assert abs(payload["estimate"] - 300) <= 15


def test_estimate_reads_stdin() -> None:
    result = runner.invoke(uniqcount.app, ["estimate", "-", "--json"], input="x\ny\nx\n")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["estimate"] == 2
    assert payload["path"] == "<stdin>"


def test_missing_file_reports_input_stage(tmp_path: Path) -> None:
    result = runner.invoke(uniqcount.app, ["estimate", str(tmp_path / "missing.txt")])
    assert result.exit_code == 1
    assert "Error [input]" in result.output
    assert "Estimated number" not in result.output


def test_invalid_options_are_usage_errors(tmp_path: Path) -> None:
    dataset = tmp_path / "data.txt"
    dataset.write_text("a\n", encoding="utf-8")
    assert runner.invoke(uniqcount.app, ["estimate", str(dataset), "-p", "30"]).exit_code == 2
    assert runner.invoke(uniqcount.app, ["estimate", str(dataset), "--hash", "sha1"]).exit_code == 2
    result = runner.invoke(uniqcount.app, ["estimate", "-", "--exact"], input="a\n")
    assert result.exit_code == 2


def test_generate_rejects_more_unique_than_lines(tmp_path: Path) -> None:
    result = runner.invoke(
        uniqcount.app,
        ["generate-synthetic", "--out", str(tmp_path / "x.txt"), "--lines", "5", "--unique", "6"],
    )
    assert result.exit_code == 2


def test_version_flag() -> None:
    result = runner.invoke(uniqcount.app, ["--version"])
    assert result.exit_code == 0
    assert "uniqcount version" in result.stdout
