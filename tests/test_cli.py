"""Tests for the Typer CLI entrypoint."""

from pathlib import Path

import orjson
import pytest
import yaml
from typer.testing import CliRunner

import protobench.cli as cli
from protobench.models import EndEvent, InfoEvent, ResultEvent, parse_event

runner = CliRunner()


@pytest.fixture
def write_config(tmp_path: Path, make_config):
    def _write(**client_env: str) -> Path:
        path = tmp_path / "protobench.yaml"
        path.write_text(yaml.safe_dump(make_config(**client_env).model_dump()))
        return path

    return _write


def _invoke(config_path: Path, *args: str):
    data_dir = config_path.parent / "cli-data"
    return runner.invoke(
        cli.app, ["--config", str(config_path), "--data-dir", str(data_dir), *args]
    )


def test_scenarios_lists_catalog(write_config):
    result = _invoke(write_config(), "scenarios")
    assert result.exit_code == 0
    for name in ("baseline", "cold_vs_resumed", "stress_test"):
        assert name in result.stdout


def test_compare_records_run_and_reports(write_config):
    config_path = write_config(FAKE_LATENCIES_H2="20,20,20", FAKE_LATENCIES_H3="10,10,10")

    result = _invoke(config_path, "compare", "baseline", "--no-logs")

    assert result.exit_code == 0, result.output
    assert "Recorded as run 1" in result.stdout
    assert "done" in result.stdout

    listed = _invoke(config_path, "runs", "baseline")
    assert listed.exit_code == 0
    assert "baseline" in listed.stdout

    summary = _invoke(config_path, "summary", "baseline", "--json")
    assert summary.exit_code == 0
    data = orjson.loads(summary.stdout)
    assert data["latency"]["h3_wins"] == 1
    assert data["winner"]["latency"] == "h3"


def test_compare_json_emits_one_event_per_line(write_config):
    result = _invoke(write_config(), "compare", "burst", "--json", "--no-persist")

    assert result.exit_code == 0, result.output
    events = [parse_event(line) for line in result.stdout.splitlines() if line.strip()]
    assert isinstance(events[0], InfoEvent)
    assert events[-1] == EndEvent(ok=True)
    assert sum(isinstance(e, ResultEvent) for e in events) == 1


def test_compare_failure_exits_non_zero(write_config):
    result = _invoke(write_config(FAKE_FAIL="h2"), "compare", "baseline")
    assert result.exit_code == 1
    assert "aborted" in result.stdout


def test_compare_unknown_scenario(write_config):
    result = _invoke(write_config(), "compare", "warp_drive")
    assert result.exit_code == 2


def test_bench_prints_single_summary(write_config):
    result = _invoke(write_config(FAKE_LATENCIES_H3="5,6,7"), "bench", "baseline", "-p", "h3")
    assert result.exit_code == 0, result.output
    assert "HTTP/3" in result.stdout
    assert "6.000 ms" in result.stdout


def test_bench_unknown_protocol(write_config):
    result = _invoke(write_config(), "bench", "baseline", "-p", "spdy")
    assert result.exit_code == 2


def test_stability_without_runs(write_config):
    result = _invoke(write_config(), "stability", "baseline")
    assert result.exit_code == 0
    assert "No runs recorded" in result.stdout


def test_stability_json_after_runs(write_config):
    config_path = write_config()
    for _ in range(2):
        assert _invoke(config_path, "compare", "baseline", "--no-logs").exit_code == 0

    result = _invoke(config_path, "stability", "baseline", "--json")

    assert result.exit_code == 0
    data = orjson.loads(result.stdout)
    assert len(data["runs"]) == 2
    assert data["stability"]["winner"] == "tie"


def test_delete_run(write_config):
    config_path = write_config()
    assert _invoke(config_path, "compare", "baseline", "--no-logs").exit_code == 0

    assert _invoke(config_path, "delete", "1", "--yes").exit_code == 0
    assert _invoke(config_path, "delete", "1", "--yes").exit_code == 1
    assert "No runs found" in _invoke(config_path, "runs").stdout


def test_missing_config_file(tmp_path):
    result = runner.invoke(cli.app, ["--config", str(tmp_path / "absent.yaml"), "runs"])
    assert result.exit_code == 2
