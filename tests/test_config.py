from pathlib import Path

import pytest

from protobench.context import build_context, resolve_store_dir
from protobench.errors import InvalidInput
from protobench.models import BenchConfig, Protocol, apply_env_overrides, load_config
from protobench.scenarios import (
    build_client_command,
    build_server_command,
    client_executable,
    known_scenarios,
    validate_scenario,
)


def test_defaults_without_file():
    config = load_config(None)
    assert config.targets.h2 == "https://localhost:8444"
    assert config.targets.h3 == "https://localhost:8443"
    assert config.runner.env == {"GOMAXPROCS": "8"}
    assert config.analysis.duration_floor_seconds == 1.0


def test_yaml_file_is_loaded(tmp_path):
    path = tmp_path / "protobench.yaml"
    path.write_text(
        "name: lab\n"
        "targets:\n"
        "  h3: https://edge:9443\n"
        "clients:\n"
        "  burst: ./bin/bench-burst --warmup 2\n"
        "analysis:\n"
        "  duration_floor_seconds: 0.25\n"
    )
    config = load_config(path)

    assert config.name == "lab"
    assert config.targets.h3 == "https://edge:9443"
    assert config.targets.h2 == "https://localhost:8444"
    assert client_executable(config, "burst") == ["./bin/bench-burst", "--warmup", "2"]
    assert config.analysis.duration_floor_seconds == 0.25


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_env_overrides_return_a_copy():
    base = BenchConfig()
    updated = apply_env_overrides(
        base, {"H2_ADDR": "https://a:1", "H3_ADDR": "https://b:2", "PROTOBENCH_DATA_DIR": "/var/pb"}
    )

    assert updated.targets.h2 == "https://a:1"
    assert updated.targets.h3 == "https://b:2"
    assert updated.store.directory == "/var/pb"
    assert base.targets.h2 == "https://localhost:8444"


def test_store_dir_is_relative_to_config(tmp_path):
    config_path = tmp_path / "conf" / "protobench.yaml"
    assert resolve_store_dir(BenchConfig(), config_path) == (tmp_path / "conf" / "data").resolve()
    assert resolve_store_dir(BenchConfig(), config_path, tmp_path / "x") == tmp_path / "x"


def test_build_context_applies_env(tmp_path):
    path = tmp_path / "protobench.yaml"
    path.write_text("store:\n  directory: runs\n")

    ctx = build_context(path, env_overrides={"H3_ADDR": "https://quic:4433"})

    assert ctx.config_path == path
    assert ctx.config.targets.h3 == "https://quic:4433"
    assert ctx.env["H3_ADDR"] == "https://quic:4433"
    assert ctx.store_dir == (tmp_path / "runs").resolve()
    assert ctx.open_store().runs_dir.is_dir()


def test_client_commands_differ_only_in_address_and_h3_flag():
    config = BenchConfig()
    a = build_client_command(config, "baseline", Protocol.H2, Path("/tmp/a.csv"))
    b = build_client_command(config, "baseline", Protocol.H3, Path("/tmp/b.csv"))

    assert a.argv == [
        "bench-client",
        "--addr",
        "https://localhost:8444",
        "--h3=false",
        "--csv",
        "/tmp/a.csv",
        "--quiet",
    ]
    assert b.argv[:5] == ["bench-client", "--addr", "https://localhost:8443", "--h3=true", "--csv"]
    assert a.env == {"GOMAXPROCS": "8"}
    assert str(a).startswith("bench-client --addr")


def test_scenario_flags_are_appended():
    cmd = build_client_command(BenchConfig(), "cold_vs_resumed", Protocol.H3, Path("/tmp/c.csv"))
    assert cmd.argv[0] == "bench-coldstart"
    assert cmd.argv[-2:] == ["--mode", "cold"]


def test_server_command_is_split():
    argv = build_server_command(BenchConfig(), Protocol.H3)
    assert argv[:3] == ["bench-server-h3", "--addr", ":8443"]


def test_scenario_catalog():
    assert len(known_scenarios()) == 10
    assert validate_scenario("nat_rebinding") == "nat_rebinding"
    with pytest.raises(InvalidInput, match="Valid:"):
        validate_scenario("bogus")
    with pytest.raises(InvalidInput):
        Protocol.parse("h1")
