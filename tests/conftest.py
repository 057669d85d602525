"""Shared fixtures: fake client/server executables and an isolated store."""

import shlex
import sys
from pathlib import Path

import pytest

from protobench.models import BenchConfig, RunnerConfig, ServerConfig, StoreConfig
from protobench.scenarios import SCENARIO_MAP
from protobench.storage import FileRunStore

FIXTURES = Path(__file__).parent / "fixtures"
FAKE_CLIENT = shlex.join([sys.executable, str(FIXTURES / "fake_client.py")])
FAKE_SERVER = shlex.join([sys.executable, str(FIXTURES / "fake_server.py")])


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def make_config(tmp_path: Path, artifacts_dir: Path):
    """Build a config whose clients and servers are the fake scripts.

    Keyword arguments become environment variables for the clients.
    """

    def _make(servers: ServerConfig | None = None, **client_env: str) -> BenchConfig:
        return BenchConfig(
            clients={name: FAKE_CLIENT for name in SCENARIO_MAP},
            servers=servers
            or ServerConfig(
                h2=f"{FAKE_SERVER} --addr :8444",
                h3=f"{FAKE_SERVER} --addr :8443",
                settle_seconds=0.3,
            ),
            runner=RunnerConfig(
                env={"GOMAXPROCS": "2", **client_env},
                artifacts_dir=str(artifacts_dir),
                terminate_timeout_seconds=2.0,
            ),
            store=StoreConfig(directory=str(tmp_path / "data")),
        )

    return _make


@pytest.fixture
def config(make_config) -> BenchConfig:
    return make_config()


@pytest.fixture
def store(tmp_path: Path) -> FileRunStore:
    return FileRunStore(tmp_path / "store")
