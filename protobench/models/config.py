"""Configuration models for protobench."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from protobench.models.comparison import Protocol

DEFAULT_H2_ADDR = "https://localhost:8444"
DEFAULT_H3_ADDR = "https://localhost:8443"


class TargetConfig(BaseModel):
    """Addresses of the benchmarked service, one per protocol."""

    h2: str = DEFAULT_H2_ADDR
    h3: str = DEFAULT_H3_ADDR

    def address_for(self, protocol: Protocol) -> str:
        return self.h3 if protocol is Protocol.H3 else self.h2


class ServerConfig(BaseModel):
    """Long-lived target servers the orchestrator may manage itself."""

    h2: str = "bench-server-h2 --addr :8444 --cert cert/dev.crt --key cert/dev.key"
    h3: str = "bench-server-h3 --addr :8443 --cert cert/dev.crt --key cert/dev.key"
    settle_seconds: float = 0.5

    def command_for(self, protocol: Protocol) -> str:
        return self.h3 if protocol is Protocol.H3 else self.h2


class RunnerConfig(BaseModel):
    # GOMAXPROCS is the concurrency hint every client receives
    env: dict[str, str] = Field(default_factory=lambda: {"GOMAXPROCS": "8"})
    quiet: bool = True
    terminate_timeout_seconds: float = 5.0
    artifacts_dir: str | None = None


class AnalysisConfig(BaseModel):
    # RPS divisor used when all samples share one timestamp
    duration_floor_seconds: float = 1.0


class StoreConfig(BaseModel):
    directory: str = "./data"


class BenchConfig(BaseModel):
    name: str = "protobench"
    description: str | None = None
    targets: TargetConfig = Field(default_factory=TargetConfig)
    # scenario -> client command, overriding the built-in executable
    clients: dict[str, str] = Field(default_factory=dict)
    servers: ServerConfig = Field(default_factory=ServerConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)


def apply_env_overrides(config: BenchConfig, env: dict[str, str] | None = None) -> BenchConfig:
    """Return a copy with H2_ADDR, H3_ADDR and PROTOBENCH_DATA_DIR applied."""
    env = os.environ if env is None else env
    updated = config.model_copy(deep=True)
    if env.get("H2_ADDR"):
        updated.targets.h2 = env["H2_ADDR"]
    if env.get("H3_ADDR"):
        updated.targets.h3 = env["H3_ADDR"]
    if env.get("PROTOBENCH_DATA_DIR"):
        updated.store.directory = env["PROTOBENCH_DATA_DIR"]
    return updated


def load_config(path: str | Path | None = None) -> BenchConfig:
    if path is None:
        return BenchConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return BenchConfig(**data)
