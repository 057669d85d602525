import os
from dataclasses import dataclass, field
from pathlib import Path

from protobench.models import BenchConfig, apply_env_overrides, load_config
from protobench.storage import FileRunStore

_CONFIG_CANDIDATES = ("protobench.yaml", "protobench.yml", ".protobench.yaml")


def find_config(config_path: Path | None) -> Path | None:
    """Find the config file, checking common locations."""
    if config_path and config_path.exists():
        return config_path
    for name in _CONFIG_CANDIDATES:
        candidate = Path(name)
        if candidate.exists():
            return candidate
    return None


def resolve_store_dir(
    config: BenchConfig, config_path: Path | None, override: Path | None = None
) -> Path:
    if override:
        return override.expanduser()
    store_dir = Path(config.store.directory).expanduser()
    if config_path and not store_dir.is_absolute():
        store_dir = (config_path.parent / store_dir).resolve()
    return store_dir


@dataclass
class BenchContext:
    config: BenchConfig
    config_path: Path | None
    store_dir: Path
    env: dict[str, str] = field(default_factory=dict)

    def open_store(self) -> FileRunStore:
        """Open the run store; callers keep the handle and pass it on."""
        return FileRunStore(self.store_dir)


def build_context(
    config_path: Path | None = None,
    store_dir_override: Path | None = None,
    env_overrides: dict[str, str] | None = None,
) -> BenchContext:
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    if config_path and not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    found = find_config(config_path)
    config = apply_env_overrides(load_config(found), env)

    return BenchContext(
        config=config,
        config_path=found,
        store_dir=resolve_store_dir(config, found, store_dir_override),
        env=env,
    )
