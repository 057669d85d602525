"""Storage and persistence for protobench runs."""

from protobench.storage.artifacts import (
    artifact_path,
    parse_samples,
    read_artifact,
    remove_artifact,
)
from protobench.storage.base import RunStore
from protobench.storage.runs import FileRunStore

__all__ = [
    # artifacts.py
    "artifact_path",
    "parse_samples",
    "read_artifact",
    "remove_artifact",
    # base.py
    "RunStore",
    # runs.py
    "FileRunStore",
]
