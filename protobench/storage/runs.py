"""File-backed run store."""

import contextlib
import logging
import os
import shutil
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError

from protobench.errors import DuplicateResult, PersistFailure
from protobench.models import Protocol, Result, Run, RunWithResults, Summary

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class FileRunStore:
    """Stores each run as a directory holding ``run.json`` and one file per result.

    Layout::

        <root>/store.json
        <root>/runs/<id>/run.json
        <root>/runs/<id>/results/<protocol>.json

    Construct it once and pass it to whatever needs it. Schema setup happens in
    the constructor and is idempotent.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root).expanduser()
        self.runs_dir = self.root / "runs"
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        marker = self.root / "store.json"
        if marker.exists():
            data = _read_json(marker)
            version = data.get("schema_version") if isinstance(data, dict) else None
            if version != SCHEMA_VERSION:
                raise PersistFailure(
                    f"Unsupported store schema {version!r} in {self.root} "
                    f"(expected {SCHEMA_VERSION})"
                )
            return
        _write_atomic(marker, orjson.dumps({"schema_version": SCHEMA_VERSION}))

    # --- writes ---

    def create_run(
        self, ui_scenario: str, backend_scenario: str, config: dict[str, Any] | None = None
    ) -> Run:
        with self._lock:
            run_id, run_dir = self._allocate_run_dir()
            run = Run(
                id=run_id,
                ui_scenario=ui_scenario,
                backend_scenario=backend_scenario,
                config=config or {},
                created_at=datetime.now(timezone.utc),
            )
            try:
                (run_dir / "results").mkdir()
                _write_atomic(run_dir / "run.json", run.model_dump_json(indent=2).encode())
            except OSError as exc:
                shutil.rmtree(run_dir, ignore_errors=True)
                raise PersistFailure(f"Failed to create run in {self.root}: {exc}") from exc
        logger.info("Created run %s for scenario %s", run.id, ui_scenario)
        return run

    def add_result(self, run_id: int, protocol: Protocol, summary: Summary) -> Result:
        protocol = Protocol.parse(protocol)
        run_dir = self._run_dir(run_id)
        if not (run_dir / "run.json").exists():
            raise PersistFailure(f"Run {run_id} does not exist")

        result = Result(
            id=f"{run_id}-{protocol.value}", run_id=run_id, protocol=protocol, summary=summary
        )
        path = run_dir / "results" / f"{protocol.value}.json"
        try:
            _write_exclusive(path, result.model_dump_json(indent=2).encode())
        except FileExistsError:
            raise DuplicateResult(
                f"Run {run_id} already has a {protocol.value} result"
            ) from None
        except OSError as exc:
            raise PersistFailure(f"Failed to write {path}: {exc}") from exc
        return result

    def insert_run_with_results(
        self,
        ui_scenario: str,
        backend_scenario: str,
        config: dict[str, Any] | None = None,
        h2: Summary | None = None,
        h3: Summary | None = None,
    ) -> Run:
        """Create a run and its results together; on failure no part of it remains."""
        run = self.create_run(ui_scenario, backend_scenario, config)
        try:
            if h2 is not None:
                self.add_result(run.id, Protocol.H2, h2)
            if h3 is not None:
                self.add_result(run.id, Protocol.H3, h3)
        except Exception:
            logger.warning("Rolling back run %s after a failed result write", run.id)
            shutil.rmtree(self._run_dir(run.id), ignore_errors=True)
            raise
        return run

    def delete_run(self, run_id: int) -> bool:
        """Delete a run together with its results."""
        run_dir = self._run_dir(run_id)
        if not run_dir.exists():
            return False
        shutil.rmtree(run_dir)
        return True

    # --- reads ---

    def get_run(self, run_id: int) -> RunWithResults | None:
        return self._load_run_dir(self._run_dir(run_id))

    def list_runs_by_scenario(self, ui_scenario: str) -> list[RunWithResults]:
        return self._group(self._load_all()).get(ui_scenario, [])

    def list_scenarios(self) -> list[str]:
        return sorted({r.run.ui_scenario for r in self._load_all()})

    def list_all_runs_grouped(self) -> dict[str, list[RunWithResults]]:
        grouped = self._group(self._load_all())
        return {s: grouped[s] for s in sorted(grouped)}

    # --- internals ---

    @staticmethod
    def _group(runs: list[RunWithResults]) -> dict[str, list[RunWithResults]]:
        """Runs keyed by scenario, each list oldest first."""
        grouped: dict[str, list[RunWithResults]] = defaultdict(list)
        for entry in sorted(runs, key=lambda r: (r.run.created_at, r.run.id)):
            grouped[entry.run.ui_scenario].append(entry)
        return dict(grouped)

    def _run_dir(self, run_id: int) -> Path:
        return self.runs_dir / f"{int(run_id):06d}"

    def _allocate_run_dir(self) -> tuple[int, Path]:
        # mkdir is the cross-process arbiter; the lock only avoids needless retries
        next_id = max(self._existing_ids(), default=0) + 1
        while True:
            run_dir = self._run_dir(next_id)
            try:
                run_dir.mkdir()
                return next_id, run_dir
            except FileExistsError:
                next_id += 1
            except OSError as exc:
                raise PersistFailure(f"Failed to allocate run directory: {exc}") from exc

    def _existing_ids(self) -> list[int]:
        ids = []
        for p in self.runs_dir.iterdir():
            if p.is_dir() and p.name.isdigit():
                ids.append(int(p.name))
        return ids

    def _load_all(self) -> list[RunWithResults]:
        loaded = []
        for run_dir in sorted(self.runs_dir.iterdir()):
            if not run_dir.is_dir():
                continue
            entry = self._load_run_dir(run_dir)
            if entry is not None:
                loaded.append(entry)
        return loaded

    def _load_run_dir(self, run_dir: Path) -> RunWithResults | None:
        run = _load_model(run_dir / "run.json", Run)
        if run is None:
            return None
        results: dict[str, Result] = {}
        for protocol in Protocol:
            result = _load_model(run_dir / "results" / f"{protocol.value}.json", Result)
            if result is not None:
                results[protocol.value] = result
        return RunWithResults(run=run, **results)


def _read_json(path: Path) -> Any:
    with open(path, "rb") as f:
        return orjson.loads(f.read())


def _load_model(path: Path, model: type[BaseModel]) -> Any:
    if not path.exists():
        return None
    try:
        return model.model_validate(_read_json(path))
    except (OSError, orjson.JSONDecodeError, ValidationError) as exc:
        logger.warning("Skipping unreadable %s: %s", path, exc)
        return None


def _tmp_path(path: Path) -> Path:
    return path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")


def _write_atomic(path: Path, data: bytes) -> None:
    tmp = _tmp_path(path)
    with open(tmp, "wb") as f:
        f.write(data)
    os.replace(tmp, path)


def _write_exclusive(path: Path, data: bytes) -> None:
    """Write ``path`` only if it does not exist yet, never exposing a partial file."""
    tmp = _tmp_path(path)
    with open(tmp, "wb") as f:
        f.write(data)
    try:
        os.link(tmp, path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
