"""Reading the CSV artifacts written by benchmark clients."""

import csv
import logging
import re
import time
import uuid
from pathlib import Path
from typing import IO

from pydantic import ValidationError

from protobench.errors import EmptyResult, MalformedResult, MissingResult
from protobench.models import Protocol, Sample

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("latency_ns", "ts_unix_ns", "ok")

_BOOLS = {"true": True, "false": False}

# ASCII digits with an optional sign; int() alone also takes "1_000"
_INTEGER = re.compile(r"[+-]?[0-9]+")


def artifact_path(directory: Path, protocol: Protocol) -> Path:
    """A fresh artifact path, unique across concurrent orchestrations."""
    return directory / f"bench-{protocol.value}-{time.time_ns()}-{uuid.uuid4().hex[:8]}.csv"


def remove_artifact(path: Path) -> None:
    """Best-effort removal; failure does not affect the run's outcome."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not remove artifact %s: %s", path, exc)


def _parse_int(raw: str) -> int:
    if not _INTEGER.fullmatch(raw):
        raise ValueError(raw)
    return int(raw)


def _parse_row(row: dict[str, str | None], line_no: int) -> Sample:
    latency_raw = (row.get("latency_ns") or "").strip()
    ts_raw = (row.get("ts_unix_ns") or "").strip()
    ok_raw = (row.get("ok") or "").strip()

    try:
        latency_ns = _parse_int(latency_raw)
        timestamp_ns = _parse_int(ts_raw)
    except ValueError:
        raise MalformedResult(
            f"line {line_no}: non-integer latency_ns={latency_raw!r} or ts_unix_ns={ts_raw!r}"
        ) from None

    if ok_raw not in _BOOLS:
        raise MalformedResult(f"line {line_no}: ok must be 'true' or 'false', got {ok_raw!r}")

    try:
        return Sample(latency_ms=latency_ns / 1e6, timestamp_ns=timestamp_ns, ok=_BOOLS[ok_raw])
    except ValidationError:
        raise MalformedResult(f"line {line_no}: invalid latency_ns={latency_raw!r}") from None


def _read_rows(f: IO[str], path: Path) -> list[Sample]:
    reader = csv.DictReader(f)
    if reader.fieldnames is None:
        raise EmptyResult(f"Artifact {path} has no records")

    header = [name.strip() for name in reader.fieldnames]
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise MalformedResult(f"Artifact {path} is missing columns: {', '.join(missing)}")
    reader.fieldnames = header

    return [_parse_row(row, reader.line_num) for row in reader]


def parse_samples(path: Path) -> list[Sample]:
    """Parse an artifact into samples without removing it."""
    try:
        f = open(path, newline="", encoding="utf-8")
    except OSError as exc:
        raise MissingResult(f"Cannot read artifact {path}: {exc}") from exc

    with f:
        try:
            samples = _read_rows(f, path)
        except (UnicodeDecodeError, csv.Error) as exc:
            raise MalformedResult(f"Artifact {path}: {exc}") from exc

    if not samples:
        raise EmptyResult(f"Artifact {path} has no records")
    return samples


def read_artifact(path: Path | str) -> list[Sample]:
    """Read an artifact into samples and remove it.

    Raises:
        MissingResult: the artifact is absent or unreadable.
        EmptyResult: the artifact holds no records.
        MalformedResult: a required column is absent or a field does not parse.
    """
    path = Path(path)
    try:
        return parse_samples(path)
    finally:
        remove_artifact(path)
