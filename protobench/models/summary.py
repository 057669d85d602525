"""Sample and summary models for protobench."""

from pydantic import BaseModel, ConfigDict, Field


class Sample(BaseModel):
    """One request attempt parsed from a client artifact."""

    model_config = ConfigDict(frozen=True)

    latency_ms: float = Field(ge=0.0, allow_inf_nan=False)
    timestamp_ns: int
    ok: bool


class Summary(BaseModel):
    """Statistical reduction of one benchmark run's samples."""

    model_config = ConfigDict(frozen=True)

    samples: int = 0
    ok_rate_pct: float = 0.0
    rps: float = 0.0
    duration_s: float = 0.0

    p50_ms: float = 0.0
    p90_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    mean_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
