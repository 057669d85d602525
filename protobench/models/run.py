"""Run-related models for protobench."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from protobench.models.comparison import Protocol, Winner
from protobench.models.summary import Summary


class Run(BaseModel):
    """One orchestrated execution under a named scenario."""

    model_config = ConfigDict(frozen=True)

    id: int
    ui_scenario: str
    backend_scenario: str
    config: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class Result(BaseModel):
    """Summary of one protocol within a run."""

    model_config = ConfigDict(frozen=True)

    id: str
    run_id: int
    protocol: Protocol
    summary: Summary


class RunWithResults(BaseModel):
    """A run with zero, one or two protocol results."""

    model_config = ConfigDict(frozen=True)

    run: Run
    h2: Result | None = None
    h3: Result | None = None

    def result_for(self, protocol: Protocol) -> Result | None:
        return self.h3 if protocol is Protocol.H3 else self.h2

    @property
    def is_pair(self) -> bool:
        return self.h2 is not None and self.h3 is not None


class ProtocolStability(BaseModel):
    p50_cv: float
    rps_cv: float
    score: float


class StabilityScore(BaseModel):
    """Coefficient-of-variation stability per protocol; lower is more stable."""

    h2: ProtocolStability
    h3: ProtocolStability
    winner: Winner


class ScenarioStability(BaseModel):
    runs: list[RunWithResults] = Field(default_factory=list)
    earliest: RunWithResults | None = None
    latest: RunWithResults | None = None
    stability: StabilityScore | None = None


class HistoryCounts(BaseModel):
    total_runs: int = 0
    comparable_pairs: int = 0


class LatencyHistory(BaseModel):
    h2_wins: int = 0
    h3_wins: int = 0
    ties: int = 0
    avg_p50_h2_ms: float = 0.0
    avg_p50_h3_ms: float = 0.0
    # fraction, positive means h3 was faster
    avg_latency_improvement: float = 0.0


class ThroughputHistory(BaseModel):
    h2_wins: int = 0
    h3_wins: int = 0
    ties: int = 0
    avg_rps_h2: float = 0.0
    avg_rps_h3: float = 0.0
    # fraction, positive means h3 served more requests per second
    avg_rps_gain: float = 0.0


class WinRates(BaseModel):
    latency_h3: float = 0.0
    rps_h3: float = 0.0


class HistoryWinners(BaseModel):
    latency: Winner = Winner.TIE
    rps: Winner = Winner.TIE


class HistorySummary(BaseModel):
    """Head-to-head record of every comparable run in a history."""

    counts: HistoryCounts = Field(default_factory=HistoryCounts)
    latency: LatencyHistory = Field(default_factory=LatencyHistory)
    throughput: ThroughputHistory = Field(default_factory=ThroughputHistory)
    win_rates: WinRates = Field(default_factory=WinRates)
    winner: HistoryWinners = Field(default_factory=HistoryWinners)


class OverallHistory(BaseModel):
    overall: HistorySummary
    per_scenario: dict[str, HistorySummary] = Field(default_factory=dict)

    @property
    def scenarios(self) -> list[str]:
        return list(self.per_scenario)
