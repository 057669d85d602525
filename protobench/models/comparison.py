"""Protocol and head-to-head comparison models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from protobench.errors import InvalidInput
from protobench.models.summary import Summary


class Protocol(str, Enum):
    """Protocol variant of the benchmark client.

    H2 is variant A (the baseline), H3 is variant B.
    """

    H2 = "h2"
    H3 = "h3"

    @property
    def label(self) -> str:
        return "HTTP/3" if self is Protocol.H3 else "HTTP/2"

    @property
    def use_h3(self) -> bool:
        return self is Protocol.H3

    @classmethod
    def parse(cls, value: "str | Protocol") -> "Protocol":
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise InvalidInput(f"Invalid protocol '{value}'. Valid: {valid}") from None


VARIANT_A = Protocol.H2
VARIANT_B = Protocol.H3


class Winner(str, Enum):
    H2 = "h2"
    H3 = "h3"
    TIE = "tie"


class ComparisonMetrics(BaseModel):
    """Winners and percentage deltas, always relative to variant A."""

    model_config = ConfigDict(frozen=True)

    latency_winner: Winner
    throughput_winner: Winner
    p50_diff_pct: float
    p99_diff_pct: float
    rps_diff_pct: float
    latency_improvement_pct: float


class ProtocolResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    protocol: Protocol
    label: str
    summary: Summary

    @classmethod
    def of(cls, protocol: Protocol, summary: Summary) -> "ProtocolResult":
        return cls(protocol=protocol, label=protocol.label, summary=summary)


class ComparisonResult(BaseModel):
    """Final payload of a comparison: both summaries plus the metrics."""

    model_config = ConfigDict(frozen=True)

    a: ProtocolResult
    b: ProtocolResult
    comparison: ComparisonMetrics
