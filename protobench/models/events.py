"""Streaming events emitted by an orchestration run.

The event set is closed: every orchestration yields exactly one ``info`` first,
any number of ``phase`` and ``log`` events, at most one ``result`` or ``error``,
and exactly one ``end`` last.
"""

from typing import Annotated, Any, Literal, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from protobench.models.comparison import ComparisonResult, Protocol

Actor = Literal["client", "server"]
StreamName = Literal["stdout", "stderr"]


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    def payload(self) -> dict[str, Any]:
        """Event data without the discriminator."""
        return self.model_dump(mode="json", exclude={"event"}, exclude_none=True)

    def to_json_line(self) -> bytes:
        return orjson.dumps({"event": self.event, "data": self.payload()})  # type: ignore[attr-defined]


class InfoEvent(_Event):
    event: Literal["info"] = "info"
    ui_scenario: str
    scenario: str
    command_a: str
    command_b: str


class PhaseEvent(_Event):
    event: Literal["phase"] = "phase"
    protocol: Protocol | None = None
    actor: Actor | None = None
    state: Literal["start", "exit"]
    code: int | None = None


class LogEvent(_Event):
    event: Literal["log"] = "log"
    protocol: Protocol
    actor: Actor
    stream: StreamName
    line: str


class ResultEvent(_Event):
    event: Literal["result"] = "result"
    result: ComparisonResult


class ErrorEvent(_Event):
    event: Literal["error"] = "error"
    message: str


class EndEvent(_Event):
    event: Literal["end"] = "end"
    ok: bool


Event = Annotated[
    Union[InfoEvent, PhaseEvent, LogEvent, ResultEvent, ErrorEvent, EndEvent],
    Field(discriminator="event"),
]

event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(data: bytes | str) -> Event:
    """Inverse of ``to_json_line``."""
    raw = orjson.loads(data)
    return event_adapter.validate_python({"event": raw["event"], **raw["data"]})
