"""Builders for summaries and stored runs used across tests."""

from datetime import datetime, timedelta, timezone

from protobench.models import Protocol, Result, Run, RunWithResults, Summary

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


def summary(p50: float = 10.0, rps: float = 100.0, p99: float | None = None, **fields) -> Summary:
    return Summary(
        samples=fields.pop("samples", 100),
        ok_rate_pct=fields.pop("ok_rate_pct", 100.0),
        p50_ms=p50,
        p99_ms=p50 * 2 if p99 is None else p99,
        rps=rps,
        **fields,
    )


def entry(
    run_id: int,
    h2: Summary | None = None,
    h3: Summary | None = None,
    scenario: str = "baseline",
) -> RunWithResults:
    run = Run(
        id=run_id,
        ui_scenario=scenario,
        backend_scenario=scenario,
        created_at=EPOCH + timedelta(minutes=run_id),
    )

    def result(protocol: Protocol, s: Summary | None) -> Result | None:
        if s is None:
            return None
        return Result(id=f"{run_id}-{protocol.value}", run_id=run_id, protocol=protocol, summary=s)

    return RunWithResults(run=run, h2=result(Protocol.H2, h2), h3=result(Protocol.H3, h3))
