"""Run store interface."""

from typing import Any, Protocol

from protobench.models import Protocol as BenchProtocol
from protobench.models import Result, Run, RunWithResults, Summary


class RunStore(Protocol):
    """Append-only persistence of runs and their per-protocol results.

    A run owns its results: deleting it deletes them. At most one result
    may exist per (run, protocol).
    """

    def create_run(
        self, ui_scenario: str, backend_scenario: str, config: dict[str, Any] | None = None
    ) -> Run:
        ...

    def add_result(self, run_id: int, protocol: BenchProtocol, summary: Summary) -> Result:
        ...

    def insert_run_with_results(
        self,
        ui_scenario: str,
        backend_scenario: str,
        config: dict[str, Any] | None = None,
        h2: Summary | None = None,
        h3: Summary | None = None,
    ) -> Run:
        ...

    def list_runs_by_scenario(self, ui_scenario: str) -> list[RunWithResults]:
        """Runs of one scenario, oldest first."""
        ...

    def list_scenarios(self) -> list[str]:
        ...

    def list_all_runs_grouped(self) -> dict[str, list[RunWithResults]]:
        ...

    def delete_run(self, run_id: int) -> bool:
        ...
