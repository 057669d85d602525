"""Sequential h2-then-h3 comparison with a live event stream."""

import asyncio
import contextlib
import logging
import tempfile
from collections.abc import AsyncIterator, Callable
from enum import Enum
from pathlib import Path
from typing import Any

from protobench.analysis import compare, compute_summary
from protobench.errors import BenchError, ProcessFailure
from protobench.models import (
    VARIANT_A,
    VARIANT_B,
    BenchConfig,
    ComparisonResult,
    EndEvent,
    ErrorEvent,
    Event,
    InfoEvent,
    PhaseEvent,
    Protocol,
    ProtocolResult,
    ResultEvent,
    Run,
    Summary,
)
from protobench.runners import EventSink, ProcessRunner
from protobench.scenarios import (
    ClientCommand,
    build_client_command,
    build_server_command,
    validate_scenario,
)
from protobench.storage import RunStore, artifact_path, read_artifact, remove_artifact

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    SERVERS_STARTING = "servers_starting"
    SERVERS_READY = "servers_ready"
    RUNNING_A = "running_a"
    RUNNING_B = "running_b"
    PARSING = "parsing"
    COMPARING = "comparing"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


def _artifacts_dir(config: BenchConfig) -> Path:
    directory = Path(config.runner.artifacts_dir or tempfile.gettempdir()).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


class Orchestrator:
    """Runs variant A to completion, then variant B, then compares them.

    Events are delivered in order through ``stream()``. Closing the stream
    early, or calling ``cancel()``, interrupts every live process and
    discards pending artifacts. A run is persisted only once both summaries
    exist; a persistence failure is logged and the result is still delivered.
    """

    def __init__(
        self,
        config: BenchConfig,
        scenario: str,
        ui_scenario: str | None = None,
        store: RunStore | None = None,
        start_servers: bool = False,
        base_env: dict[str, str] | None = None,
    ):
        self.config = config
        self.scenario = validate_scenario(scenario)
        self.ui_scenario = ui_scenario or scenario
        self.store = store
        self.start_servers = start_servers
        self.base_env = base_env

        self.state = OrchestratorState.IDLE
        self.result: ComparisonResult | None = None
        self.run: Run | None = None
        self.error: BaseException | None = None

        artifacts_dir = _artifacts_dir(config)
        self.commands: dict[Protocol, ClientCommand] = {
            p: build_client_command(config, self.scenario, p, artifact_path(artifacts_dir, p))
            for p in (VARIANT_A, VARIANT_B)
        }

        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._clients: list[ProcessRunner] = []
        self._servers: list[ProcessRunner] = []
        self._server_watchers: list[asyncio.Task] = []

    @property
    def processes(self) -> list[ProcessRunner]:
        """Every process spawned so far, servers first."""
        return [*self._servers, *self._clients]

    @property
    def live_processes(self) -> list[ProcessRunner]:
        return [p for p in self.processes if p.running]

    async def stream(self) -> AsyncIterator[Event]:
        """Start the comparison and yield its events until ``end``."""
        if self._task is not None:
            raise RuntimeError("An orchestrator can only be streamed once")

        self._task = asyncio.create_task(self._produce())
        try:
            while True:
                event = await self._queue.get()
                yield event
                if isinstance(event, EndEvent):
                    break
        finally:
            if not self._task.done():
                self._task.cancel()
            await asyncio.wait({self._task})

    def cancel(self) -> None:
        """Abort the comparison; the stream ends with ``error`` and ``end``.

        Once the comparison has been computed the run completes normally.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()

    # --- producer ---

    def _emit(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug("[%s] %s -> %s", self.ui_scenario, self.state.value, state.value)
        self.state = state

    async def _produce(self) -> None:
        try:
            await self._execute()
        except asyncio.CancelledError as exc:
            logger.info("[%s] cancelled while %s", self.ui_scenario, self.state.value)
            self.error = exc
            await self._abort()
            self._fail("cancelled")
            raise
        except BenchError as exc:
            logger.error("[%s] comparison failed while %s: %s", self.ui_scenario, self.state.value, exc)
            self.error = exc
            await self._abort()
            self._fail(str(exc))
        except Exception as exc:
            logger.exception("[%s] unexpected failure while %s", self.ui_scenario, self.state.value)
            self.error = exc
            await self._abort()
            self._fail(str(exc) or type(exc).__name__)
        else:
            self._emit(EndEvent(ok=True))

    def _fail(self, message: str) -> None:
        self._emit(ErrorEvent(message=message))
        self._emit(EndEvent(ok=False))

    async def _execute(self) -> None:
        cmd_a = self.commands[VARIANT_A]
        cmd_b = self.commands[VARIANT_B]
        self._emit(
            InfoEvent(
                ui_scenario=self.ui_scenario,
                scenario=self.scenario,
                command_a=str(cmd_a),
                command_b=str(cmd_b),
            )
        )

        if self.start_servers:
            await self._start_servers()

        self._transition(OrchestratorState.RUNNING_A)
        await self._run_client(cmd_a)
        summary_a = await self._parse(cmd_a)

        self._transition(OrchestratorState.RUNNING_B)
        await self._run_client(cmd_b)

        self._transition(OrchestratorState.PARSING)
        summary_b = await self._parse(cmd_b)

        self._transition(OrchestratorState.COMPARING)
        result = ComparisonResult(
            a=ProtocolResult.of(VARIANT_A, summary_a),
            b=ProtocolResult.of(VARIANT_B, summary_b),
            comparison=compare(summary_a, summary_b),
        )
        logger.info(
            "[%s] latency winner %s, throughput winner %s, p50 diff %.2f%%, rps diff %.2f%%",
            self.ui_scenario,
            result.comparison.latency_winner.value,
            result.comparison.throughput_winner.value,
            result.comparison.p50_diff_pct,
            result.comparison.rps_diff_pct,
        )

        # Once both summaries are compared the run finishes as a success;
        # a cancel arriving from here on only waits for the tail to complete.
        tail = asyncio.ensure_future(self._deliver(summary_a, summary_b, result))
        while not tail.done():
            try:
                await asyncio.shield(tail)
            except asyncio.CancelledError:
                logger.info("[%s] cancel ignored while %s", self.ui_scenario, self.state.value)
                asyncio.current_task().uncancel()  # type: ignore[union-attr]
        tail.result()
        self._transition(OrchestratorState.DONE)

    async def _deliver(self, summary_a: Summary, summary_b: Summary, result: ComparisonResult) -> None:
        self._transition(OrchestratorState.PERSISTING)
        await self._persist(summary_a, summary_b)

        self.result = result
        self._emit(ResultEvent(result=result))

        if self.start_servers:
            await self._stop_servers()

    async def _run_client(self, command: ClientCommand) -> None:
        runner = ProcessRunner(
            command.argv,
            protocol=command.protocol,
            actor="client",
            env=command.env,
            emit=self._emit,
            base_env=self.base_env,
        )
        self._clients.append(runner)
        await runner.run()

    async def _parse(self, command: ClientCommand) -> Summary:
        samples = await asyncio.to_thread(read_artifact, command.artifact)
        summary = compute_summary(samples, self.config.analysis.duration_floor_seconds)
        logger.info(
            "[%s] %s: %d samples, ok %.2f%%, rps %.2f, p50 %.3fms, p99 %.3fms",
            self.ui_scenario,
            command.protocol.value,
            summary.samples,
            summary.ok_rate_pct,
            summary.rps,
            summary.p50_ms,
            summary.p99_ms,
        )
        return summary

    async def _persist(self, summary_a: Summary, summary_b: Summary) -> None:
        if self.store is None:
            return
        config: dict[str, Any] = {
            "targets": self.config.targets.model_dump(),
            "start_servers": self.start_servers,
        }
        try:
            self.run = await asyncio.to_thread(
                self.store.insert_run_with_results,
                self.ui_scenario,
                self.scenario,
                config,
                h2=summary_a,
                h3=summary_b,
            )
        except Exception as exc:
            logger.warning("[%s] persist failed: %s", self.ui_scenario, exc)
        else:
            logger.info("[%s] persisted as run %s", self.ui_scenario, self.run.id)

    # --- servers ---

    async def _start_servers(self) -> None:
        self._transition(OrchestratorState.SERVERS_STARTING)
        for protocol in (VARIANT_A, VARIANT_B):
            server = ProcessRunner(
                build_server_command(self.config, protocol),
                protocol=protocol,
                actor="server",
                emit=self._emit,
                base_env=self.base_env,
            )
            self._servers.append(server)
            await server.start()
            self._server_watchers.append(asyncio.create_task(server.wait()))

        await asyncio.sleep(self.config.servers.settle_seconds)

        for server in self._servers:
            if not server.running:
                raise ProcessFailure(
                    f"{server.argv[0]} exited during startup with code {server.returncode}",
                    exit_code=server.returncode,
                    stderr=server.stderr_text,
                )
        self._transition(OrchestratorState.SERVERS_READY)

    async def _stop_servers(self) -> None:
        timeout = self.config.runner.terminate_timeout_seconds
        for server in self._servers:
            server.terminate()
        await asyncio.gather(*(s.stop(timeout) for s in self._servers))
        await self._reap_watchers()
        for server in self._servers:
            self._emit(
                PhaseEvent(
                    protocol=server.protocol, actor="server", state="exit", code=server.returncode
                )
            )

    async def _reap_watchers(self) -> None:
        for task in self._server_watchers:
            task.cancel()
        await asyncio.gather(*self._server_watchers, return_exceptions=True)
        self._server_watchers.clear()

    # --- abort ---

    async def _abort(self) -> None:
        self._transition(OrchestratorState.ABORTED)
        timeout = self.config.runner.terminate_timeout_seconds
        processes = self.processes
        for proc in processes:
            proc.terminate()
        await asyncio.gather(*(p.stop(timeout) for p in processes))
        await self._reap_watchers()
        for command in self.commands.values():
            remove_artifact(command.artifact)


async def run_comparison(
    config: BenchConfig,
    scenario: str,
    ui_scenario: str | None = None,
    store: RunStore | None = None,
    start_servers: bool = False,
    on_event: Callable[[Event], Any] | None = None,
    base_env: dict[str, str] | None = None,
) -> ComparisonResult:
    """Run one comparison to completion and return its result.

    Raises the failure that aborted the run, if any.
    """
    orchestrator = Orchestrator(
        config,
        scenario,
        ui_scenario=ui_scenario,
        store=store,
        start_servers=start_servers,
        base_env=base_env,
    )
    async with contextlib.aclosing(orchestrator.stream()) as events:
        async for event in events:
            if on_event is not None:
                on_event(event)

    if orchestrator.result is None:
        if isinstance(orchestrator.error, BenchError):
            raise orchestrator.error
        raise BenchError(f"Comparison of {scenario} did not complete: {orchestrator.error}")
    return orchestrator.result


async def run_single(
    config: BenchConfig,
    scenario: str,
    protocol: Protocol | str,
    emit: EventSink | None = None,
    base_env: dict[str, str] | None = None,
) -> Summary:
    """Benchmark one protocol variant on its own. Nothing is persisted."""
    validate_scenario(scenario)
    protocol = Protocol.parse(protocol)
    command = build_client_command(
        config, scenario, protocol, artifact_path(_artifacts_dir(config), protocol)
    )
    runner = ProcessRunner(
        command.argv, protocol=protocol, env=command.env, emit=emit, base_env=base_env
    )
    try:
        await runner.run()
        samples = await asyncio.to_thread(read_artifact, command.artifact)
    finally:
        if runner.running:
            await runner.stop(config.runner.terminate_timeout_seconds)
        remove_artifact(command.artifact)
    return compute_summary(samples, config.analysis.duration_floor_seconds)
