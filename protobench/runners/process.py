"""Supervision of one external benchmark process."""

import asyncio
import logging
import os
import shlex
import signal
from collections import deque
from collections.abc import Callable, Sequence

from protobench.errors import ProcessFailure
from protobench.models import Event, LogEvent, PhaseEvent, Protocol
from protobench.models.events import Actor, StreamName

logger = logging.getLogger(__name__)

EventSink = Callable[[Event], None]

_STDERR_TAIL = 200


class ProcessRunner:
    """Spawn, observe and terminate a single client or server process.

    Output lines are forwarded to ``emit`` as they arrive, tagged with the
    protocol and actor. After ``terminate()`` nothing more is emitted.
    """

    def __init__(
        self,
        argv: Sequence[str],
        protocol: Protocol,
        actor: Actor = "client",
        env: dict[str, str] | None = None,
        emit: EventSink | None = None,
        base_env: dict[str, str] | None = None,
    ):
        if not argv:
            raise ValueError("argv must not be empty")
        self.argv = list(argv)
        self.protocol = protocol
        self.actor = actor
        self._env = base_env.copy() if base_env is not None else os.environ.copy()
        if env:
            self._env.update(env)
        self._emit = emit
        self._process: asyncio.subprocess.Process | None = None
        self._pumps: list[asyncio.Task] = []
        self._stderr: deque[str] = deque(maxlen=_STDERR_TAIL)
        self._terminated = False

    def __repr__(self) -> str:
        return f"ProcessRunner({self.actor} {self.protocol.value}: {self.command})"

    @property
    def command(self) -> str:
        return shlex.join(self.argv)

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def stderr_text(self) -> str:
        return "\n".join(self._stderr)

    async def start(self) -> None:
        if self._process is not None:
            raise RuntimeError(f"{self!r} was already started")

        logger.info("Spawning %s %s: %s", self.actor, self.protocol.value, self.command)
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
                limit=1024 * 1024 * 10,
            )
        except OSError as exc:
            raise ProcessFailure(f"Failed to spawn {self.argv[0]}: {exc}") from exc

        self._pumps = [
            asyncio.create_task(self._pump(self._process.stdout, "stdout")),
            asyncio.create_task(self._pump(self._process.stderr, "stderr")),
        ]
        self._send(PhaseEvent(protocol=self.protocol, actor=self.actor, state="start"))

    async def wait(self) -> int:
        """Wait for both output streams to close and the process to exit."""
        if self._process is None:
            raise RuntimeError(f"{self!r} was never started")

        await asyncio.gather(*self._pumps)
        code = await self._process.wait()
        logger.info("%s %s exited with code %s", self.actor, self.protocol.value, code)
        self._send(PhaseEvent(protocol=self.protocol, actor=self.actor, state="exit", code=code))
        return code

    async def run(self) -> int:
        """Start, wait, and enforce the exit-code contract."""
        await self.start()
        code = await self.wait()
        if code != 0:
            message = f"{self.argv[0]} ({self.protocol.value}) exited with code {code}"
            if self.stderr_text:
                message += f": {self.stderr_text}"
            raise ProcessFailure(message, exit_code=code, stderr=self.stderr_text)
        return code

    def terminate(self) -> None:
        """Interrupt the child and stop forwarding its events.

        Safe to call repeatedly and after the process has exited.
        """
        self._emit = None
        if not self.running or self._terminated:
            return
        self._terminated = True
        logger.info("Interrupting %s %s (pid %s)", self.actor, self.protocol.value, self.pid)
        try:
            self._process.send_signal(signal.SIGINT)  # type: ignore[union-attr]
        except ProcessLookupError:
            pass

    async def stop(self, timeout: float = 5.0) -> None:
        """Terminate and reap the child, killing it if it ignores the interrupt."""
        self.terminate()
        if self._process is not None and self._process.returncode is None:
            try:
                await asyncio.wait_for(self._process.wait(), timeout=timeout)
            except TimeoutError:
                logger.warning("%s %s ignored SIGINT, killing", self.actor, self.protocol.value)
                try:
                    self._process.kill()
                except ProcessLookupError:
                    pass
                await self._process.wait()
        for task in self._pumps:
            task.cancel()
        await asyncio.gather(*self._pumps, return_exceptions=True)

    def _send(self, event: Event) -> None:
        if self._emit is not None:
            self._emit(event)

    async def _pump(self, reader: asyncio.StreamReader | None, stream: StreamName) -> None:
        if reader is None:
            return
        while True:
            raw = await reader.readline()
            if not raw:
                break
            line = raw.decode(errors="replace").rstrip("\r\n")
            if not line.strip():
                continue
            if stream == "stderr":
                self._stderr.append(line)
            logger.debug("[%s %s %s] %s", self.actor, self.protocol.value, stream, line)
            self._send(
                LogEvent(protocol=self.protocol, actor=self.actor, stream=stream, line=line)
            )
