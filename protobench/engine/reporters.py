import sys
from typing import IO, Protocol

from rich.console import Console
from rich.text import Text

from protobench.models import (
    EndEvent,
    ErrorEvent,
    Event,
    InfoEvent,
    LogEvent,
    PhaseEvent,
    ResultEvent,
)
from protobench.report import render_comparison


class EventReporter(Protocol):
    """Protocol for consumers of an orchestration's event stream."""

    def handle(self, event: Event) -> None:
        """Present one event."""
        ...


class RichEventReporter:
    """Reporter that prints events to a Rich console as they arrive."""

    def __init__(self, console: Console | None = None, show_logs: bool = True):
        self.console = console or Console()
        self.show_logs = show_logs

    def handle(self, event: Event) -> None:
        if isinstance(event, InfoEvent):
            self.console.print(f"[bold]Comparing[/bold] {event.ui_scenario} ({event.scenario})")
            self.console.print(Text.assemble("  ", ("h2", "cyan"), ": ", event.command_a))
            self.console.print(Text.assemble("  ", ("h3", "magenta"), ": ", event.command_b))
        elif isinstance(event, PhaseEvent):
            who = " ".join(x for x in (event.actor, event.protocol and event.protocol.value) if x)
            if event.state == "start":
                self.console.print(f"[bold]>>>[/bold] {who} started")
            else:
                style = "green" if event.code == 0 else "red"
                code = "-" if event.code is None else event.code
                self.console.print(f"[bold]<<<[/bold] {who} exited [{style}]{code}[/{style}]")
        elif isinstance(event, LogEvent):
            if self.show_logs:
                style = "dim red" if event.stream == "stderr" else "dim"
                self.console.print(
                    Text(f"{event.actor} {event.protocol.value} | {event.line}", style=style)
                )
        elif isinstance(event, ResultEvent):
            self.console.print()
            self.console.print(render_comparison(event.result))
        elif isinstance(event, ErrorEvent):
            self.console.print(Text.assemble(("Error: ", "red"), event.message))
        elif isinstance(event, EndEvent):
            status = "[green]done[/green]" if event.ok else "[red]aborted[/red]"
            self.console.print(f"\n{status}")


class JsonLinesReporter:
    """Reporter that writes one JSON object per event, for machine consumers."""

    def __init__(self, out: IO[str] | None = None):
        self.out = out or sys.stdout

    def handle(self, event: Event) -> None:
        self.out.write(event.to_json_line().decode() + "\n")
        self.out.flush()
