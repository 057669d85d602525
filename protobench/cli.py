"""protobench CLI - compare HTTP/2 and HTTP/3 scenario by scenario."""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.table import Table

from protobench.analysis import analyze, summarize_all, summarize_history
from protobench.context import BenchContext, build_context
from protobench.engine import (
    EventReporter,
    JsonLinesReporter,
    Orchestrator,
    RichEventReporter,
    run_single,
)
from protobench.errors import BenchError, InvalidInput, PersistFailure
from protobench.models import EndEvent, Protocol
from protobench.report import render_history, render_runs, render_stability, render_summary
from protobench.scenarios import SCENARIO_FLAGS, SCENARIO_MAP, client_executable
from protobench.storage import FileRunStore

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override the run store directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log lifecycle details to stderr"),
    ] = False,
):
    """
    protobench - Comparative HTTP/2 vs HTTP/3 benchmarks.

    Commands:
      protobench compare SCENARIO    Run h2 then h3 and compare them
      protobench bench SCENARIO -p   Benchmark one protocol on its own
      protobench runs [SCENARIO]     List recorded runs
      protobench stability SCENARIO  Run-to-run variation per protocol
      protobench summary [SCENARIO]  Win counts across recorded runs
      protobench scenarios           List known scenarios
      protobench delete RUN_ID       Delete a run and its results
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.obj = {"config": config, "data_dir": data_dir}


def _context(ctx: typer.Context) -> BenchContext:
    options = ctx.obj or {}
    try:
        return build_context(options.get("config"), options.get("data_dir"))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from None


def _open_store(bench: BenchContext) -> FileRunStore:
    try:
        return bench.open_store()
    except PersistFailure as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None


@app.command()
def compare(
    ctx: typer.Context,
    scenario: Annotated[str, typer.Argument(help="Backend scenario to run")],
    ui_scenario: Annotated[
        str | None,
        typer.Option("--ui-scenario", "-u", help="Name the run is recorded under"),
    ] = None,
    start_servers: Annotated[
        bool,
        typer.Option("--start-servers", help="Launch the h2 and h3 servers first"),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print each event as one JSON line"),
    ] = False,
    no_logs: Annotated[
        bool,
        typer.Option("--no-logs", help="Hide client and server output"),
    ] = False,
    no_persist: Annotated[
        bool,
        typer.Option("--no-persist", help="Do not record the run"),
    ] = False,
):
    """
    Run the h2 variant, then the h3 variant, and compare them.

    The run is recorded unless --no-persist is given.
    """
    bench = _context(ctx)
    store = None if no_persist else _open_store(bench)

    try:
        orchestrator = Orchestrator(
            bench.config,
            scenario,
            ui_scenario=ui_scenario,
            store=store,
            start_servers=start_servers,
            base_env=bench.env,
        )
    except InvalidInput as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from None

    reporter: EventReporter
    if as_json:
        reporter = JsonLinesReporter()
    else:
        reporter = RichEventReporter(console, show_logs=not no_logs)

    try:
        ok = asyncio.run(_drive(orchestrator, reporter))
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=130) from None

    if not ok:
        raise typer.Exit(code=1)
    if orchestrator.run is not None and not as_json:
        console.print(f"[dim]Recorded as run {orchestrator.run.id}[/dim]")


async def _drive(orchestrator: Orchestrator, reporter: EventReporter) -> bool:
    ok = False
    async with contextlib.aclosing(orchestrator.stream()) as events:
        async for event in events:
            reporter.handle(event)
            if isinstance(event, EndEvent):
                ok = event.ok
    return ok


@app.command()
def bench(
    ctx: typer.Context,
    scenario: Annotated[str, typer.Argument(help="Backend scenario to run")],
    protocol: Annotated[
        str,
        typer.Option("--protocol", "-p", help="Protocol to benchmark: h2 or h3"),
    ] = "h2",
    no_logs: Annotated[
        bool,
        typer.Option("--no-logs", help="Hide client output"),
    ] = False,
):
    """
    Benchmark one protocol on its own and print its summary.

    Nothing is recorded.
    """
    bench_ctx = _context(ctx)
    reporter = RichEventReporter(console, show_logs=not no_logs)

    try:
        summary = asyncio.run(
            run_single(
                bench_ctx.config,
                scenario,
                protocol,
                emit=reporter.handle,
                base_env=bench_ctx.env,
            )
        )
    except InvalidInput as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from None
    except BenchError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=130) from None

    console.print()
    console.print(render_summary(summary, title=f"{scenario} over {Protocol.parse(protocol).label}"))


@app.command()
def runs(
    ctx: typer.Context,
    scenario: Annotated[
        str | None,
        typer.Argument(help="Scenario to list. Omit to list every scenario."),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Max runs to show per scenario"),
    ] = 20,
):
    """List recorded runs, oldest first."""
    store = _open_store(_context(ctx))

    grouped = (
        {scenario: store.list_runs_by_scenario(scenario)} if scenario else store.list_all_runs_grouped()
    )
    if not any(grouped.values()):
        console.print("No runs found.")
        raise typer.Exit(0)

    for name, entries in grouped.items():
        if not entries:
            continue
        console.print()
        console.print(render_runs(entries[-limit:], title=name))
        if len(entries) > limit:
            console.print(
                f"[dim]Showing {limit} of {len(entries)} runs. Use --limit to see more.[/dim]"
            )
    console.print()


@app.command()
def stability(
    ctx: typer.Context,
    scenario: Annotated[str, typer.Argument(help="Scenario to analyze")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the analysis as JSON"),
    ] = False,
):
    """Show how much each protocol varies across recorded runs."""
    store = _open_store(_context(ctx))
    result = analyze(store.list_runs_by_scenario(scenario))

    if as_json:
        print(result.model_dump_json(indent=2))
        return
    console.print(render_stability(scenario, result))


@app.command()
def summary(
    ctx: typer.Context,
    scenario: Annotated[
        str | None,
        typer.Argument(help="Scenario to summarize. Omit for every scenario."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the summary as JSON"),
    ] = False,
):
    """Win counts, win rates and mean gains across recorded runs."""
    store = _open_store(_context(ctx))

    if scenario:
        history = summarize_history(store.list_runs_by_scenario(scenario))
        if as_json:
            print(history.model_dump_json(indent=2))
            return
        console.print(render_history(scenario, history))
        return

    overall = summarize_all(store)
    if as_json:
        print(overall.model_dump_json(indent=2))
        return
    if not overall.scenarios:
        console.print("No runs found.")
        return
    console.print(render_history("All scenarios", overall.overall))
    for name in overall.scenarios:
        console.print()
        console.print(render_history(name, overall.per_scenario[name]))


@app.command()
def scenarios(ctx: typer.Context):
    """List known scenarios and the client each one runs."""
    config = _context(ctx).config

    table = Table(box=None, padding=(0, 2))
    table.add_column("Scenario", style="bold")
    table.add_column("Client")
    table.add_column("Extra flags", style="dim")
    for name in SCENARIO_MAP:
        table.add_row(
            name,
            " ".join(client_executable(config, name)),
            " ".join(SCENARIO_FLAGS.get(name, [])) or "-",
        )
    console.print(table)


@app.command()
def delete(
    ctx: typer.Context,
    run_id: Annotated[int, typer.Argument(help="Run ID to delete")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
):
    """Delete a run together with its results."""
    store = _open_store(_context(ctx))

    if not yes and not typer.confirm(f"Delete run {run_id}?", default=False):
        raise typer.Exit(0)

    if not store.delete_run(run_id):
        console.print(f"[red]Run not found: {run_id}[/red]")
        raise typer.Exit(1)
    console.print(f"Deleted run {run_id}")


def cli_main():
    app()


if __name__ == "__main__":
    cli_main()
