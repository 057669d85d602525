"""Rich rendering of summaries, comparisons and run histories."""

from rich.console import Group
from rich.table import Table
from rich.text import Text

from protobench.analysis import verdict_from_winrate
from protobench.models import (
    ComparisonResult,
    HistorySummary,
    RunWithResults,
    ScenarioStability,
    Summary,
    Winner,
)

_WINNER_STYLE = {Winner.H2: "cyan", Winner.H3: "magenta", Winner.TIE: "yellow"}


def _winner(w: Winner) -> Text:
    return Text(w.value.upper(), style=f"bold {_WINNER_STYLE[w]}")


def _signed_pct(value: float, digits: int = 2) -> str:
    return f"{value:+.{digits}f}%"


def _ms(value: float) -> str:
    return f"{value:.3f} ms"


def render_summary(summary: Summary, title: str = "Summary") -> Table:
    table = Table(title=title, box=None, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Samples", str(summary.samples))
    table.add_row("OK rate", f"{summary.ok_rate_pct:.2f}%")
    table.add_row("RPS", f"{summary.rps:.2f}")
    table.add_row("Duration", f"{summary.duration_s:.3f} s")
    for name in ("p50", "p90", "p95", "p99", "mean", "min", "max"):
        table.add_row(name, _ms(getattr(summary, f"{name}_ms")))
    return table


def render_comparison(result: ComparisonResult) -> Group:
    a, b = result.a.summary, result.b.summary
    table = Table(box=None, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column(result.a.label, justify="right", style="cyan")
    table.add_column(result.b.label, justify="right", style="magenta")

    table.add_row("Samples", str(a.samples), str(b.samples))
    table.add_row("OK rate", f"{a.ok_rate_pct:.2f}%", f"{b.ok_rate_pct:.2f}%")
    table.add_row("RPS", f"{a.rps:.2f}", f"{b.rps:.2f}")
    table.add_row("Duration", f"{a.duration_s:.3f} s", f"{b.duration_s:.3f} s")
    for name in ("p50", "p90", "p95", "p99", "mean", "min", "max"):
        key = f"{name}_ms"
        table.add_row(name, _ms(getattr(a, key)), _ms(getattr(b, key)))

    c = result.comparison
    verdict = Table(box=None, padding=(0, 2), show_header=False)
    verdict.add_column(style="bold")
    verdict.add_column()
    verdict.add_row("Latency winner", _winner(c.latency_winner))
    verdict.add_row("Throughput winner", _winner(c.throughput_winner))
    verdict.add_row("P50 diff vs h2", _signed_pct(c.p50_diff_pct))
    verdict.add_row("P99 diff vs h2", _signed_pct(c.p99_diff_pct))
    verdict.add_row("RPS diff vs h2", _signed_pct(c.rps_diff_pct))
    verdict.add_row("Latency improvement", _signed_pct(c.latency_improvement_pct))
    return Group(table, Text(""), verdict)


def render_runs(runs: list[RunWithResults], title: str | None = None) -> Table:
    table = Table(title=title, box=None, padding=(0, 2))
    table.add_column("Run", style="bold", justify="right")
    table.add_column("Created")
    table.add_column("Scenario", style="dim")
    table.add_column("h2 p50", justify="right", style="cyan")
    table.add_column("h3 p50", justify="right", style="magenta")
    table.add_column("h2 RPS", justify="right", style="cyan")
    table.add_column("h3 RPS", justify="right", style="magenta")

    for entry in runs:
        h2, h3 = entry.h2, entry.h3
        table.add_row(
            str(entry.run.id),
            entry.run.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.run.backend_scenario,
            _ms(h2.summary.p50_ms) if h2 else "-",
            _ms(h3.summary.p50_ms) if h3 else "-",
            f"{h2.summary.rps:.2f}" if h2 else "-",
            f"{h3.summary.rps:.2f}" if h3 else "-",
        )
    return table


def render_stability(scenario: str, stability: ScenarioStability) -> Group | Text:
    if stability.stability is None:
        return Text(f"No runs recorded for {scenario}", style="yellow")

    s = stability.stability
    table = Table(title=f"Stability of {scenario} over {len(stability.runs)} runs", box=None, padding=(0, 2))
    table.add_column("Protocol", style="bold")
    table.add_column("p50 CV", justify="right")
    table.add_column("RPS CV", justify="right")
    table.add_column("Score", justify="right")
    table.add_row("h2", f"{s.h2.p50_cv:.4f}", f"{s.h2.rps_cv:.4f}", f"{s.h2.score:.4f}")
    table.add_row("h3", f"{s.h3.p50_cv:.4f}", f"{s.h3.rps_cv:.4f}", f"{s.h3.score:.4f}")

    footer = Text("More stable: ")
    footer.append_text(_winner(s.winner))
    return Group(table, Text(""), footer)


def render_history(name: str, summary: HistorySummary) -> Table:
    lat, thr, rates = summary.latency, summary.throughput, summary.win_rates
    table = Table(
        title=f"{name}: {summary.counts.comparable_pairs} comparable of {summary.counts.total_runs} runs",
        box=None,
        padding=(0, 2),
    )
    table.add_column("", style="bold")
    table.add_column("h2 wins", justify="right", style="cyan")
    table.add_column("h3 wins", justify="right", style="magenta")
    table.add_column("Ties", justify="right")
    table.add_column("h3 win rate", justify="right")
    table.add_column("Verdict for h3")
    table.add_column("Mean gain of h3", justify="right")
    table.add_column("Winner")

    table.add_row(
        "Latency",
        str(lat.h2_wins),
        str(lat.h3_wins),
        str(lat.ties),
        f"{rates.latency_h3:.1%}",
        verdict_from_winrate(rates.latency_h3),
        f"{lat.avg_latency_improvement:+.2%}",
        _winner(summary.winner.latency),
    )
    table.add_row(
        "Throughput",
        str(thr.h2_wins),
        str(thr.h3_wins),
        str(thr.ties),
        f"{rates.rps_h3:.1%}",
        verdict_from_winrate(rates.rps_h3),
        f"{thr.avg_rps_gain:+.2%}",
        _winner(summary.winner.rps),
    )
    return table
