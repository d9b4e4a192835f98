"""CLI entry point for the trade journal."""

from __future__ import annotations

import csv
import datetime as dt
import json
from pathlib import Path

import click

from .core.enums import ImportMode, Period


def _read_rows(path: str) -> list[dict[str, str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def _echo_rejections(rejections: list) -> None:
    for r in rejections:
        detail = f" ({r.detail})" if r.detail else ""
        click.echo(f"  skipped {r.external_id} [{r.reason.value}]{detail}", err=True)


@click.group()
def main() -> None:
    """Trade journal: FIFO matching and performance analytics."""


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.option("--quantum", default="0.0001", help="Commission rounding unit")
def match(file: str, as_json: bool, quantum: str) -> None:
    """Match a CSV of executions and print trades and open positions."""
    from decimal import Decimal

    from .export import TradeExporter
    from .matching import match_executions, parse_rows

    executions, rejections = parse_rows(_read_rows(file))
    result = match_executions(executions, commission_quantum=Decimal(quantum))
    rejections.extend(result.rejections)
    exporter = TradeExporter()

    if as_json:
        click.echo(json.dumps({
            "matched": json.loads(exporter.to_json(result.matched)),
            "open_positions": json.loads(exporter.positions_to_json(result.open_positions)),
            "rejected": [r.to_dict() for r in rejections],
            "net_profit": str(result.net_profit),
        }, indent=2))
        return

    click.echo(f"\n{'=' * 70}")
    click.echo(f"MATCHED TRADES ({result.total_matched})")
    click.echo(f"{'=' * 70}")
    click.echo(
        f"  {'Symbol':<8} {'Dir':<6} {'Qty':>6} {'Buy':>10} {'Sell':>10} "
        f"{'Comm':>8} {'Profit':>12}"
    )
    click.echo(f"  {'-' * 66}")
    for t in result.matched:
        click.echo(
            f"  {t.symbol:<8} {t.direction.value:<6} {t.quantity:>6} "
            f"{t.buy_price:>10} {t.sell_price:>10} {t.commission:>8} {t.profit:>12}"
        )

    click.echo(f"\nOPEN POSITIONS ({result.total_unmatched})")
    for p in result.open_positions:
        click.echo(
            f"  {p.symbol:<8} {p.side.value:<6} {p.remaining_quantity:>6} @ {p.price} "
            f"(from {p.origin_id})"
        )

    click.echo(f"\n  Net profit: {result.net_profit}")
    if rejections:
        click.echo(f"  Rejected:   {len(rejections)}")
        _echo_rejections(rejections)
    click.echo(f"{'=' * 70}\n")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--period",
    type=click.Choice([p.value for p in Period]),
    default=Period.ONE_YEAR.value,
    help="Look-back window",
)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date the look-back window ends on (default: today)",
)
@click.option("--bins", default=10, type=click.IntRange(min=1), help="Histogram bin count")
@click.option("--top", default=10, type=click.IntRange(min=1), help="Symbols to rank")
def analyze(
    file: str, period: str, today: dt.datetime | None, bins: int, top: int,
) -> None:
    """Match a CSV of executions and print analytics as JSON."""
    import asyncio

    from .analytics import build_report, filter_trades
    from .export import TradeExporter
    from .matching import match_executions, parse_rows

    executions, _ = parse_rows(_read_rows(file))
    result = match_executions(executions)
    trades = filter_trades(
        result.matched, period=Period(period), today=today.date() if today else None,
    )
    report = asyncio.run(build_report(trades, bin_count=bins, top_symbols=top))
    click.echo(json.dumps(TradeExporter().report_to_dict(report), indent=2))


@main.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", "user_id", required=True, help="Owner of the executions")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ImportMode]),
    default=ImportMode.INCREMENTAL.value,
    help="full: rematch everything; incremental: new batch only",
)
@click.option("--config", default=None, help="Config file path")
@click.option("--database-url", default=None, help="Override the configured database URL")
@click.option("--create-tables", is_flag=True, help="Create missing tables first")
def import_(
    file: str,
    user_id: str,
    mode: str,
    config: str | None,
    database_url: str | None,
    create_tables: bool,
) -> None:
    """Import a CSV of executions into the journal database."""
    import asyncio

    from .core.errors import TradebookError
    from .main import run_import

    overrides: dict = {}
    if database_url:
        overrides["database_url"] = database_url
    if create_tables:
        overrides["create_tables"] = True

    if config and not Path(config).exists():
        raise click.BadParameter(f"{config} does not exist", param_hint="--config")

    try:
        summary = asyncio.run(run_import(
            user_id,
            _read_rows(file),
            mode=ImportMode(mode),
            config_path=config,
            overrides=overrides,
        ))
    except TradebookError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(summary.to_dict(), indent=2))
