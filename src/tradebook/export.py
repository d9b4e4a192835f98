"""Trade export: CSV/JSON output of matched trades, open positions and analytics.

Money values are written as decimal strings so nothing is lost to
float rounding on the way out; dates and times are ISO 8601.

Usage::

    exporter = TradeExporter()
    csv_str = exporter.to_csv(result.matched)
    json_str = exporter.positions_to_json(result.open_positions)
    payload = exporter.report_to_dict(report)
"""

from __future__ import annotations

import csv
import datetime as dt
import io
import json
import logging
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence

from tradebook.analytics.charts import ChartBundle
from tradebook.analytics.report import AnalyticsReport
from tradebook.analytics.snapshot import AnalyticsSnapshot
from tradebook.core.models import MatchedTrade, OpenPosition

logger = logging.getLogger(__name__)

# Default CSV columns
_TRADE_COLUMNS = [
    "trade_id",
    "symbol",
    "direction",
    "outcome",
    "quantity",
    "buy_date",
    "buy_time",
    "sell_date",
    "sell_time",
    "buy_price",
    "sell_price",
    "gross_profit",
    "commission",
    "profit",
    "duration_minutes",
    "buy_execution_id",
    "sell_execution_id",
]

_POSITION_COLUMNS = [
    "symbol",
    "side",
    "remaining_quantity",
    "price",
    "cost_basis",
    "commission",
    "date",
    "time",
    "origin_id",
]


def _plain(value: Any) -> Any:
    """Recursively convert Decimals, dates, enums and dataclasses to JSON-safe values."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return _plain(asdict(value))
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class TradeExporter:
    """Export journal records to CSV/JSON.

    Parameters
    ----------
    decimal_places : int | None
        Quantize money fields to this many places.  ``None`` (default)
        writes them exactly as stored.
    """

    def __init__(self, *, decimal_places: int | None = None) -> None:
        self._dp = decimal_places

    # ------------------------------------------------------------------ #
    # CSV Export                                                           #
    # ------------------------------------------------------------------ #

    def to_csv(
        self,
        trades: Sequence[MatchedTrade],
        *,
        columns: list[str] | None = None,
    ) -> str:
        """Export matched trades as a CSV string with a header row."""
        rows = [self._trade_to_row(t) for t in trades]
        return self._write_csv(rows, columns or _TRADE_COLUMNS)

    def positions_to_csv(self, positions: Sequence[OpenPosition]) -> str:
        rows = [self._position_to_row(p) for p in positions]
        return self._write_csv(rows, _POSITION_COLUMNS)

    # ------------------------------------------------------------------ #
    # JSON Export                                                          #
    # ------------------------------------------------------------------ #

    def to_json(self, trades: Sequence[MatchedTrade], *, indent: int = 2) -> str:
        """Export matched trades as a JSON list of objects."""
        return json.dumps([self._trade_to_row(t) for t in trades], indent=indent)

    def positions_to_json(self, positions: Sequence[OpenPosition], *, indent: int = 2) -> str:
        return json.dumps([self._position_to_row(p) for p in positions], indent=indent)

    # ------------------------------------------------------------------ #
    # Analytics                                                            #
    # ------------------------------------------------------------------ #

    def snapshot_to_dict(self, snapshot: AnalyticsSnapshot) -> dict[str, Any]:
        return snapshot.model_dump(mode="json")

    def charts_to_dict(self, charts: ChartBundle) -> dict[str, Any]:
        """Flatten a chart bundle; histogram bins gain their display label."""
        payload = _plain(charts)
        for raw, bin_ in zip(payload["histogram"], charts.histogram):
            raw["label"] = bin_.label
        payload["win_loss"]["total"] = charts.win_loss.total
        return payload

    def report_to_dict(self, report: AnalyticsReport) -> dict[str, Any]:
        return {
            "summary": _plain(report.summary),
            "snapshot": self.snapshot_to_dict(report.snapshot),
            "charts": self.charts_to_dict(report.charts),
        }

    # ------------------------------------------------------------------ #
    # Private helpers                                                      #
    # ------------------------------------------------------------------ #

    def _money(self, value: Decimal) -> str:
        if self._dp is None:
            return str(value)
        return str(value.quantize(Decimal(1).scaleb(-self._dp)))

    def _trade_to_row(self, trade: MatchedTrade) -> dict[str, Any]:
        """Convert a MatchedTrade to a flat dict for export."""
        return {
            "trade_id": trade.trade_id,
            "symbol": trade.symbol,
            "direction": trade.direction.value,
            "outcome": trade.outcome.value,
            "quantity": trade.quantity,
            "buy_date": trade.buy_date.isoformat(),
            "buy_time": trade.buy_time.isoformat() if trade.buy_time else None,
            "sell_date": trade.sell_date.isoformat(),
            "sell_time": trade.sell_time.isoformat() if trade.sell_time else None,
            "buy_price": self._money(trade.buy_price),
            "sell_price": self._money(trade.sell_price),
            "gross_profit": self._money(trade.gross_profit),
            "commission": self._money(trade.commission),
            "profit": self._money(trade.profit),
            "duration_minutes": trade.duration_minutes,
            "buy_execution_id": trade.buy_execution_id,
            "sell_execution_id": trade.sell_execution_id,
        }

    def _position_to_row(self, position: OpenPosition) -> dict[str, Any]:
        return {
            "symbol": position.symbol,
            "side": position.side.value,
            "remaining_quantity": position.remaining_quantity,
            "price": self._money(position.price),
            "cost_basis": self._money(position.cost_basis),
            "commission": self._money(position.commission),
            "date": position.date.isoformat(),
            "time": position.time.isoformat() if position.time else None,
            "origin_id": position.origin_id,
        }

    @staticmethod
    def _write_csv(rows: list[dict[str, Any]], columns: list[str]) -> str:
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({c: "" if row.get(c) is None else row[c] for c in columns})
        return buf.getvalue()
