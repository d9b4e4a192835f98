"""Trade analytics: performance metrics and chart series.

Both builders are pure functions of a list of closed round trips and
never raise on empty input.

Key components
--------------
aggregate          Scalar metrics (win rate, profit factor, drawdown, streaks)
build_charts       Equity curve, daily P&L, histogram, seasonality, symbols
filter_trades      Look-back / date-range selection by sell date
build_report       Snapshot and charts computed concurrently
"""

from .aggregator import aggregate
from .charts import ChartBundle, build_charts, histogram
from .filters import AnalyticsSummary, filter_trades, summarize
from .report import AnalyticsReport, build_report
from .snapshot import PROFIT_FACTOR_INFINITE, AnalyticsSnapshot

__all__ = [
    "aggregate",
    "AnalyticsSnapshot",
    "PROFIT_FACTOR_INFINITE",
    "build_charts",
    "ChartBundle",
    "histogram",
    "filter_trades",
    "summarize",
    "AnalyticsSummary",
    "build_report",
    "AnalyticsReport",
]
