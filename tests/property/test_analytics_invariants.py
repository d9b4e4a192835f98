"""Property tests: aggregate metrics agree with the chart series."""

from datetime import date, time, timedelta
from decimal import Decimal

from hypothesis import given, settings, strategies as st

from tradebook.analytics import PROFIT_FACTOR_INFINITE, aggregate, build_charts
from tradebook.core.enums import PositionSide
from tradebook.core.models import MatchedTrade


def _trades(profits: list[int]) -> list[MatchedTrade]:
    start = date(2024, 1, 1)
    return [
        MatchedTrade(
            trade_id=f"T{i:04d}",
            symbol="AAPL" if i % 2 else "MSFT",
            direction=PositionSide.LONG,
            quantity=1,
            buy_date=start + timedelta(days=i // 3),
            buy_time=time(9, 30),
            sell_date=start + timedelta(days=i // 3),
            sell_time=time(10 + i % 3, 0),
            buy_price=Decimal("100"),
            sell_price=Decimal("100") + profit,
            profit=Decimal(profit),
            buy_execution_id=f"B{i}",
            sell_execution_id=f"S{i}",
        )
        for i, profit in enumerate(profits)
    ]


profits_strategy = st.lists(st.integers(min_value=-1_000, max_value=1_000), max_size=60)


@given(profits=profits_strategy)
@settings(max_examples=100, deadline=None)
def test_counts_partition_trades(profits):
    snapshot = aggregate(_trades(profits))
    assert snapshot.total_trades == len(profits)
    assert (
        snapshot.winning_trades + snapshot.losing_trades + snapshot.breakeven_trades
        == snapshot.total_trades
    )
    assert snapshot.total_net_profit_loss == sum(profits)
    assert snapshot.gross_profit - snapshot.gross_loss == snapshot.total_net_profit_loss


@given(profits=profits_strategy)
@settings(max_examples=100, deadline=None)
def test_drawdown_and_streak_bounds(profits):
    snapshot = aggregate(_trades(profits))
    assert snapshot.max_drawdown >= 0
    assert snapshot.avg_drawdown <= snapshot.max_drawdown
    assert snapshot.longest_win_streak <= snapshot.winning_trades
    assert snapshot.longest_loss_streak <= snapshot.losing_trades
    assert snapshot.current_win_streak == 0 or snapshot.current_loss_streak == 0


@given(profits=profits_strategy)
@settings(max_examples=100, deadline=None)
def test_profit_factor_is_never_nan(profits):
    pf = aggregate(_trades(profits)).profit_factor
    assert pf == PROFIT_FACTOR_INFINITE or (isinstance(pf, Decimal) and pf.is_finite())


@given(profits=profits_strategy, bins=st.integers(min_value=1, max_value=20))
@settings(max_examples=100, deadline=None)
def test_charts_match_snapshot(profits, bins):
    trades = _trades(profits)
    snapshot = aggregate(trades)
    charts = build_charts(trades, bin_count=bins)

    assert sum(b.count for b in charts.histogram) == len(profits)
    assert charts.win_loss.winners == snapshot.winning_trades
    assert charts.win_loss.losers == snapshot.losing_trades
    if profits:
        assert charts.equity_curve[-1].cumulative_profit == snapshot.total_net_profit_loss
        assert len(charts.histogram) == bins
    assert sum(s.trade_count for s in charts.all_symbols) == len(profits)
