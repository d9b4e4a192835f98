"""Tests for chart series construction."""

from datetime import date, time
from decimal import Decimal

import pytest

from tradebook.analytics import ChartBundle, build_charts, histogram
from tradebook.analytics.charts import hourly_performance, weekly_performance
from tradebook.core.enums import PnLSign


class TestHistogram:
    def test_boundary_values(self):
        bins = histogram([Decimal("0"), Decimal("10")], 2)
        assert [(b.lower, b.upper, b.count) for b in bins] == [
            (Decimal("0"), Decimal("5"), 1),
            (Decimal("5"), Decimal("10"), 1),
        ]

    def test_max_value_lands_in_last_bin(self):
        bins = histogram([Decimal(v) for v in (0, 1, 2, 3, 10)], 5)
        assert [b.count for b in bins] == [2, 2, 0, 0, 1]

    def test_equal_values_all_in_first_bin(self):
        bins = histogram([Decimal("7")] * 3, 4)
        assert [b.count for b in bins] == [3, 0, 0, 0]
        assert all(b.lower == Decimal("7") for b in bins)

    def test_negative_range(self):
        bins = histogram([Decimal("-20"), Decimal("-10"), Decimal("20")], 4)
        assert bins[0].lower == Decimal("-20")
        assert bins[-1].upper == Decimal("20")
        assert sum(b.count for b in bins) == 3

    def test_label(self):
        bins = histogram([Decimal("0"), Decimal("10")], 2)
        assert bins[0].label == "0.00 to 5.00"

    def test_empty(self):
        assert histogram([], 10) == []

    def test_zero_bins_rejected(self):
        with pytest.raises(ValueError):
            histogram([Decimal("1")], 0)


class TestBuildCharts:
    def test_empty_trades(self):
        assert build_charts([]) == ChartBundle()

    def test_equity_curve_cumulative(self, make_trade):
        bundle = build_charts([make_trade(100), make_trade(-150), make_trade(50)])
        assert [p.cumulative_profit for p in bundle.equity_curve] == [
            Decimal("100"), Decimal("-50"), Decimal("0"),
        ]
        assert [p.trade_profit for p in bundle.equity_curve] == [
            Decimal("100"), Decimal("-150"), Decimal("50"),
        ]

    def test_daily_pnl_signs(self, make_trade):
        bundle = build_charts([
            make_trade(10, sell_date=date(2024, 1, 3)),
            make_trade(-4, sell_date=date(2024, 1, 2)),
            make_trade(3, sell_date=date(2024, 1, 4)),
            make_trade(-3, sell_date=date(2024, 1, 4)),
        ])
        assert [(d.date, d.pnl, d.sign) for d in bundle.daily_pnl] == [
            (date(2024, 1, 2), Decimal("-4"), PnLSign.NEGATIVE),
            (date(2024, 1, 3), Decimal("10"), PnLSign.POSITIVE),
            (date(2024, 1, 4), Decimal("0"), PnLSign.FLAT),
        ]

    def test_win_loss_excludes_breakeven(self, make_trade):
        bundle = build_charts([make_trade(1), make_trade(2), make_trade(-1), make_trade(0)])
        assert bundle.win_loss.winners == 2
        assert bundle.win_loss.losers == 1
        assert bundle.win_loss.total == 3

    def test_symbol_ranking_capped(self, make_trade):
        trades = [
            make_trade(5, symbol="MSFT"),
            make_trade(50, symbol="AAPL"),
            make_trade(-20, symbol="TSLA"),
            make_trade(10, symbol="MSFT"),
        ]
        bundle = build_charts(trades, top_symbols=2)
        assert [s.symbol for s in bundle.symbols] == ["AAPL", "MSFT"]
        assert [s.symbol for s in bundle.all_symbols] == ["AAPL", "MSFT", "TSLA"]
        msft = bundle.all_symbols[1]
        assert msft.total_pnl == Decimal("15")
        assert msft.avg_pnl == Decimal("7.5")
        assert msft.trade_count == 2

    def test_histogram_bin_count_respected(self, make_trade):
        bundle = build_charts([make_trade(1), make_trade(9)], bin_count=3)
        assert len(bundle.histogram) == 3


class TestSeasonality:
    def test_hourly_buckets(self, make_trade):
        buckets = hourly_performance([
            make_trade(10, sell_time=time(9, 45)),
            make_trade(20, sell_time=time(9, 5)),
            make_trade(-6, sell_time=time(14, 0)),
        ])
        assert [(b.bucket, b.label, b.total_pnl, b.trade_count) for b in buckets] == [
            (9, "9:00", Decimal("30"), 2),
            (14, "14:00", Decimal("-6"), 1),
        ]
        assert buckets[0].avg_pnl == Decimal("15")

    def test_missing_sell_time_is_midnight(self, make_trade):
        buckets = hourly_performance([make_trade(1, sell_time=None)])
        assert buckets[0].bucket == 0

    def test_weekday_buckets_start_sunday(self, make_trade):
        buckets = weekly_performance([
            make_trade(5, sell_date=date(2024, 1, 7)),   # Sunday
            make_trade(-2, sell_date=date(2024, 1, 8)),  # Monday
            make_trade(4, sell_date=date(2024, 1, 13)),  # Saturday
        ])
        assert [(b.bucket, b.label) for b in buckets] == [
            (0, "Sunday"), (1, "Monday"), (6, "Saturday"),
        ]
