"""Tests for period / date-range filtering and summaries."""

from datetime import date

import pytest

from tradebook.analytics import filter_trades, summarize
from tradebook.analytics.filters import months_before
from tradebook.core.enums import Period

TODAY = date(2024, 6, 15)


@pytest.mark.parametrize(
    "day, months, expected",
    [
        (date(2024, 6, 15), 1, date(2024, 5, 15)),
        (date(2024, 6, 15), 12, date(2023, 6, 15)),
        (date(2024, 3, 31), 1, date(2024, 2, 29)),
        (date(2024, 1, 31), 3, date(2023, 10, 31)),
        (date(2023, 5, 31), 3, date(2023, 2, 28)),
    ],
)
def test_months_before(day, months, expected):
    assert months_before(day, months) == expected


@pytest.fixture
def trades(make_trade):
    return [
        make_trade(1, sell_date=date(2023, 1, 10)),
        make_trade(2, sell_date=date(2024, 1, 10)),
        make_trade(3, sell_date=date(2024, 5, 15)),
        make_trade(4, sell_date=date(2024, 6, 14)),
    ]


class TestFilterTrades:
    def test_all_keeps_everything(self, trades):
        assert len(filter_trades(trades, period=Period.ALL, today=TODAY)) == 4

    def test_no_filter_keeps_everything(self, trades):
        assert len(filter_trades(trades)) == 4

    def test_one_month_cutoff_inclusive(self, trades):
        kept = filter_trades(trades, period=Period.ONE_MONTH, today=TODAY)
        assert [t.sell_date for t in kept] == [date(2024, 5, 15), date(2024, 6, 14)]

    def test_six_months(self, trades):
        kept = filter_trades(trades, period=Period.SIX_MONTHS, today=TODAY)
        assert len(kept) == 3

    def test_one_year(self, trades):
        kept = filter_trades(trades, period=Period.ONE_YEAR, today=TODAY)
        assert date(2023, 1, 10) not in [t.sell_date for t in kept]

    def test_explicit_range_wins_over_period(self, trades):
        kept = filter_trades(
            trades,
            period=Period.ONE_MONTH,
            start=date(2023, 1, 10),
            end=date(2024, 1, 10),
            today=TODAY,
        )
        assert [t.sell_date for t in kept] == [date(2023, 1, 10), date(2024, 1, 10)]


class TestSummarize:
    def test_range_and_count(self, trades):
        summary = summarize(list(reversed(trades)))
        assert summary.total_trades == 4
        assert summary.start == date(2023, 1, 10)
        assert summary.end == date(2024, 6, 14)

    def test_empty(self):
        summary = summarize([])
        assert summary.total_trades == 0
        assert summary.start is None
        assert summary.end is None
