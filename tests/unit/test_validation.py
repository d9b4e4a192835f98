"""Tests for execution row parsing and validation."""

from datetime import date, time
from decimal import Decimal

import pytest

from tradebook.core.enums import RejectionReason, Side
from tradebook.core.errors import ExecutionValidationError
from tradebook.matching import (
    match_executions,
    parse_rows,
    validate_execution,
    validate_executions,
)


class TestParseRows:
    def test_loader_aliases_and_normalization(self, csv_rows):
        executions, rejections = parse_rows(csv_rows)
        assert rejections == []
        first = executions[0]
        assert first.symbol == "AAPL"
        assert first.side == Side.BUY
        assert first.quantity == 100
        assert first.price == Decimal("10")
        assert first.commission == Decimal("1.00")
        assert first.date == date(2024, 1, 2)
        assert first.time == time(9, 30)
        assert first.external_id == "B1"

    def test_blank_commission_defaults_to_zero(self, csv_rows):
        executions, _ = parse_rows(csv_rows)
        assert executions[1].commission == Decimal("0")

    def test_blank_time_is_none(self, csv_rows):
        executions, _ = parse_rows(csv_rows)
        assert executions[2].time is None

    def test_unparseable_row_rejected(self):
        rows = [
            {"symbol": "AAPL", "side": "hold", "quantity": "1", "price": "1",
             "date": "2024-01-02", "external_id": "X1"},
            {"symbol": "AAPL", "side": "buy", "quantity": "ten", "price": "1",
             "date": "2024-01-02", "external_id": "X2"},
            {"symbol": "AAPL", "side": "buy", "quantity": "1", "price": "1",
             "date": "not-a-date", "external_id": "X3"},
        ]
        executions, rejections = parse_rows(rows)
        assert executions == []
        assert [r.external_id for r in rejections] == ["X1", "X2", "X3"]
        assert all(r.reason == RejectionReason.UNPARSEABLE for r in rejections)
        assert "side" in rejections[0].detail

    def test_row_without_id_gets_positional_label(self):
        _, rejections = parse_rows([{"symbol": "AAPL"}])
        assert rejections[0].external_id == "row-0"


class TestValidateExecution:
    def test_valid_passes(self, make_execution):
        validate_execution(make_execution("B1", "buy", 1, "1"))

    @pytest.mark.parametrize(
        "kwargs, reason",
        [
            ({"quantity": -5}, "non_positive_quantity"),
            ({"price": "-1"}, "non_positive_price"),
            ({"commission": "-0.01"}, "negative_commission"),
            ({"symbol": "  "}, "missing_symbol"),
            ({"external_id": ""}, "missing_external_id"),
        ],
    )
    def test_invalid_raises(self, make_execution, kwargs, reason):
        fields = {"external_id": "B1", "side": "buy", "quantity": 1, "price": "1", **kwargs}
        execution = make_execution(**fields)
        with pytest.raises(ExecutionValidationError) as exc_info:
            validate_execution(execution)
        assert exc_info.value.reason == reason


class TestValidateExecutions:
    def test_duplicate_ids_keep_first(self, make_execution):
        valid, rejections = validate_executions([
            make_execution("B1", "buy", 1, "10"),
            make_execution("B1", "buy", 2, "11"),
        ])
        assert [e.quantity for e in valid] == [1]
        assert rejections[0].reason == RejectionReason.DUPLICATE_EXTERNAL_ID

    def test_known_ids_rejected(self, make_execution):
        valid, rejections = validate_executions(
            [make_execution("B1", "buy", 1, "10"), make_execution("B2", "buy", 1, "10")],
            known_ids=["B1"],
        )
        assert [e.external_id for e in valid] == ["B2"]
        assert rejections[0].reason == RejectionReason.ALREADY_PROCESSED

    def test_offset_time_rejected_before_matching(self):
        executions, rejected = parse_rows([
            {"symbol": "AAPL", "side": "buy", "quantity": "10", "price": "10",
             "date": "2024-01-02", "time": "09:00:00", "external_id": "B1"},
            {"symbol": "AAPL", "side": "sell", "quantity": "10", "price": "11",
             "date": "2024-01-02", "time": "10:00:00+05:30", "external_id": "S1"},
        ])
        assert rejected == []

        result = match_executions(executions)
        assert result.matched == []
        assert [p.origin_id for p in result.open_positions] == ["B1"]
        assert [(r.external_id, r.reason) for r in result.rejections] == [
            ("S1", RejectionReason.TIMEZONE_AWARE_TIME),
        ]

    def test_rejection_to_dict(self, make_execution):
        _, rejections = validate_executions([make_execution("B1", "buy", 0, "10")])
        assert rejections[0].to_dict() == {
            "external_id": "B1",
            "symbol": "AAPL",
            "reason": "non_positive_quantity",
            "detail": "quantity=0",
        }
