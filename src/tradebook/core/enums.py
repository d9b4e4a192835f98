"""Enumerations used across the trade journal."""

from enum import Enum


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class PositionSide(str, Enum):
    LONG = "long"    # Opened by a BUY
    SHORT = "short"  # Opened by a SELL

    @classmethod
    def opened_by(cls, side: Side) -> "PositionSide":
        return cls.LONG if side is Side.BUY else cls.SHORT


class TradeOutcome(str, Enum):
    """Win / loss / break-even classification of a realized round trip."""

    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class PnLSign(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    FLAT = "flat"


class ImportMode(str, Enum):
    FULL = "full"                # Reprocess the complete stored execution set
    INCREMENTAL = "incremental"  # New batch seeded with persisted open positions


class Period(str, Enum):
    """Analytics look-back windows, measured back from today."""

    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"
    ALL = "all"

    @property
    def months(self) -> int | None:
        return {
            Period.ONE_MONTH: 1,
            Period.THREE_MONTHS: 3,
            Period.SIX_MONTHS: 6,
            Period.ONE_YEAR: 12,
        }.get(self)


class RejectionReason(str, Enum):
    UNPARSEABLE = "unparseable"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"
    NON_POSITIVE_PRICE = "non_positive_price"
    NEGATIVE_COMMISSION = "negative_commission"
    MISSING_SYMBOL = "missing_symbol"
    MISSING_EXTERNAL_ID = "missing_external_id"
    DUPLICATE_EXTERNAL_ID = "duplicate_external_id"
    ALREADY_PROCESSED = "already_processed"
    TIMEZONE_AWARE_TIME = "timezone_aware_time"
