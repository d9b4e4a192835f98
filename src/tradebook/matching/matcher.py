"""FIFO execution matcher.

Pairs opposing executions of the same symbol into closed round trips.
Each symbol keeps two FIFO queues of resting lots, one per side.  An
incoming execution consumes the opposite queue from the front (oldest
lot first) and whatever it cannot match rests at the back of its own
side's queue.  Lots still resting after the last execution become open
positions.

Processing order within a symbol is ``(date, time, external_id)``, so
re-running the matcher over the same executions always yields the same
trades, in the same order, with the same IDs.

Usage::

    matcher = ExecutionMatcher(commission_quantum=Decimal("0.01"))
    result = matcher.match(executions, open_positions=carried)
    print(result.net_profit, len(result.open_positions))
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from collections import defaultdict, deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from tradebook.core.enums import PositionSide, Side
from tradebook.core.errors import ConsistencyError
from tradebook.core.ids import content_hash
from tradebook.core.models import MatchedTrade, OpenPosition, RawExecution

from .lots import Lot
from .validation import Rejection, validate_executions

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_QUANTUM = Decimal("0.0001")


def _whole_minutes(delta: dt.timedelta) -> int:
    """Nearest whole minute, halves rounded up (-1.5 -> -1, 1.5 -> 2)."""
    return math.floor(delta.total_seconds() / 60 + 0.5)


@dataclass
class MatchResult:
    """Output of one matcher run."""

    matched: list[MatchedTrade] = field(default_factory=list)
    open_positions: list[OpenPosition] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)  # Symbols touched by the run

    @property
    def net_profit(self) -> Decimal:
        return sum((t.profit for t in self.matched), Decimal("0"))

    @property
    def total_matched(self) -> int:
        return len(self.matched)

    @property
    def total_unmatched(self) -> int:
        return len(self.open_positions)


class _SymbolBook:
    """Per-symbol pair of FIFO lot queues."""

    def __init__(self, symbol: str, quantum: Decimal) -> None:
        self.symbol = symbol
        self._quantum = quantum
        self._queues: dict[Side, deque[Lot]] = {
            Side.BUY: deque(),
            Side.SELL: deque(),
        }
        # Conservation ledgers, keyed by side
        self._input_qty: dict[Side, int] = {Side.BUY: 0, Side.SELL: 0}
        self._matched_qty: dict[Side, int] = {Side.BUY: 0, Side.SELL: 0}
        self._input_commission = Decimal("0")
        self._allocated_commission = Decimal("0")

    def process(self, lot: Lot) -> list[MatchedTrade]:
        """Match *lot* against the opposite queue, then rest any remainder."""
        self._input_qty[lot.side] += lot.remaining_quantity
        self._input_commission += lot.commission

        opposite = self._queues[lot.side.opposite]
        trades: list[MatchedTrade] = []

        while lot.remaining_quantity > 0 and opposite:
            resting = opposite[0]
            qty = min(lot.remaining_quantity, resting.remaining_quantity)
            commission = resting.take(qty, self._quantum) + lot.take(qty, self._quantum)
            trades.append(self._emit(resting, lot, qty, commission))
            if resting.remaining_quantity == 0:
                opposite.popleft()

        if lot.remaining_quantity > 0:
            self._queues[lot.side].append(lot)
        return trades

    def _emit(
        self, resting: Lot, incoming: Lot, qty: int, commission: Decimal,
    ) -> MatchedTrade:
        buy, sell = (resting, incoming) if resting.side is Side.BUY else (incoming, resting)
        for side in (Side.BUY, Side.SELL):
            self._matched_qty[side] += qty
        self._allocated_commission += commission

        duration = sell.timestamp - buy.timestamp
        profit = qty * (sell.price - buy.price) - commission

        trade = MatchedTrade(
            trade_id=content_hash(self.symbol, buy.origin_id, sell.origin_id),
            symbol=self.symbol,
            direction=PositionSide.opened_by(resting.side),
            quantity=qty,
            buy_date=buy.date,
            buy_time=buy.time,
            sell_date=sell.date,
            sell_time=sell.time,
            buy_price=buy.price,
            sell_price=sell.price,
            commission=commission,
            profit=profit,
            buy_execution_id=buy.origin_id,
            sell_execution_id=sell.origin_id,
            duration_minutes=_whole_minutes(duration),
        )
        logger.debug(
            "Matched %s %s x%d buy=%s sell=%s profit=%s",
            self.symbol, trade.direction.value, qty,
            buy.origin_id, sell.origin_id, profit,
        )
        return trade

    def open_positions(self) -> list[OpenPosition]:
        positions = [lot.to_open_position() for lot in self._queues[Side.BUY]]
        positions.extend(lot.to_open_position() for lot in self._queues[Side.SELL])
        return positions

    def verify(self, positions: list[OpenPosition]) -> None:
        """Check quantity and commission conservation for this symbol.

        Raises:
            ConsistencyError: If any unit or commission was created or lost.
        """
        if any(p.remaining_quantity <= 0 for p in positions):
            raise ConsistencyError(self.symbol, "open position with non-positive quantity")

        for side in (Side.BUY, Side.SELL):
            resting = sum(
                p.remaining_quantity for p in positions if p.execution_side is side
            )
            if self._matched_qty[side] + resting != self._input_qty[side]:
                raise ConsistencyError(
                    self.symbol,
                    f"{side.value} quantity not conserved: matched="
                    f"{self._matched_qty[side]} open={resting} "
                    f"input={self._input_qty[side]}",
                )
        open_commission = sum((p.commission for p in positions), Decimal("0"))
        if self._allocated_commission + open_commission != self._input_commission:
            raise ConsistencyError(
                self.symbol,
                f"commission not conserved: allocated={self._allocated_commission} "
                f"open={open_commission} input={self._input_commission}",
            )


class ExecutionMatcher:
    """FIFO matcher over a batch of executions.

    Parameters
    ----------
    commission_quantum : Decimal
        Rounding unit for partial commission shares.  Default ``0.0001``.
    """

    def __init__(self, *, commission_quantum: Decimal = DEFAULT_COMMISSION_QUANTUM) -> None:
        self._quantum = commission_quantum

    def match(
        self,
        executions: Iterable[RawExecution],
        *,
        open_positions: Iterable[OpenPosition] = (),
        known_ids: Iterable[str] = (),
    ) -> MatchResult:
        """Match *executions*, optionally seeded with carried positions.

        Parameters
        ----------
        executions : Iterable[RawExecution]
            New executions, in any order.  Malformed ones are rejected.
        open_positions : Iterable[OpenPosition]
            Positions left open by a previous run.  They join the lot
            pool in their original chronological order.
        known_ids : Iterable[str]
            External IDs already processed by a previous run.

        Raises
        ------
        ConsistencyError
            If a matching invariant is violated.  Nothing from the run
            should be persisted.
        """
        valid, rejections = validate_executions(executions, known_ids=known_ids)

        lots_by_symbol: dict[str, list[Lot]] = defaultdict(list)
        for position in open_positions:
            lots_by_symbol[position.symbol].append(Lot.from_open_position(position))
        for execution in valid:
            lots_by_symbol[execution.symbol].append(Lot.from_execution(execution))

        result = MatchResult(rejections=rejections, symbols=sorted(lots_by_symbol))

        for symbol in result.symbols:
            book = _SymbolBook(symbol, self._quantum)
            for lot in sorted(lots_by_symbol[symbol], key=Lot.sort_key):
                result.matched.extend(book.process(lot))
            positions = book.open_positions()
            book.verify(positions)
            result.open_positions.extend(positions)

        logger.info(
            "Matched %d executions across %d symbols: %d trades, %d open, "
            "%d rejected, net profit %s",
            len(valid), len(result.symbols), result.total_matched,
            result.total_unmatched, len(rejections), result.net_profit,
        )
        return result


def match_executions(
    executions: Iterable[RawExecution],
    *,
    open_positions: Iterable[OpenPosition] = (),
    known_ids: Iterable[str] = (),
    commission_quantum: Decimal = DEFAULT_COMMISSION_QUANTUM,
) -> MatchResult:
    """Functional shortcut for :meth:`ExecutionMatcher.match`."""
    matcher = ExecutionMatcher(commission_quantum=commission_quantum)
    return matcher.match(executions, open_positions=open_positions, known_ids=known_ids)
