"""Lots: unmatched quantity of one side of one symbol.

A lot is born either from a fresh execution or from an open position
carried over from a previous run.  Matching consumes it piecewise; each
piece takes a quantity-proportional share of the lot's commission and
the piece that exhausts the lot takes whatever is left, so the shares
of every descendant sum to exactly the original commission.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from tradebook.core.enums import PositionSide, Side
from tradebook.core.errors import ConsistencyError
from tradebook.core.models import OpenPosition, RawExecution, combine

# Seeded lots sort ahead of new executions sharing their timestamp.
_SEED_PRIORITY = 0
_EXECUTION_PRIORITY = 1


@dataclass
class Lot:
    """Mutable matching state for one execution (or carried position)."""

    symbol: str
    side: Side
    remaining_quantity: int
    price: Decimal
    commission: Decimal  # Unallocated commission of the remaining quantity
    date: dt.date
    time: dt.time | None
    origin_id: str
    seeded: bool = False

    @classmethod
    def from_execution(cls, execution: RawExecution) -> Lot:
        return cls(
            symbol=execution.symbol,
            side=execution.side,
            remaining_quantity=execution.quantity,
            price=execution.price,
            commission=execution.commission,
            date=execution.date,
            time=execution.time,
            origin_id=execution.external_id,
        )

    @classmethod
    def from_open_position(cls, position: OpenPosition) -> Lot:
        if position.remaining_quantity <= 0:
            raise ConsistencyError(
                position.symbol,
                f"carried position {position.origin_id} has "
                f"non-positive quantity {position.remaining_quantity}",
            )
        return cls(
            symbol=position.symbol,
            side=position.execution_side,
            remaining_quantity=position.remaining_quantity,
            price=position.price,
            commission=position.commission,
            date=position.date,
            time=position.time,
            origin_id=position.origin_id,
            seeded=True,
        )

    @property
    def timestamp(self) -> dt.datetime:
        return combine(self.date, self.time)

    def sort_key(self) -> tuple:
        priority = _SEED_PRIORITY if self.seeded else _EXECUTION_PRIORITY
        return (self.date, self.time or dt.time.min, priority, self.origin_id)

    def take(self, quantity: int, quantum: Decimal) -> Decimal:
        """Consume *quantity* units and return their commission share.

        Raises:
            ConsistencyError: If the request is non-positive or exceeds
                what the lot still holds.
        """
        if quantity <= 0 or quantity > self.remaining_quantity:
            raise ConsistencyError(
                self.symbol,
                f"cannot take {quantity} from lot {self.origin_id} "
                f"holding {self.remaining_quantity}",
            )

        if quantity == self.remaining_quantity:
            share = self.commission
        else:
            share = (self.commission * quantity / self.remaining_quantity).quantize(
                quantum, rounding=ROUND_HALF_UP,
            )
            share = min(share, self.commission)

        self.remaining_quantity -= quantity
        self.commission -= share
        if self.commission < 0:
            raise ConsistencyError(
                self.symbol,
                f"lot {self.origin_id} commission went negative ({self.commission})",
            )
        return share

    def to_open_position(self) -> OpenPosition:
        return OpenPosition(
            symbol=self.symbol,
            side=PositionSide.opened_by(self.side),
            remaining_quantity=self.remaining_quantity,
            price=self.price,
            commission=self.commission,
            date=self.date,
            time=self.time,
            origin_id=self.origin_id,
        )
