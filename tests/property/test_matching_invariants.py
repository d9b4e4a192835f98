"""Property tests: FIFO matching conserves quantity and commission.

Strategy: generate random execution streams over a couple of symbols,
match them, and check that every unit and every cent of commission in
the input ends up in exactly one matched trade or open position, and
that matching is a pure function of the input set.
"""

from datetime import date, time, timedelta
from decimal import Decimal

from hypothesis import given, settings, strategies as st

from tradebook.core.enums import PositionSide, Side
from tradebook.core.models import RawExecution
from tradebook.matching import match_executions

_BASE_DAY = date(2024, 1, 1)

_execution_fields = st.tuples(
    st.sampled_from(["AAPL", "MSFT"]),
    st.sampled_from([Side.BUY, Side.SELL]),
    st.integers(min_value=1, max_value=500),
    st.integers(min_value=1, max_value=50_000),   # price in cents
    st.integers(min_value=0, max_value=1_000),    # commission in cents
    st.integers(min_value=0, max_value=5),        # day offset
    st.integers(min_value=0, max_value=23),       # hour
)


def _build(fields: list[tuple]) -> list[RawExecution]:
    return [
        RawExecution(
            symbol=symbol,
            side=side,
            quantity=qty,
            price=Decimal(price) / 100,
            commission=Decimal(commission) / 100,
            date=_BASE_DAY + timedelta(days=day),
            time=time(hour, 0),
            external_id=f"E{i:04d}",
        )
        for i, (symbol, side, qty, price, commission, day, hour) in enumerate(fields)
    ]


executions_strategy = st.lists(_execution_fields, min_size=0, max_size=40).map(_build)


@given(executions=executions_strategy)
@settings(max_examples=100, deadline=None)
def test_quantity_is_conserved(executions):
    result = match_executions(executions)
    for symbol in {e.symbol for e in executions}:
        for side in (Side.BUY, Side.SELL):
            supplied = sum(e.quantity for e in executions if e.symbol == symbol and e.side is side)
            matched = sum(t.quantity for t in result.matched if t.symbol == symbol)
            resting = sum(
                p.remaining_quantity
                for p in result.open_positions
                if p.symbol == symbol and p.execution_side is side
            )
            assert matched + resting == supplied


@given(executions=executions_strategy)
@settings(max_examples=100, deadline=None)
def test_commission_is_conserved(executions):
    result = match_executions(executions)
    supplied = sum((e.commission for e in executions), Decimal("0"))
    allocated = sum((t.commission for t in result.matched), Decimal("0"))
    resting = sum((p.commission for p in result.open_positions), Decimal("0"))
    assert allocated + resting == supplied
    assert all(t.commission >= 0 for t in result.matched)
    assert all(p.commission >= 0 for p in result.open_positions)


@given(executions=executions_strategy)
@settings(max_examples=100, deadline=None)
def test_one_side_open_per_symbol(executions):
    result = match_executions(executions)
    for symbol in {p.symbol for p in result.open_positions}:
        sides = {p.side for p in result.open_positions if p.symbol == symbol}
        assert len(sides) == 1
        assert sides <= {PositionSide.LONG, PositionSide.SHORT}


@given(executions=executions_strategy, data=st.data())
@settings(max_examples=50, deadline=None)
def test_result_independent_of_input_order(executions, data):
    shuffled = data.draw(st.permutations(executions))
    first = match_executions(executions)
    second = match_executions(shuffled)
    assert first.matched == second.matched
    assert first.open_positions == second.open_positions


@given(executions=executions_strategy)
@settings(max_examples=50, deadline=None)
def test_profit_identity(executions):
    for trade in match_executions(executions).matched:
        assert trade.quantity > 0
        assert trade.profit == trade.quantity * (trade.sell_price - trade.buy_price) - trade.commission
