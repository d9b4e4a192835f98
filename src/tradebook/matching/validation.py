"""Execution row validation.

Malformed rows never abort a batch.  Each one becomes a
:class:`Rejection` that is logged, counted and handed back to the
caller next to the executions that survived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from tradebook.core.enums import RejectionReason
from tradebook.core.errors import ExecutionValidationError
from tradebook.core.models import RawExecution

logger = logging.getLogger(__name__)

# Column names emitted by the upstream parsers, mapped onto model fields.
_ALIASES = {
    "type": "side",
    "trade_type": "side",
    "tradeType": "side",
    "qty": "quantity",
    "fee": "commission",
    "trade_id": "external_id",
    "tradeId": "external_id",
    "externalId": "external_id",
}


@dataclass(frozen=True)
class Rejection:
    """A row that was skipped, and why."""

    external_id: str
    symbol: str
    reason: RejectionReason
    detail: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "external_id": self.external_id,
            "symbol": self.symbol,
            "reason": self.reason.value,
            "detail": self.detail,
        }


def _normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, value in row.items():
        field = _ALIASES.get(key, key)
        if isinstance(value, str):
            value = value.strip()
            if value == "" and field in ("time", "commission"):
                continue
        if field == "side" and isinstance(value, str):
            value = value.lower()
        if field == "symbol" and isinstance(value, str):
            value = value.upper()
        data[field] = value
    return data


def parse_rows(
    rows: Iterable[Mapping[str, Any]],
) -> tuple[list[RawExecution], list[Rejection]]:
    """Coerce loosely typed loader rows into :class:`RawExecution`.

    Dates, times and numbers may arrive as strings and sides in any
    case.  Rows pydantic cannot coerce are rejected as unparseable.
    """
    executions: list[RawExecution] = []
    rejections: list[Rejection] = []

    for idx, row in enumerate(rows):
        data = _normalize_row(row)
        try:
            executions.append(RawExecution.model_validate(data))
        except ValidationError as exc:
            detail = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            rejection = Rejection(
                external_id=str(data.get("external_id") or f"row-{idx}"),
                symbol=str(data.get("symbol") or ""),
                reason=RejectionReason.UNPARSEABLE,
                detail=detail,
            )
            logger.warning(
                "Unparseable execution row %s: %s", rejection.external_id, detail,
            )
            rejections.append(rejection)

    return executions, rejections


def validate_execution(execution: RawExecution) -> None:
    """Raise :class:`ExecutionValidationError` if *execution* is malformed."""
    if not execution.external_id.strip():
        raise ExecutionValidationError(
            "", RejectionReason.MISSING_EXTERNAL_ID.value,
        )
    if not execution.symbol.strip():
        raise ExecutionValidationError(
            execution.external_id, RejectionReason.MISSING_SYMBOL.value,
        )
    if execution.quantity <= 0:
        raise ExecutionValidationError(
            execution.external_id,
            RejectionReason.NON_POSITIVE_QUANTITY.value,
            f"quantity={execution.quantity}",
        )
    if execution.price <= 0:
        raise ExecutionValidationError(
            execution.external_id,
            RejectionReason.NON_POSITIVE_PRICE.value,
            f"price={execution.price}",
        )
    if execution.commission < 0:
        raise ExecutionValidationError(
            execution.external_id,
            RejectionReason.NEGATIVE_COMMISSION.value,
            f"commission={execution.commission}",
        )
    # Fill times are naive exchange-local wall clock
    if execution.time is not None and execution.time.tzinfo is not None:
        raise ExecutionValidationError(
            execution.external_id,
            RejectionReason.TIMEZONE_AWARE_TIME.value,
            f"time={execution.time.isoformat()}",
        )


def validate_executions(
    executions: Iterable[RawExecution],
    *,
    known_ids: Iterable[str] = (),
) -> tuple[list[RawExecution], list[Rejection]]:
    """Split *executions* into usable ones and rejections.

    Parameters
    ----------
    executions : Iterable[RawExecution]
        Candidate executions, in any order.
    known_ids : Iterable[str]
        External IDs already consumed by a previous run.  Re-imported
        rows carrying one of them are skipped.
    """
    known = set(known_ids)
    seen: set[str] = set()
    valid: list[RawExecution] = []
    rejections: list[Rejection] = []

    for execution in executions:
        try:
            validate_execution(execution)
        except ExecutionValidationError as exc:
            rejections.append(Rejection(
                external_id=execution.external_id,
                symbol=execution.symbol,
                reason=RejectionReason(exc.reason),
                detail=exc.detail,
            ))
            logger.warning("%s", exc)
            continue

        if execution.external_id in known:
            rejections.append(Rejection(
                external_id=execution.external_id,
                symbol=execution.symbol,
                reason=RejectionReason.ALREADY_PROCESSED,
            ))
            continue
        if execution.external_id in seen:
            rejections.append(Rejection(
                external_id=execution.external_id,
                symbol=execution.symbol,
                reason=RejectionReason.DUPLICATE_EXTERNAL_ID,
            ))
            logger.warning("Duplicate execution id %s skipped", execution.external_id)
            continue

        seen.add(execution.external_id)
        valid.append(execution)

    return valid, rejections
