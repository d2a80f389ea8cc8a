"""Chunked, sequential upload of normalized records.

Batches are submitted strictly in order and each call completes before the
next one starts. The first rejected batch stops the upload with
:class:`~mint_lunchmoney.errors.UploadError`; its ``batch_index`` is the
resume point. Earlier batches stay in Lunch Money and a re-upload relies on
the positional ``external_id`` for de-duplication.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from .client import DestinationClient
from .errors import LunchMoneyAPIError, UploadError
from .logging_setup import get_logger
from .models import Records, TransactionRecord

DEFAULT_BATCH_SIZE = 100
DEFAULT_CURRENCY = "usd"

_logger = get_logger("mint_lunchmoney.batching")

_T = TypeVar("_T")


def total_batches_for(n_items: int, *, batch_size: int) -> int:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return math.ceil(n_items / batch_size)


def chunked(items: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""

    if size <= 0:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def to_draft_transaction(
    record: TransactionRecord, *, default_currency: str = DEFAULT_CURRENCY
) -> dict[str, Any]:
    """Build the Lunch Money insert payload for one normalized record."""

    return {
        "payee": record.description,
        "notes": record.notes,
        "date": record.normalized_date,
        "category_id": record.dest_category_id,
        "amount": record.normalized_amount,
        "asset_id": record.dest_account_id,
        "external_id": record.external_id,
        "tags": list(record.tags),
        "currency": (record.dest_currency or default_currency).lower(),
        "status": "cleared",
    }


@dataclass(frozen=True, slots=True)
class UploadSummary:
    batches: int
    transactions: int
    inserted_ids: tuple[int, ...]


def upload_transactions(
    records: Records,
    client: DestinationClient,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    default_currency: str = DEFAULT_CURRENCY,
    on_progress: Callable[[str], None] | None = None,
) -> UploadSummary:
    """Submit ``records`` to Lunch Money in fixed-size batches.

    Inserts use ``apply_rules=False`` (rules can be applied by hand later),
    ``check_for_recurring=True`` and ``debit_as_negative=True``.
    """

    n_batches = total_batches_for(len(records), batch_size=batch_size)
    _logger.info(
        "upload:start transactions=%d batches=%d batch_size=%d",
        len(records),
        n_batches,
        batch_size,
    )

    inserted: list[int] = []
    for i, batch in enumerate(chunked(records, batch_size)):
        if on_progress:
            on_progress(f"Pushing batch {i + 1}/{n_batches} ({len(batch)} transactions)")
        try:
            result = client.insert_transactions(
                [to_draft_transaction(r, default_currency=default_currency) for r in batch],
                apply_rules=False,
                check_for_recurring=True,
                debit_as_negative=True,
            )
        except LunchMoneyAPIError as e:
            _logger.error("upload:batch_failed index=%d status=%s", i, e.status_code)
            raise UploadError(i, [str(e)]) from e
        if not result.ok:
            _logger.error("upload:batch_rejected index=%d errors=%s", i, list(result.errors))
            raise UploadError(i, result.errors)
        inserted.extend(result.ids)
        _logger.info("upload:batch_done index=%d inserted=%d", i, len(result.ids))

    return UploadSummary(batches=n_batches, transactions=len(records), inserted_ids=tuple(inserted))


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CURRENCY",
    "total_batches_for",
    "chunked",
    "to_draft_transaction",
    "UploadSummary",
    "upload_transactions",
]
