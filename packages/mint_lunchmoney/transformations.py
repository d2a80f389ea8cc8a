"""Standard per-record transformations applied before upload.

The pipeline is fixed and order-dependent::

    transform_dates → flip_signs → trim_notes → add_external_ids → [add_mint_tag]

Each stage takes the full record sequence and returns a new list of the same
length and order. Only :func:`transform_dates` can fail (malformed source
dates are fatal).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from .errors import InvalidDateError
from .models import Records, TransactionRecord

SOURCE_DATE_FORMAT = "%m/%d/%Y"
DEST_DATE_FORMAT = "%Y-%m-%d"
EXTERNAL_ID_PREFIX = "MINT"
MINT_TAG = "mint"


def transform_dates(records: Records) -> list[TransactionRecord]:
    out: list[TransactionRecord] = []
    for i, r in enumerate(records):
        try:
            parsed = datetime.strptime(r.date.strip(), SOURCE_DATE_FORMAT)
        except ValueError as e:
            raise InvalidDateError(r.date, index=i) from e
        out.append(replace(r, normalized_date=parsed.strftime(DEST_DATE_FORMAT)))
    return out


def flip_signs(records: Records) -> list[TransactionRecord]:
    """Debits become negative amounts; credits keep the exported magnitude."""

    out: list[TransactionRecord] = []
    for r in records:
        magnitude = abs(Decimal(r.amount))
        sign = "-" if r.is_debit and magnitude else ""
        out.append(replace(r, normalized_amount=f"{sign}{magnitude:f}"))
    return out


def trim_notes(records: Records) -> list[TransactionRecord]:
    return [replace(r, notes=r.notes.strip()) for r in records]


def add_external_ids(records: Records, *, prefix: str = EXTERNAL_ID_PREFIX) -> list[TransactionRecord]:
    """Assign positional ids (``MINT-0``, ``MINT-1``, ...) in input order.

    Re-running on the same ordered input yields identical ids, which Lunch
    Money uses to skip duplicates on a repeated upload.
    """

    return [replace(r, external_id=f"{prefix}-{i}") for i, r in enumerate(records)]


def add_mint_tag(records: Records) -> list[TransactionRecord]:
    return [r.with_tags([MINT_TAG]) for r in records]


def apply_standard_transformations(
    records: Records, *, with_mint_tag: bool = False
) -> list[TransactionRecord]:
    """Run the full pipeline; ``with_mint_tag`` is the operator's opt-in."""

    out = add_external_ids(trim_notes(flip_signs(transform_dates(records))))
    return add_mint_tag(out) if with_mint_tag else out
