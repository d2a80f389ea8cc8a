"""Mint CSV export → :class:`~mint_lunchmoney.models.TransactionRecord`.

Header names have all whitespace removed before lookup, so the Mint columns
``Account Name``, ``Original Description`` and ``Transaction Type`` are read as
``AccountName``, ``OriginalDescription`` and ``TransactionType``.

Rows are validated while loading (transaction type, non-negative amount) so that the
reconcilers and the normalizer can assume well-formed records.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, fields
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path

from .errors import InvalidRecordError
from .logging_setup import get_logger
from .models import TransactionRecord, TransactionType

_logger = get_logger("mint_lunchmoney.ingest")

REQUIRED_HEADERS: frozenset[str] = frozenset(
    {"Date", "Description", "Amount", "TransactionType", "Category", "AccountName"}
)

_WS_RE = re.compile(r"\s")


def normalize_header(header: str) -> str:
    """``"Original Description"`` → ``"OriginalDescription"``."""

    return _WS_RE.sub("", header)


def _transaction_type(raw: str, line: int) -> TransactionType:
    t = raw.strip().lower()
    if t == "debit":
        return "debit"
    if t == "credit":
        return "credit"
    raise InvalidRecordError(f"line {line}: unknown transaction type {raw!r}")


def _amount(raw: str, line: int) -> str:
    s = raw.strip().replace(",", "")
    try:
        d = Decimal(s)
    except InvalidOperation as e:
        raise InvalidRecordError(f"line {line}: invalid amount {raw!r}") from e
    if not d.is_finite():
        raise InvalidRecordError(f"line {line}: invalid amount {raw!r}")
    if d < 0:
        raise InvalidRecordError(
            f"line {line}: negative amount {raw!r}; the sign belongs in Transaction Type"
        )
    return s.lstrip("+")


def to_records(rows: Iterable[Mapping[str, str | None]]) -> Iterator[TransactionRecord]:
    """Convert header-normalized Mint rows to records (line numbers start at 2)."""

    for line, row in enumerate(rows, start=2):
        values = {k: (v or "") for k, v in row.items() if k is not None}
        if not any(v.strip() for v in values.values()):
            continue
        yield TransactionRecord(
            account_name=values.get("AccountName", ""),
            amount=_amount(values.get("Amount", ""), line),
            category=values.get("Category", ""),
            date=values.get("Date", ""),
            description=values.get("Description", ""),
            transaction_type=_transaction_type(values.get("TransactionType", ""), line),
            notes=values.get("Notes", ""),
            original_description=values.get("OriginalDescription", ""),
            labels=values.get("Labels", ""),
        )


def read_mint_csv(csv_path: str | PathLike[str]) -> list[TransactionRecord]:
    """Read a Mint ``transactions.csv`` export in file order."""

    p = Path(csv_path)
    with p.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise csv.Error(f"CSV appears to have no header row: {csv_path}")
        reader.fieldnames = [normalize_header(h) for h in reader.fieldnames]
        missing = sorted(REQUIRED_HEADERS - set(reader.fieldnames))
        if missing:
            raise csv.Error("CSV header mismatch for Mint export. Missing columns: " + ", ".join(missing))
        records = list(to_records(reader))
    _logger.info("ingest:read path=%s transactions=%d", p, len(records))
    return records


def write_transformed_csv(records: Iterable[TransactionRecord], csv_path: str | PathLike[str]) -> None:
    """Write records with all source and annotation fields (tags ``|``-joined)."""

    names = [f.name for f in fields(TransactionRecord)]
    p = Path(csv_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=names)
        writer.writeheader()
        count = 0
        for r in records:
            row = asdict(r)
            row["tags"] = "|".join(r.tags)
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
            count += 1
    _logger.info("ingest:written path=%s transactions=%d", p, count)


__all__ = [
    "REQUIRED_HEADERS",
    "normalize_header",
    "to_records",
    "read_mint_csv",
    "write_transformed_csv",
]
