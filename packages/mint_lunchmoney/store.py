"""Mapping document persistence.

The account and category mapping documents are the durable contract between
reconciliation runs. Callers receive a store object explicitly instead of
touching files directly, so tests can swap in :class:`InMemoryMappingStore`.

File layout (pretty-printed UTF-8 JSON):

- account mapping: ``{"accounts": [[mintAccountName, {...}], ...]}``
- category mapping: ``{"categories": {...}, "categoryGroups": {...},
  "lunchMoneyOptions": [...]}``

Writes go to ``<path>.tmp`` first and are then ``os.replace``-d into place.
"""

from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MappingFileError
from .logging_setup import get_logger
from .models import AccountMappingDoc, CategoryMappingDoc

_logger = get_logger("mint_lunchmoney.store")

_M = TypeVar("_M", bound=BaseModel)


class MappingStore(Protocol):
    """Read/write access to the two mapping documents."""

    def load_accounts(self) -> AccountMappingDoc | None: ...

    def save_accounts(self, doc: AccountMappingDoc) -> None: ...

    def load_categories(self) -> CategoryMappingDoc | None: ...

    def save_categories(self, doc: CategoryMappingDoc) -> None: ...

    def has_categories(self) -> bool: ...

    def describe_categories(self) -> str: ...


def dump_document(doc: BaseModel) -> str:
    """Serialize a mapping document the way it is written to disk."""

    return json.dumps(
        doc.model_dump(mode="json", by_alias=True, exclude_none=True),
        indent=2,
        ensure_ascii=False,
    )


def _read(path: Path, model: type[_M]) -> _M | None:
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
        return model.model_validate_json(text)
    except (OSError, UnicodeDecodeError) as e:
        raise MappingFileError(f"Failed to read mapping file {path}: {e}") from e
    except ValidationError as e:
        raise MappingFileError(f"Invalid mapping file {path}:\n{e}") from e


def _write(path: Path, doc: BaseModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(dump_document(doc) + "\n", encoding="utf-8")
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
    _logger.debug("mapping:written path=%s", os.fspath(path))


class FileMappingStore:
    """Mapping documents stored as JSON files at configurable paths."""

    def __init__(self, account_path: str | os.PathLike[str], category_path: str | os.PathLike[str]) -> None:
        self.account_path = Path(account_path)
        self.category_path = Path(category_path)

    def load_accounts(self) -> AccountMappingDoc | None:
        return _read(self.account_path, AccountMappingDoc)

    def save_accounts(self, doc: AccountMappingDoc) -> None:
        _write(self.account_path, doc)

    def load_categories(self) -> CategoryMappingDoc | None:
        return _read(self.category_path, CategoryMappingDoc)

    def save_categories(self, doc: CategoryMappingDoc) -> None:
        _write(self.category_path, doc)

    def has_categories(self) -> bool:
        return self.category_path.exists()

    def describe_categories(self) -> str:
        return os.fspath(self.category_path)


class InMemoryMappingStore:
    """Store that keeps documents in memory (deep copies in and out)."""

    def __init__(
        self,
        accounts: AccountMappingDoc | None = None,
        categories: CategoryMappingDoc | None = None,
    ) -> None:
        self.accounts = accounts
        self.categories = categories

    def load_accounts(self) -> AccountMappingDoc | None:
        return self.accounts.model_copy(deep=True) if self.accounts is not None else None

    def save_accounts(self, doc: AccountMappingDoc) -> None:
        self.accounts = doc.model_copy(deep=True)

    def load_categories(self) -> CategoryMappingDoc | None:
        return self.categories.model_copy(deep=True) if self.categories is not None else None

    def save_categories(self, doc: CategoryMappingDoc) -> None:
        self.categories = doc.model_copy(deep=True)

    def has_categories(self) -> bool:
        return self.categories is not None

    def describe_categories(self) -> str:
        return "<memory>"


__all__ = [
    "MappingStore",
    "FileMappingStore",
    "InMemoryMappingStore",
    "dump_document",
]
