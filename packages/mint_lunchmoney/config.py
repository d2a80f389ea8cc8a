"""Runtime settings resolved from the environment.

The CLI loads a local ``.env`` (``python-dotenv``, without overriding variables
already set) before calling :meth:`Settings.from_env`; command-line options
then override individual fields via :func:`dataclasses.replace`.

Variables
---------
- ``LUNCH_MONEY_API_KEY``: API token (required by commands that call the API).
- ``LUNCH_MONEY_BASE_URL``: API root, default ``https://dev.lunchmoney.app``.
- ``MINT_LM_CSV_PATH``: Mint export, default ``./data.csv``.
- ``MINT_LM_ACCOUNT_MAPPING_PATH``: default ``./account_mapping.json``.
- ``MINT_LM_CATEGORY_MAPPING_PATH``: default ``./category_mapping.json``.
- ``MINT_LM_TRANSFORMED_CSV_PATH``: default ``./data_transformed.csv``.
- ``MINT_LM_BATCH_SIZE``: upload batch size, default 100.
- ``MINT_LM_CURRENCY``: fallback transaction currency, default ``usd``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .batching import DEFAULT_BATCH_SIZE, DEFAULT_CURRENCY
from .client import DEFAULT_BASE_URL
from .errors import MigrationError


def _env_path(name: str, default: str) -> Path:
    raw = os.getenv(name)
    return Path(raw).expanduser() if raw and raw.strip() else Path(default)


def _env_batch_size() -> int:
    raw = os.getenv("MINT_LM_BATCH_SIZE")
    try:
        size = int(raw) if raw else DEFAULT_BATCH_SIZE
    except ValueError:
        size = DEFAULT_BATCH_SIZE
    return size if size > 0 else DEFAULT_BATCH_SIZE


@dataclass(frozen=True, slots=True)
class Settings:
    api_key: str | None = field(repr=False)
    base_url: str
    csv_path: Path
    account_mapping_path: Path
    category_mapping_path: Path
    transformed_csv_path: Path
    batch_size: int
    currency: str

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            api_key=(os.getenv("LUNCH_MONEY_API_KEY") or "").strip() or None,
            base_url=os.getenv("LUNCH_MONEY_BASE_URL") or DEFAULT_BASE_URL,
            csv_path=_env_path("MINT_LM_CSV_PATH", "./data.csv"),
            account_mapping_path=_env_path("MINT_LM_ACCOUNT_MAPPING_PATH", "./account_mapping.json"),
            category_mapping_path=_env_path("MINT_LM_CATEGORY_MAPPING_PATH", "./category_mapping.json"),
            transformed_csv_path=_env_path("MINT_LM_TRANSFORMED_CSV_PATH", "./data_transformed.csv"),
            batch_size=_env_batch_size(),
            currency=(os.getenv("MINT_LM_CURRENCY") or DEFAULT_CURRENCY).strip().lower(),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise MigrationError("LUNCH_MONEY_API_KEY is not set in the environment.")
        return self.api_key


__all__ = ["Settings"]
