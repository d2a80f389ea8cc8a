"""Pytest configuration for test isolation.

The CLI and ``Settings.from_env`` read ``LUNCH_MONEY_*`` and ``MINT_LM_*``
variables, and the CLI loads a ``.env`` from the current working directory.
A developer's own environment (or ``.env``) must not leak into tests, so each
test starts from a clean slate inside its own temporary directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

_ENV_VARS = (
    "LUNCH_MONEY_API_KEY",
    "LUNCH_MONEY_BASE_URL",
    "MINT_LM_CSV_PATH",
    "MINT_LM_ACCOUNT_MAPPING_PATH",
    "MINT_LM_CATEGORY_MAPPING_PATH",
    "MINT_LM_TRANSFORMED_CSV_PATH",
    "MINT_LM_BATCH_SIZE",
    "MINT_LM_CURRENCY",
    "MINT_LM_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear migration-related variables and run from a per-test directory."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(os.fspath(workdir))


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    """Undo handlers/levels installed by ``configure_logging`` during a test."""

    logger = logging.getLogger("mint_lunchmoney")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
