"""Logging for the ``mint_lunchmoney`` package.

Library modules log structured events (``"area:event key=value ..."``) via
``get_logger("mint_lunchmoney.<module>")`` and never attach handlers; the
package root stays silent behind a ``NullHandler`` until the CLI calls
:func:`configure_logging`.

``configure_logging`` may run once per CLI invocation: it replaces the handler
it installed previously instead of stacking a new one, and binds to the
``sys.stderr`` current at call time. Values passed as ``secrets`` (the Lunch
Money token) are masked in every emitted line.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from typing import IO

LEVEL_ENV = "MINT_LM_LOG_LEVEL"

_PKG_LOGGER_NAME = "mint_lunchmoney"
_HANDLER_NAME = "mint_lunchmoney.console"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"
_DATEFMT = "%H:%M:%S"
_MASK = "***"


def resolve_level(level: int | str | None = None) -> int:
    """Level from the argument, else ``MINT_LM_LOG_LEVEL``, else ``INFO``.

    Unknown names fall through to the next source.
    """

    for candidate in (level, os.getenv(LEVEL_ENV)):
        if isinstance(candidate, int):
            return candidate
        if isinstance(candidate, str) and candidate.strip():
            name = candidate.strip().upper()
            if name.isdigit():
                return int(name)
            numeric = logging.getLevelName(name)
            if isinstance(numeric, int):
                return numeric
    return logging.INFO


class RedactingFilter(logging.Filter):
    """Replace each secret with ``***`` in the rendered message."""

    def __init__(self, secrets: Iterable[str | None]) -> None:
        super().__init__()
        self._secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        for secret in self._secrets:
            message = message.replace(secret, _MASK)
        record.msg, record.args = message, None
        return True


def configure_logging(
    level: int | str | None = None,
    *,
    stream: IO[str] | None = None,
    secrets: Iterable[str | None] = (),
) -> logging.Handler:
    """Attach (or replace) the console handler on the package root logger."""

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    handler.addFilter(RedactingFilter(secrets))

    logger.setLevel(resolve_level(level))
    logger.addHandler(handler)
    logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV", "resolve_level", "RedactingFilter", "configure_logging", "get_logger"]
