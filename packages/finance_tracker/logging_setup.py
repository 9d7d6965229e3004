"""Logging configuration for the ``finance_tracker`` package.

Public helpers:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package
  root logger (``"finance_tracker"``). Entry points (the CLI) call it once at
  startup; later calls are no-ops.
- ``get_logger(name)``: return a module logger. Until an application
  configures logging, the package root carries a ``NullHandler`` so library
  use stays silent.
- ``import_logger(logger, **context)``: wrap a logger so every record is
  prefixed with import context (user, account, import id, filename).

Library modules never attach handlers themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, MutableMapping
from typing import IO, Any

_PKG_LOGGER_NAME = "finance_tracker"
_LEVEL_ENV = "FINANCE_TRACKER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    ``level`` accepts an ``int`` or a level name; when ``None`` the
    ``FINANCE_TRACKER_LOG_LEVEL`` environment variable is consulted, falling
    back to ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


class _ImportContextAdapter(logging.LoggerAdapter):
    """Prefix messages with ``key=value`` import context."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra: Mapping[str, Any] = self.extra or {}
        prefix = " ".join(f"{k}={v}" for k, v in extra.items() if v is not None)
        return (f"[{prefix}] {msg}" if prefix else msg), kwargs


def import_logger(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    return _ImportContextAdapter(logger, context)


__all__ = ["configure_logging", "get_logger", "import_logger"]
