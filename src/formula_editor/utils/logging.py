"""Logging setup for hosts embedding the formula plugin."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["PACKAGE_LOGGER", "setup_logging", "set_plugin_debug", "get_log_path"]

PACKAGE_LOGGER = "formula_editor"
_DEFAULT_LOG_DIR = Path.home() / ".formula_editor" / "logs"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOG_PATH: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = False,
    max_bytes: int = 512_000,
    backup_count: int = 2,
) -> Path:
    """Attach a rotating file handler (and optionally a console handler) to the package logger.

    Only the ``formula_editor`` logger is touched so the host keeps control of
    the root logger. Calling this again replaces the handlers it installed.
    """

    global _LOG_PATH
    target_dir = Path(log_dir or os.environ.get("FORMULA_EDITOR_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / "formula_editor.log"

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_formula_editor_handler", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler._formula_editor_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    logger.setLevel(level)
    _LOG_PATH = log_path
    return log_path


def set_plugin_debug(enabled: bool) -> None:
    """Toggle DEBUG output for registry, selection and insertion traces."""

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if enabled else logging.INFO)


def get_log_path() -> Path | None:
    """Return the file configured by :func:`setup_logging`, if any."""

    return _LOG_PATH
