"""Logging setup shared by the CLI and the translation engine."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "idlgen"
_CONSOLE_FORMAT = "[idlgen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``idlgen.<name>``, or the package logger itself when ``name`` is empty."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def log_compiler_output(logger: logging.Logger, level: int, text: str) -> None:
    """Forward captured compiler output to ``logger`` one line at a time."""
    for line in text.splitlines():
        if line.strip():
            logger.log(level, line.rstrip())


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Route ``idlgen`` records to the console and, optionally, to ``log_file``.

    Calling this again replaces the handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), level, _CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
        )
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "log_compiler_output"]
