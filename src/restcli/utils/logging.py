"""Logging setup utilities for restcli.

Routes the ``restcli`` loggers and the uvicorn server loggers through
the same handlers, so audit lines and server lines share one format.
"""

from __future__ import annotations

import logging
import sys

from restcli.config.settings import LoggingConfig

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the restcli application.

    Safe to call more than once; handlers installed by a previous call
    are replaced.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)

    app_logger = logging.getLogger("restcli")
    app_logger.setLevel(level)
    _replace_handlers(app_logger, handlers)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        _replace_handlers(server_logger, handlers)
        server_logger.propagate = False

    app_logger.info("Logging initialized at %s level", config.level)


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
