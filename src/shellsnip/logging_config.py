"""Centralized logging configuration for shellsnip."""

from __future__ import annotations

import logging
import logging.config
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_logging_configured = False


def _rich_handler(**kwargs: Any) -> RichHandler:
    return RichHandler(console=Console(stderr=True), **kwargs)


def _build_logging_config(verbose: bool = False) -> dict[str, Any]:
    """Build the dictConfig configuration dictionary."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "rich": {"format": "%(message)s", "datefmt": "[%X]"},
        },
        "handlers": {
            "console": {
                "()": "shellsnip.logging_config._rich_handler",
                "level": "DEBUG" if verbose else "INFO",
                "formatter": "rich",
                "show_path": False,
                "markup": False,
                "rich_tracebacks": True,
            },
        },
        "loggers": {
            "shellsnip": {
                "level": "DEBUG",
                "handlers": ["console"],
                "propagate": True,
            },
        },
    }


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the shellsnip CLI.

    Library code only calls ``logging.getLogger(__name__)``; handlers are
    attached here, once, when the CLI starts.
    """

    global _logging_configured

    if _logging_configured:
        if verbose:
            for handler in logging.getLogger("shellsnip").handlers:
                handler.setLevel(logging.DEBUG)
        return

    try:
        logging.config.dictConfig(_build_logging_config(verbose=verbose))
    except Exception as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(levelname)s: %(message)s",
        )

    _logging_configured = True
