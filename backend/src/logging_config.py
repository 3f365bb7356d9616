"""Logging setup shared by the API and the ingestion CLI."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

APP_LOGGERS = ("src.services", "src.routers", "src.dependencies")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s - %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # Our app loggers: show DEBUG when debug=True, keep third-party libs at INFO
    if debug:
        for name in APP_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)
