"""Structured logging configuration for the dashboard."""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

console = Console()

ROOT_LOGGER_NAME = "ytdash"

# Module-level logger
logger: logging.Logger | None = None


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    rich_tracebacks: bool = True,
) -> logging.Logger:
    """
    Configure structured logging for the application.

    Module loggers created with ``logging.getLogger(__name__)`` inside the
    ``ytdash`` package propagate to the logger configured here.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        rich_tracebacks: Enable rich traceback formatting

    Returns:
        Configured logger instance
    """
    global logger

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=rich_tracebacks,
        tracebacks_show_locals=(level.upper() == "DEBUG"),
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False

    logger.debug("Logging initialized (level=%s)", level)

    return logger


def log_query_fallback(
    logger_instance: logging.Logger,
    collection: str,
    dropped: list[str],
    reason: str,
) -> None:
    """
    Log a query that was retried without ordering or range predicates.

    Args:
        logger_instance: Logger to use
        collection: Collection the query targeted
        dropped: Human-readable descriptions of the dropped predicates
        reason: Error message reported by the store
    """
    extra: dict[str, Any] = {
        "collection": collection,
        "dropped_predicates": dropped,
        "event": "query_fallback",
    }
    logger_instance.warning(
        "Query on %s needs a missing index, retrying with equality filters only (%s)",
        collection,
        reason,
        extra=extra,
    )


def log_cache_invalidation(
    logger_instance: logging.Logger,
    prefixes: tuple[str, ...],
    removed: int,
) -> None:
    """
    Log cache entries removed after a write.

    Args:
        logger_instance: Logger to use
        prefixes: Key prefixes that were cleared
        removed: Total number of removed entries
    """
    logger_instance.debug(
        "Invalidated %d cache entries for %s",
        removed,
        ", ".join(prefixes),
        extra={"prefixes": list(prefixes), "removed": removed, "event": "cache_invalidation"},
    )
