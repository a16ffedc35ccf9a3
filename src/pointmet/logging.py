"""
Structured logging for the extraction pipeline.

Provides:
- MetLogger: Structured logger with context binding
- get_logger: Get a logger for a specific component
- configure_logging: Configure logging output format

Events are snake_case names with structured fields, e.g.
``log.info("dataset_assembled", site="HARVARD", dataset="NLDAS", rows=315576)``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import structlog


class MetLogger:
    """
    Structured logger for pipeline components.

    Example:
        log = MetLogger("pipeline")
        log = log.bind(site="HARVARD", dataset="NLDAS")

        log.info("extracting", n_files=36)
        log.debug("file_extracted", file="NLDAS.1980.nc", steps=8784)
        log.error("dataset_failed", error="GridLookupError: ...")
    """

    def __init__(
        self,
        component: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the logger.

        Args:
            component: Component name (e.g., "reader", "assemble", "pipeline")
            context: Initial context bindings
        """
        self._component = component
        self._context = context or {}
        self._logger = structlog.get_logger(f"pointmet.{component}")
        if context:
            self._logger = self._logger.bind(**context)

    def bind(self, **kwargs: Any) -> "MetLogger":
        """
        Create a new logger with additional context bindings.

        Args:
            **kwargs: Key-value pairs to bind to the logger

        Returns:
            New MetLogger with bound context
        """
        new_context = {**self._context, **kwargs}
        return MetLogger(self._component, new_context)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._logger.error(event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(event, **kwargs)


def get_logger(component: str) -> MetLogger:
    """
    Get a logger for a specific component.

    Example:
        log = get_logger("reader")
        log.info("opened", file="NLDAS.1980.nc")
    """
    return MetLogger(component)


def configure_logging(
    level: str = "INFO",
    format: str = "console",
    output: str = "stderr",
) -> None:
    """
    Configure logging output.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
        format: Output format ("json", "console", "simple")
        output: Output destination ("stderr", "stdout", or file path)
    """
    level_num = getattr(logging, level.upper(), logging.INFO)

    if output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(output)

    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger("pointmet")
    root_logger.setLevel(level_num)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if format == "json":
        processors = [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    elif format == "console":
        processors = [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=output == "stderr" and sys.stderr.isatty()),
        ]
    else:
        processors = [
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event", "level"]),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
