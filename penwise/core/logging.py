"""Logging configuration.

Exposes a module-level ``logger`` (a :class:`ContextualLogger`) that carries
structured dimensions. Derive narrower loggers with ``with_context`` and
``with_prefix`` instead of building new ``logging.Logger`` instances:

    log = logger.with_context(user_id=str(user_id), event_type=event.type)
    log.info("Processing webhook event")

Records are rendered by structlog: key/value lines locally, one JSON object
per line elsewhere, with the context dimensions as top-level keys.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog

from penwise.core.config import Environment, settings


def build_formatter(json_lines: bool) -> structlog.stdlib.ProcessorFormatter:
    """Formatter for stdlib records; ``extra`` dimensions become event keys."""
    processors: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_lines:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(default=str),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=processors,
    )


class ContextualLogger(logging.LoggerAdapter):
    """LoggerAdapter that attaches dimensions to every record it emits."""

    def __init__(
        self,
        logger: logging.Logger,
        extra: dict[str, Any] | None = None,
        prefix: str = "",
    ) -> None:
        """Initialize with the wrapped logger, dimensions and a message prefix."""
        super().__init__(logger, extra or {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping]:
        """Prefix the message and merge context dimensions into ``extra``."""
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"{self.prefix}{msg}", kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional dimensions."""
        merged = {**self.extra, **dimensions}
        return ContextualLogger(self.logger, merged, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a child logger whose messages start with *prefix*."""
        return ContextualLogger(self.logger, dict(self.extra), f"{self.prefix}{prefix}")


def _configure_base_logger() -> logging.Logger:
    base = logging.getLogger("penwise")
    base.setLevel(settings.LOG_LEVEL.upper())
    base.propagate = False
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(build_formatter(settings.ENVIRONMENT != Environment.LOCAL))
        base.addHandler(handler)
    return base


logger = ContextualLogger(_configure_base_logger())
