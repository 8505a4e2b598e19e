"""Structured logging helpers shared by the ingestion and matching components."""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a fixed component tag with per-call extras."""

    def process(self, msg, kwargs):
        # Call-site extras win over the adapter defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, optionally tagging every record with ``component``.

    Example:
        >>> logger = get_logger(__name__, component="ingestion")
        >>> logger.info("Batch finished", extra={"event": "ingestion.batch.completed"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger
