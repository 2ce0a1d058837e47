"""Correlation-aware logging for the node tree parser.

Every record emitted through ``get_logger`` carries the component name and
the optional correlation ID in its ``extra`` data, so that a parse or a load
can be followed through all layers.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple


class CorrelationLogger(logging.LoggerAdapter):
    """Logger adapter that adds correlation ID and component to each record."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
        """
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]
        super().__init__(
            logging.getLogger(name),
            {"component": self.component, "correlation_id": correlation_id},
        )

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        combined: Dict[str, Any] = dict(self.extra or {})
        combined.update(kwargs.get("extra") or {})
        kwargs["extra"] = combined
        return msg, kwargs

    def bind(self, correlation_id: Optional[str]) -> "CorrelationLogger":
        """Return a logger for the same component with another correlation ID."""
        return CorrelationLogger(self.logger.name, correlation_id, self.component)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None,
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)
