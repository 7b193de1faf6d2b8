"""Structured logging helpers shared by every pipeline component."""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name onto every record.

    Extra fields passed at the call site win over the adapter defaults, so a
    call may still override ``component`` when it logs on behalf of another
    part of the system.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally bound to a component.

    Args:
        name: Logger name (typically __name__)
        component: Component label injected into all records (e.g. "pipeline")

    Returns:
        Plain logger, or ComponentLoggerAdapter when component is given

    Example:
        >>> logger = get_logger(__name__, component="spend")
        >>> logger.warning("Cap nearly reached", extra={"event": "spend.alert.fired"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger
