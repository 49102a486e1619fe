"""
Logging configuration.

All application loggers live under the ``carlet`` namespace and are
configured once at startup from settings. Lines written while serving a
request carry its correlation id.
"""

import logging
from carlet.app.core.observability import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the ``carlet`` logger tree."""
    root = logging.getLogger("carlet")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.propagate = False
