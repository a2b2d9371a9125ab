"""
Logging setup - structured key=value output on stderr.

Modules log through ``logging.getLogger(__name__)`` and attach context with
``extra=``; the formatter appends those fields to each line.
"""

import logging
import sys

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """Standard formatter that appends extra fields as key=value pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        fields = [
            f"{key}={value!r}" if isinstance(value, str) else f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        ]
        if not fields:
            return line
        return f"{line} {' '.join(fields)}"


def configure_logging(debug: bool = False) -> None:
    """Install the structured handler on the root logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        StructuredFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[handler],
        force=True,
    )
    if debug:
        logging.getLogger(__name__).info("debug mode enabled")
