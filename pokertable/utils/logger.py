"""Structured logging configuration."""
import logging
import sys
import traceback
from typing import Any, Optional

from pokertable.config import config


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.
    
    Args:
        name: Logger name, typically __name__ of the calling module.
        
    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name or "pokertable")
    
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    
    return logger


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(str(v) for v in value) + "]"
    return str(value)


class EventSink:
    """Single structured sink for table events.
    
    Every record is rendered as ``event key=value ...`` and tagged with the
    table id. A failure while rendering or emitting a record is reported and
    dropped; it never reaches the caller.
    """
    
    def __init__(self, table_id: str, logger: Optional[logging.Logger] = None):
        self.table_id = table_id
        self._logger = logger or get_logger("pokertable.table")
    
    def _write(self, level: int, event: str, fields: dict[str, Any]) -> None:
        try:
            if not self._logger.isEnabledFor(level):
                return
            rendered = " ".join(f"{k}={_format_value(v)}" for k, v in fields.items())
            self._logger.log(level, f"[table={self.table_id}] {event} {rendered}".rstrip())
        except Exception:
            # Reported on stderr only; game state is untouched.
            traceback.print_exc(file=sys.stderr)
    
    def info(self, event: str, **fields: Any) -> None:
        """Record an event at INFO level."""
        self._write(logging.INFO, event, fields)
    
    def debug(self, event: str, **fields: Any) -> None:
        """Record an event at DEBUG level."""
        self._write(logging.DEBUG, event, fields)
    
    def warning(self, event: str, **fields: Any) -> None:
        """Record an event at WARNING level."""
        self._write(logging.WARNING, event, fields)
