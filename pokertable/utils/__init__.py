"""Utility helpers."""
from .logger import get_logger, EventSink

__all__ = ["get_logger", "EventSink"]
