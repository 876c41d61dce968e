"""Observability utilities for the screening interview service."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
