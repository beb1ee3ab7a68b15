"""Observability utilities for the interview session engine."""
from .logger import log_event, log_failure

__all__ = ["log_event", "log_failure"]
