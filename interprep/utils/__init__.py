"""Utility modules for logging and timers."""

from .logging import setup_logging
from .timers import PhaseTimers

__all__ = ["setup_logging", "PhaseTimers"]
