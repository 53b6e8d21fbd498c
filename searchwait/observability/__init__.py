"""Logging for searchwait."""

from .logger import BoundLogger, Logger, logger

__all__ = ["BoundLogger", "Logger", "logger"]
