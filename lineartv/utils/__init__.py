"""Utility helpers for LinearTV."""

from lineartv.utils.logging_setup import get_logger, parse_size, setup_logging

__all__ = ["get_logger", "parse_size", "setup_logging"]
