"""
Utility modules for the G-NAF Spatial Services system.

This module provides logging setup and performance decorators used
throughout the system.
"""

from .logging_setup import setup_logging, get_logger, log_performance, JSONFormatter

__all__ = ["setup_logging", "get_logger", "log_performance", "JSONFormatter"]
