"""
Logging Configuration
=====================

Responsibility:
- Root logger setup: coloured console output and a rotating UTF-8 log file.
"""

from .logging_config import ColoredFormatter, LoggingConfigurator

__all__ = ['ColoredFormatter', 'LoggingConfigurator']
