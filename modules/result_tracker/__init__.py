"""
Result Tracker
==============

Responsibility:
- Per-configuration metric history across diagonal rounds (append-only).
- Warm-start aware cumulative iteration counting.
- Narrow storage interface (put_configuration_result / get_bracket_results)
  with in-memory and JSON-lines journal implementations.
"""

from .records import ConfigurationRecord
from .result_store import InMemoryResultStore, JsonlResultStore, ResultStore, file_lock
from .result_tracker import ResultTracker

__all__ = [
    'ConfigurationRecord',
    'InMemoryResultStore',
    'JsonlResultStore',
    'ResultStore',
    'ResultTracker',
    'file_lock',
]
