"""
Reporting Module.

Responsible for persisting the schedule record, the per-configuration result
records and the final search summary.
"""

from .reporting_engine import ReportingEngine

__all__ = [
    'ReportingEngine',
]
