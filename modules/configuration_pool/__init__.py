"""
Configuration Pool
==================

Responsibility:
- Assign each bracket a contiguous id range, bracket s_max first, starting at 1.
- id -> bracket and bracket -> range lookups for the lifetime of a run.
"""

from .configuration_pool import CandidateConfiguration, ConfigurationPool

__all__ = ['CandidateConfiguration', 'ConfigurationPool']
