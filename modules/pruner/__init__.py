"""
Pruner
======

Responsibility:
- Select the top-k surviving configurations of a bracket by loss.
- Deterministic tie-break on ascending configuration id.
"""

from .pruner import Pruner

__all__ = ['Pruner']
