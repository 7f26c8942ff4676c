"""
Diagonal Executor
=================

Responsibility:
- Top-level Hyperband control loop, one Trainer call per outer iteration.
- Working-set assembly: entering bracket plus Pruner survivors of older brackets.
- Result contract checks, result tracking and best-so-far reporting.
- Final summary assembly.
"""

from .diagonal_executor import DiagonalExecutor
from .summary import BestReport, ExecutorState, SearchSummary

__all__ = ['DiagonalExecutor', 'BestReport', 'ExecutorState', 'SearchSummary']
