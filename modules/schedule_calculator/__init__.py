"""
Schedule Calculator
===================

Responsibility:
- Derive the Hyperband successive-halving schedule from (R, eta, skip_last).
- Exact (Fraction based) arithmetic for reproducible bracket/round tuples.
- Validation of the three scalar parameters.
"""

from .schedule_calculator import (
    BracketInit,
    Schedule,
    ScheduleCalculator,
    ScheduleEntry,
    build_schedule,
    compute_s_max,
    round_half_up,
)

__all__ = [
    'BracketInit',
    'Schedule',
    'ScheduleCalculator',
    'ScheduleEntry',
    'build_schedule',
    'compute_s_max',
    'round_half_up',
]
