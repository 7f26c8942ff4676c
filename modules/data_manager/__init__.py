"""
Data Manager Module
===================

Responsibility:
- Loading of the tabular dataset (CSV, Excel, Parquet) used by the reference Trainer.
- Validation of target/feature columns and NaN/inf values.
- Train / validation split.
"""

from .data_manager import DataManager

__all__ = ['DataManager']
