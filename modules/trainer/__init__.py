"""
Trainer
=======

Responsibility:
- Boundary contract to the external batch-training engine (Trainer, WorkItem, TrainingResult).
- Reference scikit-learn implementation training incremental regressors with joblib.
"""

from .trainer import Trainer, TrainingResult, WorkItem
from .sklearn_trainer import IncrementalModelFactory, SklearnIncrementalTrainer

__all__ = ['Trainer', 'TrainingResult', 'WorkItem', 'IncrementalModelFactory', 'SklearnIncrementalTrainer']
