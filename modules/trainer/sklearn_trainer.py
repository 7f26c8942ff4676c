import copy
import gc
import inspect
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.linear_model import SGDRegressor
from sklearn.metrics import mean_absolute_error, mean_squared_error
from sklearn.neural_network import MLPRegressor

from modules.trainer.trainer import Trainer, TrainingResult, WorkItem
from utils.exceptions import ConfigurationError, DataValidationError


class IncrementalModelFactory:
    """
    Factory for scikit-learn regressors that can continue training with partial_fit.
    """

    INCREMENTAL_MODELS = {
        'SGDRegressor': SGDRegressor,
        'MLPRegressor': MLPRegressor,
    }

    @classmethod
    def create(cls, model_name: str, params: Dict[str, Any] = None, random_state: Optional[int] = None) -> Any:
        """
        Create and return an instantiated, unfitted model.
        """
        if params is None:
            params = {}

        if model_name not in cls.INCREMENTAL_MODELS:
            raise ConfigurationError(
                f"Unknown incremental model: {model_name}. Available: {cls.get_available_models()}"
            )

        model_class = cls.INCREMENTAL_MODELS[model_name]
        valid_params = cls._filter_params(model_class, params)
        if random_state is not None and 'random_state' not in valid_params:
            valid_params['random_state'] = random_state
        return model_class(**valid_params)

    @classmethod
    def get_available_models(cls) -> List[str]:
        return list(cls.INCREMENTAL_MODELS.keys())

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        return {k: v for k, v in params.items() if k in valid_keys}


def _train_single_configuration(item: WorkItem, budget: int, warm_start: bool,
                                X, y, X_val, y_val, frequency: int, seed: int) -> TrainingResult:
    """Helper for parallel execution: `budget` partial_fit epochs for one configuration."""
    config = item.configuration
    if warm_start and item.model_state is not None:
        # Continue on a copy; the previous round's record keeps its own model.
        model = copy.deepcopy(item.model_state)
    else:
        model = IncrementalModelFactory.create(config.model_name, config.params, random_state=seed + item.mst_key)

    metrics_iters, train_loss, train_metric, elapsed = [], [], [], []
    val_loss: Optional[List[float]] = [] if X_val is not None else None
    val_metric: Optional[List[float]] = [] if X_val is not None else None

    start_time = time.time()
    for epoch in range(1, budget + 1):
        model.partial_fit(X, y)

        if epoch % frequency == 0 or epoch == budget:
            preds = model.predict(X)
            metrics_iters.append(epoch)
            train_loss.append(float(mean_squared_error(y, preds)))
            train_metric.append(float(mean_absolute_error(y, preds)))
            if X_val is not None:
                val_preds = model.predict(X_val)
                val_loss.append(float(mean_squared_error(y_val, val_preds)))
                val_metric.append(float(mean_absolute_error(y_val, val_preds)))
            elapsed.append(time.time() - start_time)

    return TrainingResult(
        mst_key=item.mst_key,
        iterations=budget,
        metrics_iters=metrics_iters,
        training_loss=train_loss,
        training_metric=train_metric,
        elapsed_time=elapsed,
        validation_loss=val_loss,
        validation_metric=val_metric,
        model_state=model,
    )


class SklearnIncrementalTrainer(Trainer):
    """
    Reference Trainer: one resource unit is one partial_fit epoch over the
    training split. Loss is MSE, metric is MAE.

    Configurations of a batch are trained in parallel with joblib; the
    scheduler sees a single blocking call.
    """

    def __init__(self, config: dict, logger: logging.Logger,
                 X_train: pd.DataFrame, y_train: pd.Series,
                 X_val: Optional[pd.DataFrame] = None, y_val: Optional[pd.Series] = None):
        self.config = config
        self.logger = logger
        trainer_cfg = config.get('trainer', {})
        self.n_jobs = trainer_cfg.get('n_jobs', 1)
        self.metrics_compute_frequency = trainer_cfg.get('metrics_compute_frequency', 1)
        self.seed = config.get('_internal_seeds', {}).get('trainer', 0)

        if self.metrics_compute_frequency < 1:
            raise ConfigurationError(
                f"trainer.metrics_compute_frequency must be >= 1, got {self.metrics_compute_frequency}"
            )

        self.X_train, self.y_train = self._as_arrays(X_train, y_train, "train")
        if X_val is not None:
            self.X_val, self.y_val = self._as_arrays(X_val, y_val, "validation")
        else:
            self.X_val, self.y_val = None, None

    @staticmethod
    def _as_arrays(X, y, split_name: str):
        if X is None or y is None or len(X) == 0:
            raise DataValidationError(f"The {split_name} split is empty.")
        if len(X) != len(y):
            raise DataValidationError(
                f"The {split_name} split has {len(X)} feature rows but {len(y)} targets."
            )
        X_np = np.asarray(X, dtype=np.float64)
        y_np = np.asarray(y, dtype=np.float64).ravel()
        if not np.all(np.isfinite(X_np)) or not np.all(np.isfinite(y_np)):
            raise DataValidationError(f"The {split_name} split contains NaN or infinite values.")
        return X_np, y_np

    def train(self, work_items: Sequence[WorkItem], resource_budget: int,
              warm_start: bool) -> Mapping[int, TrainingResult]:
        self.logger.info(
            f"Training {len(work_items)} configurations for {resource_budget} epochs "
            f"(warm_start={warm_start}, n_jobs={self.n_jobs})"
        )

        results = Parallel(n_jobs=self.n_jobs)(
            delayed(_train_single_configuration)(
                item, resource_budget, warm_start,
                self.X_train, self.y_train, self.X_val, self.y_val,
                self.metrics_compute_frequency, self.seed,
            )
            for item in work_items
        )

        # Models travel back inside the results; drop worker-side copies.
        gc.collect()
        return {res.mst_key: res for res in results}
