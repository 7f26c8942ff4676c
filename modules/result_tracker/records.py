import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from utils import constants


@dataclass
class ConfigurationRecord:
    """
    Persisted result record of one configuration across every round it played.

    `round` is the bracket-local round last trained (-1 before the first one).
    `round_losses[j]` is the final training loss of round j, and
    `round_validation_losses[j]` the final validation loss when available.
    """
    mst_key: int
    bracket: int
    model_name: str
    params: Dict[str, Any] = field(default_factory=dict)
    round: int = -1
    iterations: int = 0
    round_losses: List[float] = field(default_factory=list)
    round_validation_losses: List[Optional[float]] = field(default_factory=list)
    metrics_iters: List[int] = field(default_factory=list)
    training_loss: List[float] = field(default_factory=list)
    training_metric: List[float] = field(default_factory=list)
    validation_loss: List[float] = field(default_factory=list)
    validation_metric: List[float] = field(default_factory=list)
    metrics_elapsed_time: List[float] = field(default_factory=list)
    training_loss_final: Optional[float] = None
    training_metric_final: Optional[float] = None
    validation_loss_final: Optional[float] = None
    validation_metric_final: Optional[float] = None
    model_state: Any = field(default=None, repr=False, compare=False)

    def reached_round(self, round_idx: int) -> bool:
        return len(self.round_losses) > round_idx

    def loss_for_round(self, round_idx: int, metric: str = constants.TRAINING_LOSS) -> Optional[float]:
        if metric == constants.VALIDATION_LOSS:
            return self.round_validation_losses[round_idx]
        return self.round_losses[round_idx]

    def final_loss(self, metric: str = constants.TRAINING_LOSS) -> Optional[float]:
        if metric == constants.VALIDATION_LOSS:
            return self.validation_loss_final
        return self.training_loss_final

    def ranking_loss(self, metric: str = constants.TRAINING_LOSS) -> float:
        loss = self.final_loss(metric)
        if loss is None or math.isnan(loss):
            return math.inf
        return loss

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view (model state is owned by the Trainer and left out)."""
        return {
            constants.MST_KEY: self.mst_key,
            constants.BRACKET: self.bracket,
            constants.ROUND: self.round,
            constants.MODEL_NAME: self.model_name,
            constants.PARAMS: self.params,
            constants.ITERATIONS: self.iterations,
            constants.ROUND_LOSSES: list(self.round_losses),
            'round_validation_losses': list(self.round_validation_losses),
            constants.METRICS_ITERS: list(self.metrics_iters),
            constants.TRAINING_LOSS: list(self.training_loss),
            constants.TRAINING_METRIC: list(self.training_metric),
            constants.VALIDATION_LOSS: list(self.validation_loss),
            constants.VALIDATION_METRIC: list(self.validation_metric),
            constants.ELAPSED_TIME: list(self.metrics_elapsed_time),
            constants.TRAINING_LOSS_FINAL: self.training_loss_final,
            constants.TRAINING_METRIC_FINAL: self.training_metric_final,
            constants.VALIDATION_LOSS_FINAL: self.validation_loss_final,
            constants.VALIDATION_METRIC_FINAL: self.validation_metric_final,
        }
