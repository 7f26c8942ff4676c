import abc
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from modules.configuration_pool import CandidateConfiguration
from utils.exceptions import ExternalExecutionError


@dataclass
class WorkItem:
    """
    One configuration submitted to the Trainer.

    `model_state` is whatever the Trainer returned for this id last round; the
    scheduler only forwards it.
    """
    mst_key: int
    configuration: CandidateConfiguration
    model_state: Any = None


@dataclass
class TrainingResult:
    """
    Per-configuration outcome of one Trainer call.

    The histories are aligned: entry k of each list was measured after
    `metrics_iters[k]` iterations of this call (local, 1-based).
    """
    mst_key: int
    iterations: int
    metrics_iters: List[int]
    training_loss: List[float]
    training_metric: List[float]
    elapsed_time: List[float]
    validation_loss: Optional[List[float]] = None
    validation_metric: Optional[List[float]] = None
    model_state: Any = field(default=None, repr=False)

    @property
    def final_loss(self) -> float:
        return self.training_loss[-1]

    @property
    def final_metric(self) -> float:
        return self.training_metric[-1]

    @property
    def final_validation_loss(self) -> Optional[float]:
        return self.validation_loss[-1] if self.validation_loss else None

    @property
    def final_validation_metric(self) -> Optional[float]:
        return self.validation_metric[-1] if self.validation_metric else None

    def validate(self) -> None:
        """Check the history lists are non-empty and aligned."""
        if self.iterations < 0:
            raise ExternalExecutionError(f"mst_key {self.mst_key}: negative iteration count {self.iterations}")
        if not self.training_loss:
            raise ExternalExecutionError(f"mst_key {self.mst_key}: empty training loss history")

        expected = len(self.metrics_iters)
        aligned = [self.training_loss, self.training_metric, self.elapsed_time]
        if self.validation_loss is not None:
            aligned.append(self.validation_loss)
        if self.validation_metric is not None:
            aligned.append(self.validation_metric)
        if any(len(history) != expected for history in aligned):
            raise ExternalExecutionError(
                f"mst_key {self.mst_key}: metric histories are not aligned with metrics_iters ({expected} points)"
            )


class Trainer(abc.ABC):
    """
    Boundary to the external batch-training engine.

    One call trains a whole working set for `resource_budget` iterations and
    must return exactly one result per submitted mst_key.
    """

    @abc.abstractmethod
    def train(self, work_items: Sequence[WorkItem], resource_budget: int,
              warm_start: bool) -> Mapping[int, TrainingResult]:
        raise NotImplementedError
