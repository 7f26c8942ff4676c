from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modules.result_tracker import ConfigurationRecord
from modules.schedule_calculator import Schedule


@dataclass
class BestReport:
    """Best configuration observed after one outer iteration."""
    iteration: int
    mst_key: int
    bracket: int
    model_name: str
    params: Dict[str, Any]
    loss: Optional[float]
    metric: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'iteration': self.iteration,
            'mst_key': self.mst_key,
            'bracket': self.bracket,
            'model_name': self.model_name,
            'params': self.params,
            'loss': self.loss,
            'metric': self.metric,
        }


@dataclass
class ExecutorState:
    """Mutable bookkeeping handed from one diagonal step to the next."""
    iteration: int = -1
    working_set: List[int] = field(default_factory=list)
    prune_lookup: Dict[int, int] = field(default_factory=dict)
    round_of: Dict[int, int] = field(default_factory=dict)
    best_reports: List[BestReport] = field(default_factory=list)
    trainer_calls: int = 0
    iterations_consumed: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass
class SearchSummary:
    """Final report combining every bracket and round of a search run."""
    schedule: Schedule
    records: List[ConfigurationRecord]
    prune_metric: str
    outer_iterations: int
    trainer_calls: int
    iterations_consumed: int
    start_time: str
    end_time: str
    best: Optional[BestReport]
    best_reports: List[BestReport] = field(default_factory=list)

    @property
    def total_configurations(self) -> int:
        return self.schedule.total_configurations

    def to_dict(self) -> Dict[str, Any]:
        return {
            'automl_method': 'hyperband',
            'R': self.schedule.R,
            'eta': self.schedule.eta,
            'skip_last': self.schedule.skip_last,
            's_max': self.schedule.s_max,
            'prune_metric': self.prune_metric,
            'total_configurations': self.total_configurations,
            'configurations_trained': len(self.records),
            'outer_iterations': self.outer_iterations,
            'trainer_calls': self.trainer_calls,
            'iterations_consumed': self.iterations_consumed,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'best': self.best.to_dict() if self.best else None,
            'best_per_iteration': [report.to_dict() for report in self.best_reports],
        }
