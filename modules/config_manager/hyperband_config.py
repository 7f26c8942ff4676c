from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping

from modules.schedule_calculator import Schedule, ScheduleCalculator
from utils.exceptions import ConfigurationError
from utils import constants


@dataclass(frozen=True)
class HyperbandConfig:
    """Validated Hyperband options: R, eta, skip_last and the loss pruning ranks on."""
    R: int
    eta: int = constants.DEFAULT_ETA
    skip_last: int = constants.DEFAULT_SKIP_LAST
    prune_metric: str = constants.DEFAULT_PRUNE_METRIC

    def __post_init__(self):
        if self.prune_metric not in constants.PRUNE_METRICS:
            raise ConfigurationError(
                f"prune_metric must be one of {constants.PRUNE_METRICS}, got {self.prune_metric!r}"
            )
        # Surfaces invalid R / eta / skip_last combinations at construction time.
        ScheduleCalculator(self.R, self.eta, self.skip_last)

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "HyperbandConfig":
        if 'R' not in params:
            raise ConfigurationError("hyperband.R must be specified.")
        unknown = set(params) - {'R', 'eta', 'skip_last', 'prune_metric'}
        if unknown:
            raise ConfigurationError(f"Unknown hyperband options: {sorted(unknown)}")
        return cls(
            R=params['R'],
            eta=params.get('eta', constants.DEFAULT_ETA),
            skip_last=params.get('skip_last', constants.DEFAULT_SKIP_LAST),
            prune_metric=params.get('prune_metric', constants.DEFAULT_PRUNE_METRIC),
        )

    def build_schedule(self) -> Schedule:
        return ScheduleCalculator(self.R, self.eta, self.skip_last).calculate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
