from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class CandidateConfiguration:
    """An opaque hyperparameter / model configuration with its unique id."""
    mst_key: int
    model_name: str
    params: Dict[str, Any] = field(default_factory=dict)


class ConfigurationPool:
    """
    Partitions configuration ids into contiguous, back-to-back bracket ranges.

    Bracket s_max owns ids [1, n_{s_max}]; every lower bracket starts right
    after the previous one ends. The mapping is fixed for the lifetime of a run.
    """

    def __init__(self, initial_counts: Mapping[int, int]):
        if not initial_counts:
            raise ConfigurationError("At least one bracket is required to build a configuration pool.")

        self._ranges: Dict[int, Tuple[int, int]] = {}
        upper = 0
        for bracket in sorted(initial_counts, reverse=True):
            n = initial_counts[bracket]
            if n < 1:
                raise ConfigurationError(f"Bracket {bracket} must own at least one configuration, got {n}")
            lower = upper + 1
            upper = upper + n
            self._ranges[bracket] = (lower, upper)

        self.total = upper
        self._configurations: Dict[int, CandidateConfiguration] = {}

    @classmethod
    def from_schedule(cls, schedule) -> "ConfigurationPool":
        return cls(schedule.initial_counts())

    @property
    def brackets(self) -> List[int]:
        return list(self._ranges)

    def range_of(self, bracket: int) -> Tuple[int, int]:
        """Inclusive (lower, upper) id bounds of a bracket."""
        try:
            return self._ranges[bracket]
        except KeyError:
            raise KeyError(f"Unknown bracket: {bracket}") from None

    def keys_of(self, bracket: int) -> range:
        lower, upper = self.range_of(bracket)
        return range(lower, upper + 1)

    def bracket_of(self, mst_key: int) -> int:
        for bracket, (lower, upper) in self._ranges.items():
            if lower <= mst_key <= upper:
                return bracket
        raise KeyError(f"mst_key {mst_key} is outside the pool [1, {self.total}]")

    def assign(self, configurations: Iterable[CandidateConfiguration]) -> None:
        """Bind the generator's candidates to the pool; ids must be exactly 1..total."""
        configurations = list(configurations)
        if len(configurations) != self.total:
            raise ConfigurationError(
                f"Configuration pool expects {self.total} candidates, got {len(configurations)}"
            )

        by_key = {c.mst_key: c for c in configurations}
        if sorted(by_key) != list(range(1, self.total + 1)):
            raise ConfigurationError(
                f"Candidate ids must be unique and cover [1, {self.total}]"
            )
        self._configurations = by_key

    @property
    def is_assigned(self) -> bool:
        return bool(self._configurations)

    def configuration(self, mst_key: int) -> Optional[CandidateConfiguration]:
        return self._configurations.get(mst_key)

    def describe(self) -> List[Dict[str, int]]:
        return [
            {'bracket': bracket, 'lower': lower, 'upper': upper, 'count': upper - lower + 1}
            for bracket, (lower, upper) in self._ranges.items()
        ]
