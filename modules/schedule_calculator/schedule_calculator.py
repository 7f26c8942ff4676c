from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, Optional, Tuple

import pandas as pd

from utils.exceptions import ConfigurationError
from utils import constants


def round_half_up(value: Fraction) -> int:
    """Round a non-negative exact fraction to the nearest integer, ties upward."""
    return int((value + Fraction(1, 2)) // 1)


def compute_s_max(R: int, eta: int) -> int:
    """
    floor(log_eta(R)) in integer arithmetic.

    math.log(243, 3) evaluates to 4.999..., so the exponent is found by
    repeated multiplication instead.
    """
    s_max = 0
    power = eta
    while power <= R:
        s_max += 1
        power *= eta
    return s_max


@dataclass(frozen=True)
class ScheduleEntry:
    """One (bracket, round) row of the Hyperband schedule."""
    bracket: int
    round: int
    num_configs: int
    resources: int

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.bracket, self.round, self.num_configs, self.resources)


@dataclass(frozen=True)
class BracketInit:
    """Initial configuration count `n` and exact initial resource `r` of a bracket."""
    bracket: int
    n: int
    r: Fraction


@dataclass(frozen=True)
class Schedule:
    """
    Immutable successive-halving schedule.

    Entries are ordered bracket s_max first, rounds ascending within a bracket.
    """
    R: int
    eta: int
    skip_last: int
    s_max: int
    entries: Tuple[ScheduleEntry, ...]
    brackets: Tuple[BracketInit, ...]

    def bracket_init(self, bracket: int) -> BracketInit:
        for init in self.brackets:
            if init.bracket == bracket:
                return init
        raise KeyError(f"Unknown bracket: {bracket}")

    def entry(self, bracket: int, round_idx: int) -> ScheduleEntry:
        for entry in self.entries:
            if entry.bracket == bracket and entry.round == round_idx:
                return entry
        raise KeyError(f"No schedule entry for bracket={bracket}, round={round_idx}")

    def rounds_for(self, bracket: int) -> List[ScheduleEntry]:
        return [e for e in self.entries if e.bracket == bracket]

    @property
    def num_outer_iterations(self) -> int:
        return self.s_max + 1 - self.skip_last

    @property
    def total_configurations(self) -> int:
        return sum(init.n for init in self.brackets)

    def initial_counts(self) -> Dict[int, int]:
        """Bracket -> n_s, bracket s_max first."""
        return {init.bracket: init.n for init in self.brackets}

    def as_tuples(self) -> List[Tuple[int, int, int, int]]:
        return [e.as_tuple() for e in self.entries]

    def to_frame(self) -> pd.DataFrame:
        """Persisted schedule record: one row per (bracket, round)."""
        return pd.DataFrame(
            [e.as_tuple() for e in self.entries],
            columns=[constants.BRACKET, constants.ROUND, constants.CONFIGURATIONS, constants.RESOURCES],
        )


class ScheduleCalculator:
    """
    Derives the Hyperband bracket/round schedule from (R, eta, skip_last).

    All arithmetic is exact: eta**-s is held as a Fraction, so two calls with
    identical arguments always produce identical schedules.
    """

    def __init__(self, R: int, eta: int = constants.DEFAULT_ETA,
                 skip_last: int = constants.DEFAULT_SKIP_LAST):
        self.R = R
        self.eta = eta
        self.skip_last = skip_last
        self._validate()
        self.s_max = compute_s_max(self.R, self.eta)
        if not (0 <= self.skip_last <= self.s_max):
            raise ConfigurationError(
                f"skip_last must be in [0, {self.s_max}] for R={self.R}, eta={self.eta}; got {self.skip_last}"
            )

    def _validate(self) -> None:
        for name, value in (('R', self.R), ('eta', self.eta), ('skip_last', self.skip_last)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.eta <= 1:
            raise ConfigurationError(f"eta must be > 1, got {self.eta}")
        if self.R < self.eta:
            raise ConfigurationError(f"R ({self.R}) must be >= eta ({self.eta})")

    def calculate(self) -> Schedule:
        entries: List[ScheduleEntry] = []
        brackets: List[BracketInit] = []

        for s in range(self.s_max, -1, -1):
            n = self.initial_configurations(s)
            r = Fraction(self.R, self.eta ** s)
            brackets.append(BracketInit(bracket=s, n=n, r=r))

            for i in range(s - self.skip_last + 1):
                n_i = n // self.eta ** i
                r_i = round_half_up(r * self.eta ** i)
                entries.append(ScheduleEntry(bracket=s, round=i, num_configs=n_i, resources=r_i))

        return Schedule(
            R=self.R,
            eta=self.eta,
            skip_last=self.skip_last,
            s_max=self.s_max,
            entries=tuple(entries),
            brackets=tuple(brackets),
        )

    def initial_configurations(self, s: int) -> int:
        """n_s = ceil(floor((s_max+1)/(s+1)) * eta**s)."""
        # Floor first, then scale, then ceil. The ceil is a no-op for integer
        # eta but stays to keep the quantization order explicit.
        quotient = (self.s_max + 1) // (s + 1)
        product = Fraction(quotient) * self.eta ** s
        return -((-product.numerator) // product.denominator)


def build_schedule(R: int, eta: int = constants.DEFAULT_ETA,
                   skip_last: Optional[int] = None) -> Schedule:
    """Convenience wrapper used by the CLI and the executor."""
    if skip_last is None:
        skip_last = constants.DEFAULT_SKIP_LAST
    return ScheduleCalculator(R, eta, skip_last).calculate()
