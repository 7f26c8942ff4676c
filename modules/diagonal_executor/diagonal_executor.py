import logging
from datetime import datetime
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from modules.base.base_engine import BaseEngine
from modules.config_manager.hyperband_config import HyperbandConfig
from modules.configuration_pool import CandidateConfiguration, ConfigurationPool
from modules.diagonal_executor.summary import BestReport, ExecutorState, SearchSummary
from modules.pruner import Pruner
from modules.result_tracker import InMemoryResultStore, JsonlResultStore, ResultStore, ResultTracker
from modules.schedule_calculator import Schedule, round_half_up
from modules.trainer import Trainer, TrainingResult, WorkItem
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError, ExternalExecutionError, InsufficientResultsError
from utils import constants


class DiagonalExecutor(BaseEngine):
    """
    Runs Hyperband diagonally.

    Outer iteration i trains, in a single Trainer call, the newest bracket's
    first round together with the next round of every bracket already in
    flight. Iteration i+1 can only be assembled once iteration i's results are
    recorded, because pruning ranks on them.
    """

    TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self, config: dict, logger: logging.Logger, hyperband: HyperbandConfig,
                 pool: ConfigurationPool, trainer: Trainer,
                 store: Optional[ResultStore] = None, pruner: Optional[Pruner] = None):
        super().__init__(config, logger)
        self.hyperband = hyperband
        self.schedule: Schedule = hyperband.build_schedule()
        self.prune_metric = hyperband.prune_metric
        self.pool = pool
        self.trainer = trainer
        self.pruner = pruner or Pruner()

        pool_counts = {bracket: len(pool.keys_of(bracket)) for bracket in pool.brackets}
        if pool_counts != self.schedule.initial_counts():
            raise ConfigurationError(
                f"Configuration pool {pool_counts} does not match the schedule brackets "
                f"{self.schedule.initial_counts()}"
            )

        if store is None:
            if config.get('outputs', {}).get('skip_dir_creation', False):
                store = InMemoryResultStore()
            else:
                store = JsonlResultStore(self.output_dir / constants.RESULTS_JOURNAL_FILE)
        self.tracker = ResultTracker(pool, store, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.SEARCH_DIR

    @property
    def store(self) -> ResultStore:
        return self.tracker.store

    def execute(self, configurations: Optional[Iterable[CandidateConfiguration]] = None) -> SearchSummary:
        """
        Run every outer iteration and assemble the final summary.

        Args:
            configurations: Candidates with ids 1..total. May be omitted when the
                pool has already been assigned.

        Returns:
            SearchSummary with the schedule, all records and the best configuration.
        """
        if configurations is not None:
            self.pool.assign(configurations)
        if not self.pool.is_assigned:
            raise ConfigurationError("No candidate configurations were assigned to the pool.")

        s_max = self.schedule.s_max
        self.logger.info(
            f"Starting diagonal Hyperband: R={self.schedule.R}, eta={self.schedule.eta}, "
            f"skip_last={self.schedule.skip_last}, s_max={s_max}, "
            f"{self.pool.total} configurations over {len(self.pool.brackets)} brackets"
        )

        state = ExecutorState(start_time=datetime.now().strftime(self.TIME_FORMAT))
        for i in range(self.schedule.num_outer_iterations):
            state = self.step(i, state)

        state.end_time = datetime.now().strftime(self.TIME_FORMAT)
        summary = self._assemble_summary(state)

        if summary.best:
            self.logger.info(
                f"Hyperband finished after {state.trainer_calls} training calls. Best: mst_key="
                f"{summary.best.mst_key} ({summary.best.model_name}) loss={summary.best.loss}"
            )
        return summary

    def step(self, i: int, state: ExecutorState) -> ExecutorState:
        """One diagonal step: assemble, train, validate, record, report."""
        s_max = self.schedule.s_max
        prune_lookup = self.prune_lookup(i)

        budget = self.schedule.entry(s_max, i).resources
        described = [
            f"{count} configs under bracket={s} & round={self.local_round(i, s)}"
            for s, count in prune_lookup.items()
        ]
        self.logger.info(f"*** Diagonally evaluating {', '.join(described)} with {budget} iterations ***")

        working_set, round_of = self.assemble_working_set(i, prune_lookup)
        work_items = [self._work_item(mst_key) for mst_key in working_set]

        results = self._invoke_trainer(work_items, budget, i > 0)
        self._check_result_contract(working_set, results)
        self.tracker.record_round(results, round_of)

        state.iteration = i
        state.working_set = working_set
        state.prune_lookup = prune_lookup
        state.round_of = round_of
        state.trainer_calls += 1
        state.iterations_consumed += budget * len(working_set)

        report = self._best_so_far(i)
        if report is not None:
            state.best_reports.append(report)
        return state

    def local_round(self, i: int, bracket: int) -> int:
        """Bracket-local round index played at outer iteration i."""
        return i - (self.schedule.s_max - bracket)

    def prune_lookup(self, i: int) -> Dict[int, int]:
        """Active bracket -> number of configurations it carries at outer iteration i."""
        s_max = self.schedule.s_max
        lookup: Dict[int, int] = {}
        for s in range(s_max, s_max - i - 1, -1):
            n = self.schedule.bracket_init(s).n
            lookup[s] = round_half_up(Fraction(n, self.schedule.eta ** self.local_round(i, s)))
        return lookup

    def assemble_working_set(self, i: int, prune_lookup: Mapping[int, int]) -> Tuple[List[int], Dict[int, int]]:
        """
        Returns the sorted ids to train and their bracket-local round.

        The bracket entering at this iteration contributes its full range;
        every older bracket contributes the Pruner's survivors of its previous round.
        """
        entering = self.schedule.s_max - i
        round_of: Dict[int, int] = {mst_key: 0 for mst_key in self.pool.keys_of(entering)}

        for bracket, target in prune_lookup.items():
            if bracket == entering:
                continue
            j = self.local_round(i, bracket)
            previous = self.store.get_bracket_results(bracket, j - 1, self.prune_metric)
            previous = {k: v for k, v in previous.items() if v is not None}
            try:
                survivors = self.pruner.select(previous, target)
            except InsufficientResultsError as e:
                raise InsufficientResultsError(f"Bracket {bracket} round {j}: {e}") from e
            round_of.update({mst_key: j for mst_key in survivors})

        return sorted(round_of), round_of

    def _work_item(self, mst_key: int) -> WorkItem:
        record = self.store.get_record(mst_key)
        return WorkItem(
            mst_key=mst_key,
            configuration=self.pool.configuration(mst_key),
            model_state=record.model_state if record is not None else None,
        )

    @handle_engine_errors("Trainer call", ExternalExecutionError, wrap_known=True)
    def _invoke_trainer(self, work_items: Sequence[WorkItem], budget: int,
                        warm_start: bool) -> Mapping[int, TrainingResult]:
        return self.trainer.train(work_items, budget, warm_start)

    @staticmethod
    def _check_result_contract(working_set: Sequence[int], results: Mapping[int, TrainingResult]) -> None:
        submitted = set(working_set)
        returned = set(results)

        missing = submitted - returned
        if missing:
            raise InsufficientResultsError(
                f"Trainer returned {len(returned & submitted)} of {len(submitted)} results; "
                f"missing mst_keys {sorted(missing)}"
            )
        unexpected = returned - submitted
        if unexpected:
            raise ExternalExecutionError(f"Trainer returned results for unsubmitted mst_keys {sorted(unexpected)}")

    def _best_so_far(self, i: int) -> Optional[BestReport]:
        best = self.tracker.best_record(self.prune_metric)
        if best is None:
            return None

        metric = best.validation_metric_final if self.prune_metric == constants.VALIDATION_LOSS else best.training_metric_final
        report = BestReport(
            iteration=i,
            mst_key=best.mst_key,
            bracket=best.bracket,
            model_name=best.model_name,
            params=best.params,
            loss=best.final_loss(self.prune_metric),
            metric=metric,
        )
        self.logger.info(
            f"Best so far after iteration {i}: mst_key={report.mst_key} (bracket {report.bracket}, "
            f"{report.model_name} {report.params}) {self.prune_metric}={report.loss}"
        )
        return report

    def _assemble_summary(self, state: ExecutorState) -> SearchSummary:
        return SearchSummary(
            schedule=self.schedule,
            records=self.tracker.records(),
            prune_metric=self.prune_metric,
            outer_iterations=state.iteration + 1,
            trainer_calls=state.trainer_calls,
            iterations_consumed=state.iterations_consumed,
            start_time=state.start_time,
            end_time=state.end_time,
            best=state.best_reports[-1] if state.best_reports else None,
            best_reports=list(state.best_reports),
        )
