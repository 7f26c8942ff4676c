import dataclasses
import logging
from typing import List, Mapping, Optional

from modules.configuration_pool import ConfigurationPool
from modules.result_tracker.records import ConfigurationRecord
from modules.result_tracker.result_store import InMemoryResultStore, ResultStore
from modules.trainer import TrainingResult
from utils.exceptions import ExternalExecutionError
from utils import constants


class ResultTracker:
    """
    Accumulates per-configuration metric history across diagonal rounds.

    - Existing records are extended (histories appended, never overwritten).
    - First-seen configurations get a fresh record.
    - Metric iteration indices reported by the Trainer are local to the call;
      they are shifted by the configuration's prior cumulative iterations so
      warm-started histories read as one continuous run.
    """

    def __init__(self, pool: ConfigurationPool, store: Optional[ResultStore] = None,
                 logger: Optional[logging.Logger] = None):
        self.pool = pool
        self.store = store if store is not None else InMemoryResultStore()
        self.logger = logger or logging.getLogger(__name__)

    def record_round(self, results: Mapping[int, TrainingResult],
                     round_of: Mapping[int, int]) -> List[ConfigurationRecord]:
        """
        Apply one Trainer call's results.

        Args:
            results: mst_key -> TrainingResult for every configuration trained.
            round_of: mst_key -> bracket-local round index the result belongs to.

        Returns:
            The updated records, in mst_key order.
        """
        # Validate everything before touching the store.
        for mst_key in sorted(results):
            result = results[mst_key]
            if result.mst_key != mst_key:
                raise ExternalExecutionError(
                    f"Result filed under mst_key {mst_key} reports mst_key {result.mst_key}"
                )
            if mst_key not in round_of:
                raise ExternalExecutionError(f"No round assignment for mst_key {mst_key}")
            result.validate()

        updated = [
            self._apply(self._current_record(mst_key), results[mst_key], round_of[mst_key])
            for mst_key in sorted(results)
        ]
        self.store.put_configuration_results(updated)

        inserted = sum(1 for r in updated if r.round == 0)
        self.logger.debug(f"Recorded {len(updated)} results ({inserted} new configurations).")
        return updated

    def _current_record(self, mst_key: int) -> ConfigurationRecord:
        existing = self.store.get_record(mst_key)
        if existing is not None:
            return existing

        configuration = self.pool.configuration(mst_key)
        return ConfigurationRecord(
            mst_key=mst_key,
            bracket=self.pool.bracket_of(mst_key),
            model_name=configuration.model_name if configuration else "",
            params=dict(configuration.params) if configuration else {},
        )

    @staticmethod
    def _apply(record: ConfigurationRecord, result: TrainingResult, round_idx: int) -> ConfigurationRecord:
        if round_idx != len(record.round_losses):
            raise ExternalExecutionError(
                f"mst_key {record.mst_key}: expected round {len(record.round_losses)}, got {round_idx}"
            )

        offset = record.iterations
        has_validation = bool(result.validation_loss)

        # Build new lists so a stored record is never mutated in place.
        return dataclasses.replace(
            record,
            round=round_idx,
            iterations=offset + result.iterations,
            round_losses=record.round_losses + [result.final_loss],
            round_validation_losses=record.round_validation_losses + [result.final_validation_loss],
            metrics_iters=record.metrics_iters + [offset + it for it in result.metrics_iters],
            training_loss=record.training_loss + list(result.training_loss),
            training_metric=record.training_metric + list(result.training_metric),
            validation_loss=record.validation_loss + (list(result.validation_loss) if has_validation else []),
            validation_metric=record.validation_metric + (list(result.validation_metric or []) if has_validation else []),
            metrics_elapsed_time=record.metrics_elapsed_time + list(result.elapsed_time),
            training_loss_final=result.final_loss,
            training_metric_final=result.final_metric,
            validation_loss_final=result.final_validation_loss if has_validation else record.validation_loss_final,
            validation_metric_final=result.final_validation_metric if has_validation else record.validation_metric_final,
            model_state=result.model_state,
        )

    def best_record(self, metric: str = constants.TRAINING_LOSS) -> Optional[ConfigurationRecord]:
        """Lowest final loss so far, ties to the smaller mst_key."""
        records = self.store.records()
        if not records:
            return None
        return min(records, key=lambda r: (r.ranking_loss(metric), r.mst_key))

    def records(self) -> List[ConfigurationRecord]:
        return self.store.records()

