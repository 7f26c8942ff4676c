import logging
import pytest
from unittest.mock import MagicMock

from modules.configuration_pool import CandidateConfiguration, ConfigurationPool
from modules.result_tracker import InMemoryResultStore, ResultTracker
from modules.trainer import TrainingResult
from utils.exceptions import ExternalExecutionError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def pool():
    pool = ConfigurationPool({1: 3, 0: 2})
    pool.assign([
        CandidateConfiguration(mst_key=k, model_name="SGDRegressor", params={'alpha': 0.001 * k})
        for k in range(1, 6)
    ])
    return pool


@pytest.fixture
def tracker(pool, mock_logger):
    return ResultTracker(pool, InMemoryResultStore(), mock_logger)


def _result(mst_key, iterations, losses, validation=None, state=None):
    return TrainingResult(
        mst_key=mst_key,
        iterations=iterations,
        metrics_iters=list(range(1, len(losses) + 1)) if iterations == len(losses) else
        [iterations * (p + 1) // len(losses) for p in range(len(losses))],
        training_loss=list(losses),
        training_metric=[loss * 2 for loss in losses],
        elapsed_time=[0.1 * (p + 1) for p in range(len(losses))],
        validation_loss=validation,
        validation_metric=[v * 2 for v in validation] if validation else None,
        model_state=state,
    )


class TestResultTracker:

    def test_first_round_inserts_records(self, tracker):
        tracker.record_round({1: _result(1, 2, [0.9, 0.5]), 2: _result(2, 2, [0.8, 0.6])}, {1: 0, 2: 0})

        record = tracker.store.get_record(1)
        assert record.bracket == 1
        assert record.model_name == "SGDRegressor"
        assert record.params == {'alpha': 0.001}
        assert record.round == 0
        assert record.iterations == 2
        assert record.round_losses == [0.5]
        assert record.metrics_iters == [1, 2]
        assert record.training_loss_final == 0.5
        assert record.training_metric_final == 1.0

    def test_warm_start_offsets_metric_iterations(self, tracker):
        tracker.record_round({1: _result(1, 4, [0.9, 0.8, 0.7, 0.6])}, {1: 0})
        tracker.record_round({1: _result(1, 12, [0.5] * 12)}, {1: 1})

        record = tracker.store.get_record(1)
        assert record.iterations == 16
        assert record.metrics_iters[:4] == [1, 2, 3, 4]
        assert record.metrics_iters[4:] == [4 + it for it in range(1, 13)]
        assert record.metrics_iters[-1] == 16

    def test_validation_metric_needs_validation_loss(self, tracker):
        result = _result(1, 2, [0.9, 0.5])
        result.validation_metric = [0.3, 0.2]
        tracker.record_round({1: result}, {1: 0})

        record = tracker.store.get_record(1)
        assert record.validation_loss == []
        assert record.validation_metric == []
        assert record.validation_metric_final is None
        assert len(record.metrics_iters) == 2

    def test_sparse_metric_points_are_offset(self, tracker):
        tracker.record_round({4: _result(4, 6, [0.9, 0.7])}, {4: 0})
        tracker.record_round({4: _result(4, 6, [0.6, 0.5])}, {4: 1})

        record = tracker.store.get_record(4)
        assert record.metrics_iters == [3, 6, 9, 12]
        assert record.bracket == 0

    def test_histories_are_appended(self, tracker):
        tracker.record_round({2: _result(2, 1, [0.9])}, {2: 0})
        first = tracker.store.get_record(2)
        tracker.record_round({2: _result(2, 3, [0.7, 0.6, 0.4])}, {2: 1})
        second = tracker.store.get_record(2)

        assert second.round_losses == [0.9, 0.4]
        assert second.training_loss == [0.9, 0.7, 0.6, 0.4]
        assert second.round == 1
        # the earlier snapshot is untouched
        assert first.round_losses == [0.9]
        assert first.training_loss == [0.9]

    def test_validation_histories(self, tracker):
        tracker.record_round({1: _result(1, 1, [0.9], validation=[1.2])}, {1: 0})
        record = tracker.store.get_record(1)
        assert record.validation_loss_final == 1.2
        assert record.validation_metric_final == 2.4
        assert record.round_validation_losses == [1.2]

    def test_model_state_is_kept(self, tracker):
        state = object()
        tracker.record_round({3: _result(3, 1, [0.3], state=state)}, {3: 0})
        assert tracker.store.get_record(3).model_state is state

    def test_round_mismatch_rejected(self, tracker):
        with pytest.raises(ExternalExecutionError, match="expected round 0"):
            tracker.record_round({1: _result(1, 1, [0.9])}, {1: 1})

    def test_bad_result_writes_nothing(self, tracker):
        good = _result(1, 2, [0.9, 0.5])
        bad = _result(2, 2, [0.9, 0.5])
        bad.training_metric = [1.0]

        with pytest.raises(ExternalExecutionError, match="not aligned"):
            tracker.record_round({1: good, 2: bad}, {1: 0, 2: 0})
        assert tracker.records() == []

    def test_mismatched_key_rejected(self, tracker):
        with pytest.raises(ExternalExecutionError, match="reports mst_key 2"):
            tracker.record_round({1: _result(2, 1, [0.9])}, {1: 0})

    def test_missing_round_assignment(self, tracker):
        with pytest.raises(ExternalExecutionError, match="No round assignment"):
            tracker.record_round({1: _result(1, 1, [0.9])}, {})

    def test_best_record(self, tracker):
        tracker.record_round(
            {1: _result(1, 1, [0.4]), 2: _result(2, 1, [0.2]), 3: _result(3, 1, [0.2])},
            {1: 0, 2: 0, 3: 0},
        )
        assert tracker.best_record().mst_key == 2

    def test_best_record_empty(self, tracker):
        assert tracker.best_record() is None
