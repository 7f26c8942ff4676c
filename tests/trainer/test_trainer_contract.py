import pytest

from modules.trainer import TrainingResult
from utils.exceptions import ExternalExecutionError


def _result(**overrides):
    values = dict(
        mst_key=1, iterations=3, metrics_iters=[1, 2, 3],
        training_loss=[0.9, 0.5, 0.4], training_metric=[0.8, 0.6, 0.5],
        elapsed_time=[0.1, 0.2, 0.3],
    )
    values.update(overrides)
    return TrainingResult(**values)


class TestTrainingResult:

    def test_finals(self):
        result = _result(validation_loss=[1.0, 0.9, 0.7], validation_metric=[0.9, 0.8, 0.6])
        result.validate()
        assert result.final_loss == 0.4
        assert result.final_metric == 0.5
        assert result.final_validation_loss == 0.7
        assert result.final_validation_metric == 0.6

    def test_missing_validation(self):
        result = _result()
        assert result.final_validation_loss is None
        assert result.final_validation_metric is None

    @pytest.mark.parametrize("overrides, message", [
        ({'iterations': -1}, "negative iteration count"),
        ({'training_loss': []}, "empty training loss history"),
        ({'elapsed_time': [0.1]}, "not aligned"),
        ({'validation_loss': [0.5]}, "not aligned"),
    ])
    def test_validate_rejects(self, overrides, message):
        with pytest.raises(ExternalExecutionError, match=message):
            _result(**overrides).validate()
