import logging
import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from modules.data_manager import DataManager
from utils.exceptions import DataValidationError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def data_file(tmp_path):
    rng = np.random.RandomState(1)
    df = pd.DataFrame({
        'x1': rng.normal(size=50),
        'x2': rng.normal(size=50),
        'row_id': np.arange(50),
        'y': rng.normal(size=50),
    })
    path = tmp_path / "train.csv"
    df.to_csv(path, index=False)
    return path


def _config(path, **data):
    return {'data': {'file_path': str(path), 'target': 'y', 'drop_columns': ['row_id'], **data},
            '_internal_seeds': {'split': 2042}}


class TestDataManager:

    def test_load_and_split(self, data_file, mock_logger):
        X_train, y_train, X_val, y_val = DataManager(_config(data_file), mock_logger).execute()

        assert list(X_train.columns) == ['x1', 'x2']
        assert len(X_train) == 40 and len(X_val) == 10
        assert len(y_train) == 40 and len(y_val) == 10

    def test_split_is_seeded(self, data_file, mock_logger):
        first = DataManager(_config(data_file), mock_logger).execute()
        second = DataManager(_config(data_file), mock_logger).execute()
        assert first[0].index.tolist() == second[0].index.tolist()

    def test_no_validation_split(self, data_file, mock_logger):
        X_train, y_train, X_val, y_val = DataManager(_config(data_file, val_size=0), mock_logger).execute()
        assert len(X_train) == 50
        assert X_val is None and y_val is None

    def test_parquet_input(self, data_file, mock_logger, tmp_path):
        parquet_path = tmp_path / "train.parquet"
        pd.read_csv(data_file).to_parquet(parquet_path, index=False)
        X_train, _, _, _ = DataManager(_config(parquet_path), mock_logger).execute()
        assert len(X_train) == 40

    def test_missing_file(self, tmp_path, mock_logger):
        with pytest.raises(DataValidationError, match="Data file not found"):
            DataManager(_config(tmp_path / "nope.csv"), mock_logger).execute()

    def test_unsupported_extension(self, tmp_path, mock_logger):
        path = tmp_path / "train.txt"
        path.write_text("a,b\n1,2\n")
        with pytest.raises(DataValidationError, match="Unsupported file extension"):
            DataManager(_config(path), mock_logger).execute()

    def test_missing_target(self, data_file, mock_logger):
        config = _config(data_file)
        config['data']['target'] = 'angle'
        with pytest.raises(DataValidationError, match="Target column 'angle' not found"):
            DataManager(config, mock_logger).execute()

    def test_non_numeric_feature(self, tmp_path, mock_logger):
        path = tmp_path / "train.csv"
        pd.DataFrame({'x1': [1.0, 2.0], 'label': ['a', 'b'], 'y': [0.1, 0.2]}).to_csv(path, index=False)
        with pytest.raises(DataValidationError, match="Non-numeric"):
            DataManager(_config(path, drop_columns=[]), mock_logger).execute()

    def test_nan_values(self, tmp_path, mock_logger):
        path = tmp_path / "train.csv"
        pd.DataFrame({'x1': [1.0, np.nan, 3.0], 'y': [0.1, 0.2, 0.3]}).to_csv(path, index=False)
        with pytest.raises(DataValidationError, match=r"NaN or infinite values found in columns: \['x1'\]"):
            DataManager(_config(path, drop_columns=[]), mock_logger).execute()
