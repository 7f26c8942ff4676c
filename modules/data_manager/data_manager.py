import logging
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Optional, Tuple

from sklearn.model_selection import train_test_split

from utils.exceptions import DataValidationError
from utils.file_io import read_dataframe
from utils.error_handling import handle_engine_errors

class DataManager:
    """
    Loads and validates the tabular dataset the reference Trainer learns from,
    then splits it into train / validation parts.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data_config = config.get('data', {})
        self.data: Optional[pd.DataFrame] = None

    @handle_engine_errors("Data Management", DataValidationError)
    def execute(self) -> Tuple[pd.DataFrame, pd.Series, Optional[pd.DataFrame], Optional[pd.Series]]:
        """
        Returns:
            (X_train, y_train, X_val, y_val); the validation pair is None when
            data.val_size is 0.
        """
        self.logger.info("Starting Data Manager execution...")
        self.load_data()
        self.validate_columns()
        self.validate_nan_inf()
        return self.split()

    def load_data(self) -> pd.DataFrame:
        file_path = Path(self.data_config['file_path'])
        if not file_path.exists():
            raise DataValidationError(f"Data file not found: {file_path}")

        self.logger.info(f"Loading data from {file_path}")
        try:
            self.data = read_dataframe(file_path)
        except ValueError as e:
            raise DataValidationError(str(e)) from e

        if self.data.empty:
            raise DataValidationError(f"Data file is empty: {file_path}")
        self.logger.info(f"Loaded {len(self.data)} rows x {len(self.data.columns)} columns")
        return self.data

    def _feature_columns(self):
        target = self.data_config['target']
        drop_cols = set(self.data_config.get('drop_columns', [])) | {target}
        return [c for c in self.data.columns if c not in drop_cols]

    def validate_columns(self) -> None:
        target = self.data_config['target']
        if target not in self.data.columns:
            raise DataValidationError(f"Target column '{target}' not found in data.")

        features = self._feature_columns()
        if not features:
            raise DataValidationError("No feature columns left after dropping target and drop_columns.")

        non_numeric = [c for c in features + [target] if not pd.api.types.is_numeric_dtype(self.data[c])]
        if non_numeric:
            raise DataValidationError(f"Non-numeric columns cannot be used for training: {non_numeric}")

    def validate_nan_inf(self) -> pd.DataFrame:
        """Per-column NaN / infinite counts; any non-finite value fails validation."""
        columns = self._feature_columns() + [self.data_config['target']]
        values = self.data[columns]
        stats_df = pd.DataFrame({
            'column': columns,
            'nan_count': values.isna().sum().values,
            'inf_count': np.isinf(values.to_numpy(dtype=np.float64)).sum(axis=0),
        })

        bad = stats_df[(stats_df['nan_count'] > 0) | (stats_df['inf_count'] > 0)]
        if not bad.empty:
            raise DataValidationError(
                f"NaN or infinite values found in columns: {bad['column'].tolist()}"
            )
        return stats_df

    def split(self):
        target = self.data_config['target']
        X = self.data[self._feature_columns()]
        y = self.data[target]
        val_size = self.data_config.get('val_size', 0.2)

        if val_size == 0:
            return X, y, None, None

        seed = self.config.get('_internal_seeds', {}).get('split', 42)
        X_train, X_val, y_train, y_val = train_test_split(X, y, test_size=val_size, random_state=seed)
        self.logger.info(f"Split data - Train: {len(X_train)}, Val: {len(X_val)}")
        return X_train, y_train, X_val, y_val
