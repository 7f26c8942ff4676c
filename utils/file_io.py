import json
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Any

class NumpyEncoder(json.JSONEncoder):
    """Handles serialization of NumPy types to JSON."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, (np.ndarray,)):
            return obj.tolist()
        return json.JSONEncoder.default(self, obj)

def save_dataframe(df: pd.DataFrame, path: Path, *, excel_copy: bool = False, index: bool = False) -> Path:
    """
    Save a DataFrame to Parquet for fast I/O with an optional Excel copy for human readability.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=index)

    if excel_copy:
        excel_path = path.with_suffix(".xlsx")
        # openpyxl cannot store sequences in a cell
        excel_df = df.copy()
        for col in excel_df.columns:
            if excel_df[col].dtype == object:
                excel_df[col] = excel_df[col].map(_excel_cell)
        excel_df.to_excel(excel_path, index=index)

    return path


def _excel_cell(value: Any) -> Any:
    if isinstance(value, (list, tuple, dict, np.ndarray)):
        return json.dumps(value, cls=NumpyEncoder)
    return value


def read_dataframe(path: Path) -> pd.DataFrame:
    """
    Load a DataFrame from Parquet/Excel/CSV based on file extension.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    if suffix == ".csv":
        return pd.read_csv(path)

    raise ValueError(f"Unsupported file extension for reading: {suffix}")


def save_json(payload: Any, path: Path) -> Path:
    """Write a JSON document (NumPy aware), creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, cls=NumpyEncoder)
    return path
