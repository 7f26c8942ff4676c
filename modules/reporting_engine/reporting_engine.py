import json
import logging
from pathlib import Path
from typing import Dict

import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.diagonal_executor import SearchSummary
from modules.result_tracker import ConfigurationRecord
from utils.error_handling import handle_engine_errors
from utils.file_io import NumpyEncoder, save_dataframe, save_json
from utils import constants


class ReportingEngine(BaseEngine):
    """
    Persists the outcome of a search run.

    Writes:
    - 02_HyperbandSchedule/schedule.parquet: (bracket, round, num_configs, resources).
    - 04_FinalReports/model_info.parquet: one row per trained configuration.
    - 04_FinalReports/summary.json and best_configuration.json.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.excel_copy = config.get('outputs', {}).get('save_excel_copy', False)

    def _get_engine_directory_name(self) -> str:
        return constants.REPORTING_DIR

    @handle_engine_errors("Reporting")
    def execute(self, summary: SearchSummary) -> Dict[str, Path]:
        self.logger.info("Writing Hyperband reports...")

        paths = {
            'schedule': save_dataframe(
                summary.schedule.to_frame(),
                self.base_dir / constants.SCHEDULE_DIR / constants.SCHEDULE_FILE,
                excel_copy=self.excel_copy,
            ),
            'model_info': save_dataframe(
                self.records_frame(summary.records),
                self.output_dir / constants.MODEL_INFO_FILE,
                excel_copy=self.excel_copy,
            ),
            'summary': save_json(summary.to_dict(), self.output_dir / constants.SUMMARY_FILE),
        }

        if summary.best is not None:
            best = {
                'mst_key': summary.best.mst_key,
                'bracket': summary.best.bracket,
                'model': summary.best.model_name,
                'params': summary.best.params,
                'metrics': {
                    summary.prune_metric: summary.best.loss,
                    'metric': summary.best.metric,
                },
            }
            paths['best_configuration'] = save_json(best, self.output_dir / constants.BEST_CONFIGURATION_FILE)
            self.logger.info(
                f"Best Config Found: mst_key={best['mst_key']} {best['model']} "
                f"({summary.prune_metric}: {summary.best.loss})"
            )
        else:
            self.logger.warning("No configuration was trained; best_configuration.json not written.")

        self.logger.info(f"Reports saved to {self.output_dir}")
        return paths

    @staticmethod
    def records_frame(records) -> pd.DataFrame:
        """Result records as a table; params are JSON-encoded so mixed models share one column."""
        columns = list(ConfigurationRecord(mst_key=0, bracket=0, model_name="").to_dict().keys())
        rows = []
        for record in records:
            row = record.to_dict()
            row[constants.PARAMS] = json.dumps(row[constants.PARAMS], sort_keys=True, cls=NumpyEncoder)
            rows.append(row)
        return pd.DataFrame(rows, columns=columns)
