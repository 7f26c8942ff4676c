import abc
import contextlib
import json
import logging
import shutil
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from modules.result_tracker.records import ConfigurationRecord
from utils.file_io import NumpyEncoder
from utils import constants


# --- Helper: Safe File Locking ---
@contextlib.contextmanager
def file_lock(lock_file: Path, timeout: int = 60, poll_interval: float = 0.1):
    """
    A cross-platform file locking mechanism using a directory (atomic on most OS).
    Keeps journal lines from interleaving when several runs share a directory.
    """
    lock_dir = lock_file.parent / (lock_file.name + ".lock")
    start_time = time.time()

    while True:
        try:
            lock_dir.mkdir(exist_ok=False)
            break
        except FileExistsError:
            if time.time() - start_time > timeout:
                logging.warning(f"Lock timeout expired for {lock_file}. Forcing release.")
                with contextlib.suppress(OSError):
                    shutil.rmtree(lock_dir)
            time.sleep(poll_interval)

    try:
        yield
    finally:
        with contextlib.suppress(OSError):
            shutil.rmtree(lock_dir)


class ResultStore(abc.ABC):
    """
    Narrow storage interface the scheduler depends on.

    Implementations decide where records live; the scheduler only puts whole
    records and reads per-bracket round results.
    """

    @abc.abstractmethod
    def put_configuration_result(self, record: ConfigurationRecord) -> None:
        raise NotImplementedError

    def put_configuration_results(self, records: Iterable[ConfigurationRecord]) -> None:
        for record in records:
            self.put_configuration_result(record)

    @abc.abstractmethod
    def get_record(self, mst_key: int) -> Optional[ConfigurationRecord]:
        raise NotImplementedError

    @abc.abstractmethod
    def records(self) -> List[ConfigurationRecord]:
        raise NotImplementedError

    def get_bracket_results(self, bracket: int, round_idx: int,
                            metric: str = constants.TRAINING_LOSS) -> Dict[int, Optional[float]]:
        """mst_key -> loss of every configuration of `bracket` trained in `round_idx`."""
        return {
            record.mst_key: record.loss_for_round(round_idx, metric)
            for record in self.records()
            if record.bracket == bracket and record.reached_round(round_idx)
        }


class InMemoryResultStore(ResultStore):

    def __init__(self):
        self._records: Dict[int, ConfigurationRecord] = {}

    def put_configuration_result(self, record: ConfigurationRecord) -> None:
        self._records[record.mst_key] = record

    def get_record(self, mst_key: int) -> Optional[ConfigurationRecord]:
        return self._records.get(mst_key)

    def records(self) -> List[ConfigurationRecord]:
        return [self._records[k] for k in sorted(self._records)]


class JsonlResultStore(InMemoryResultStore):
    """
    In-memory store that also appends every put to a JSON-lines journal.

    The journal is an audit trail for diagnostics; runs are not resumed from it.
    """

    def __init__(self, journal_file: Path):
        super().__init__()
        self.journal_file = Path(journal_file)
        self.journal_file.parent.mkdir(parents=True, exist_ok=True)

    def put_configuration_result(self, record: ConfigurationRecord) -> None:
        self.put_configuration_results([record])

    def put_configuration_results(self, records: Iterable[ConfigurationRecord]) -> None:
        records = list(records)
        lines = [json.dumps(record.to_dict(), cls=NumpyEncoder) + "\n" for record in records]
        with file_lock(self.journal_file):
            with open(self.journal_file, 'a', encoding='utf-8') as f:
                f.writelines(lines)
        for record in records:
            super().put_configuration_result(record)
