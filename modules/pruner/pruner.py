import math
from typing import List, Mapping, Optional

from utils.exceptions import ConfigurationError, InsufficientResultsError


class Pruner:
    """
    Successive-halving survivor selection (lower loss is better).

    Ties are broken by ascending mst_key so a round's survivors never depend
    on dictionary or sort-stability order. NaN losses rank last.
    """

    @staticmethod
    def _rank_key(item):
        mst_key, loss = item
        if loss is None or math.isnan(loss):
            loss = math.inf
        return (loss, mst_key)

    def select(self, results: Mapping[int, Optional[float]], k: int) -> List[int]:
        if isinstance(k, bool) or not isinstance(k, int) or k < 0:
            raise ConfigurationError(f"Pruner target count must be a non-negative integer, got {k!r}")
        if len(results) < k:
            raise InsufficientResultsError(
                f"Cannot keep {k} configurations: only {len(results)} results available"
            )

        ranked = sorted(results.items(), key=self._rank_key)
        return [mst_key for mst_key, _ in ranked[:k]]
