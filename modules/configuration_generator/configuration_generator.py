import logging
from typing import Any, Dict, List

import numpy as np
from sklearn.model_selection import ParameterGrid, ParameterSampler

from modules.configuration_pool import CandidateConfiguration
from utils.exceptions import ConfigurationError
from utils import constants


class ConfigurationGenerator:
    """
    Produces the initial candidate pool from per-model value lists.

    'grid' walks sklearn's ParameterGrid in order; 'random' draws with
    ParameterSampler. Candidates are numbered 1..n in emission order.
    """

    METHODS = ('grid', 'random')

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.search_config = config.get('search', {})
        self.method = self.search_config.get('method', 'random')
        self.seed = config.get('_internal_seeds', {}).get('search', self.search_config.get('seed', 42))
        self.grids: Dict[str, Dict[str, List[Any]]] = self.search_config.get('grids', {})

        if self.method not in self.METHODS:
            raise ConfigurationError(f"search.method must be one of {self.METHODS}, got {self.method!r}")
        if not self.grids:
            raise ConfigurationError("search.grids cannot be empty.")

    def _param_space(self) -> List[Dict[str, List[Any]]]:
        # The model name rides along as a single-valued parameter so one
        # sampler covers every model.
        return [
            {constants.MODEL_NAME: [model_name], **grid}
            for model_name, grid in self.grids.items()
        ]

    def grid_size(self) -> int:
        return len(ParameterGrid(self._param_space()))

    def generate(self, n: int) -> List[CandidateConfiguration]:
        if n < 1:
            raise ConfigurationError(f"Number of configurations must be >= 1, got {n}")

        if self.method == 'grid':
            combinations = self._grid(n)
        else:
            combinations = self._random(n)

        candidates = []
        for mst_key, combination in enumerate(combinations, start=1):
            params = dict(combination)
            model_name = params.pop(constants.MODEL_NAME)
            candidates.append(CandidateConfiguration(mst_key=mst_key, model_name=model_name, params=params))

        self.logger.info(f"Generated {len(candidates)} candidate configurations ({self.method} search).")
        return candidates

    def _grid(self, n: int) -> List[Dict[str, Any]]:
        grid = ParameterGrid(self._param_space())
        if len(grid) < n:
            raise ConfigurationError(
                f"Grid search yields {len(grid)} combinations but the Hyperband schedule needs {n}. "
                "Extend search.grids or use search.method='random'."
            )
        if len(grid) > n:
            self.logger.warning(f"Grid has {len(grid)} combinations; only the first {n} are used.")
        return [grid[idx] for idx in range(n)]

    def _random(self, n: int) -> List[Dict[str, Any]]:
        space = self._param_space()
        size = self.grid_size()
        rng = np.random.RandomState(self.seed)

        if size < n:
            self.logger.warning(
                f"Search space holds {size} distinct combinations; {n - size} candidates will repeat."
            )

        combinations: List[Dict[str, Any]] = []
        while len(combinations) < n:
            batch = min(n - len(combinations), size)
            sampler = ParameterSampler(space, n_iter=batch, random_state=rng.randint(np.iinfo(np.int32).max))
            combinations.extend(sampler)
        return combinations
