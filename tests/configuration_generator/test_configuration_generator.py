import logging
import pytest
from unittest.mock import MagicMock

from modules.configuration_generator import ConfigurationGenerator
from utils.exceptions import ConfigurationError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def search_config():
    return {
        'search': {
            'method': 'grid',
            'seed': 7,
            'grids': {
                'SGDRegressor': {'alpha': [0.0001, 0.001], 'penalty': ['l2', 'l1']},
                'MLPRegressor': {'hidden_layer_sizes': [[16], [32]]},
            },
        }
    }


class TestConfigurationGenerator:

    def test_grid_size(self, search_config, mock_logger):
        generator = ConfigurationGenerator(search_config, mock_logger)
        assert generator.grid_size() == 6

    def test_grid_generation(self, search_config, mock_logger):
        generator = ConfigurationGenerator(search_config, mock_logger)
        candidates = generator.generate(6)

        assert [c.mst_key for c in candidates] == [1, 2, 3, 4, 5, 6]
        assert sorted(c.model_name for c in candidates) == ['MLPRegressor'] * 2 + ['SGDRegressor'] * 4
        assert all('model_name' not in c.params for c in candidates)
        sgd = [c.params for c in candidates if c.model_name == 'SGDRegressor']
        assert {'alpha': 0.001, 'penalty': 'l1'} in sgd

    def test_grid_takes_first_n(self, search_config, mock_logger):
        generator = ConfigurationGenerator(search_config, mock_logger)
        full = generator.generate(6)
        partial = generator.generate(4)

        assert [c.params for c in partial] == [c.params for c in full[:4]]
        mock_logger.warning.assert_called_once()

    def test_grid_too_small(self, search_config, mock_logger):
        generator = ConfigurationGenerator(search_config, mock_logger)
        with pytest.raises(ConfigurationError, match="yields 6 combinations"):
            generator.generate(7)

    def test_random_is_seeded(self, search_config, mock_logger):
        search_config['search']['method'] = 'random'
        first = ConfigurationGenerator(search_config, mock_logger).generate(5)
        second = ConfigurationGenerator(search_config, mock_logger).generate(5)
        assert [(c.model_name, c.params) for c in first] == [(c.model_name, c.params) for c in second]

    def test_random_repeats_when_space_is_small(self, search_config, mock_logger):
        search_config['search']['method'] = 'random'
        generator = ConfigurationGenerator(search_config, mock_logger)
        candidates = generator.generate(15)

        assert len(candidates) == 15
        assert [c.mst_key for c in candidates] == list(range(1, 16))
        mock_logger.warning.assert_called_once()

    def test_internal_seed_takes_precedence(self, search_config, mock_logger):
        search_config['_internal_seeds'] = {'search': 123}
        generator = ConfigurationGenerator(search_config, mock_logger)
        assert generator.seed == 123

    def test_invalid_method(self, search_config, mock_logger):
        search_config['search']['method'] = 'bayesian'
        with pytest.raises(ConfigurationError, match="search.method"):
            ConfigurationGenerator(search_config, mock_logger)

    def test_empty_grids(self, mock_logger):
        with pytest.raises(ConfigurationError, match="cannot be empty"):
            ConfigurationGenerator({'search': {'grids': {}}}, mock_logger)

    def test_invalid_n(self, search_config, mock_logger):
        with pytest.raises(ConfigurationError):
            ConfigurationGenerator(search_config, mock_logger).generate(0)
