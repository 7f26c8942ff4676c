import json
import pytest
from unittest.mock import Mock, patch

from modules.config_manager import ConfigurationManager
from utils.exceptions import ConfigurationError

SCHEMA = {
    "type": "object",
    "required": ["hyperband", "search"],
    "properties": {
        "hyperband": {
            "type": "object",
            "required": ["R"],
            "properties": {"R": {"type": "integer"}, "eta": {"type": "integer"}},
        },
        "search": {"type": "object", "properties": {"grids": {"type": "object"}}},
    },
}


@pytest.fixture
def valid_config(tmp_path):
    return {
        "hyperband": {"R": 27, "eta": 3, "skip_last": 0},
        "search": {
            "method": "random",
            "seed": 42,
            "grids": {"SGDRegressor": {"alpha": [0.001, 0.01], "penalty": ["l2", "l1"]}},
        },
        "data": {"file_path": "data/train.csv", "target": "y", "val_size": 0.2},
        "trainer": {"n_jobs": 2, "metrics_compute_frequency": 1},
        "outputs": {"base_results_dir": str(tmp_path / "results")},
    }


@pytest.fixture
def write_files(tmp_path):
    def _write(config, schema=SCHEMA):
        config_path = tmp_path / "config.json"
        schema_path = tmp_path / "schema.json"
        config_path.write_text(json.dumps(config))
        schema_path.write_text(json.dumps(schema))
        return ConfigurationManager(str(config_path), str(schema_path))
    return _write


@pytest.fixture(autouse=True)
def mock_memory():
    with patch('psutil.virtual_memory') as mock_virtual_memory:
        memory = Mock()
        memory.total = 8 * (1024 ** 3)  # 8 GB
        mock_virtual_memory.return_value = memory
        yield mock_virtual_memory


class TestConfigurationManager:

    def test_load_and_validate_success(self, write_files, valid_config, mock_memory):
        manager = write_files(valid_config)
        config = manager.load_and_validate()

        assert config['hyperband']['R'] == 27
        assert config['_internal_seeds'] == {'search': 42, 'trainer': 1042, 'split': 2042}
        assert config['resources']['max_memory_mb'] == int(8 * 1024 * 0.8)
        mock_memory.assert_called_once()

        hyperband = manager.get_hyperband_config()
        assert (hyperband.R, hyperband.eta, hyperband.skip_last) == (27, 3, 0)

    def test_config_not_found(self, tmp_path):
        manager = ConfigurationManager(str(tmp_path / "missing.json"), str(tmp_path / "schema.json"))
        with pytest.raises(ConfigurationError, match="File not found: .*missing.json"):
            manager.load_and_validate()

    def test_invalid_json(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("this is not valid json")
        (tmp_path / "schema.json").write_text("{}")
        manager = ConfigurationManager(str(config_path), str(tmp_path / "schema.json"))
        with pytest.raises(ConfigurationError, match="Invalid JSON in .*config.json"):
            manager.load_and_validate()

    def test_schema_failure(self, write_files, valid_config):
        valid_config['hyperband']['R'] = "27"
        with pytest.raises(ConfigurationError, match="Schema validation failed"):
            write_files(valid_config).load_and_validate()

    @pytest.mark.parametrize("hyperband, message", [
        ({"R": 2, "eta": 3}, "must be >= eta"),
        ({"R": 27, "eta": 1}, "eta must be > 1"),
        ({"R": 27, "eta": 3, "skip_last": 4}, "skip_last must be in"),
        ({"R": 27, "prune_metric": "accuracy"}, "prune_metric"),
        ({"R": 27, "budget": 3}, "Unknown hyperband options"),
    ])
    def test_invalid_hyperband(self, write_files, valid_config, hyperband, message):
        valid_config['hyperband'] = hyperband
        with pytest.raises(ConfigurationError, match=message):
            write_files(valid_config).load_and_validate()

    def test_invalid_search_method(self, write_files, valid_config):
        valid_config['search']['method'] = 'bayesian'
        with pytest.raises(ConfigurationError, match="search.method"):
            write_files(valid_config).load_and_validate()

    def test_empty_grid_values(self, write_files, valid_config):
        valid_config['search']['grids']['SGDRegressor']['alpha'] = []
        with pytest.raises(ConfigurationError, match="non-empty list"):
            write_files(valid_config).load_and_validate()

    def test_unsupported_grid_model(self, write_files, valid_config):
        valid_config['search']['grids']['Ridge'] = {'alpha': [1.0]}
        with pytest.raises(ConfigurationError, match=r"unsupported models \['Ridge'\]"):
            write_files(valid_config).load_and_validate()

    def test_invalid_val_size(self, write_files, valid_config):
        valid_config['data']['val_size'] = 1.0
        with pytest.raises(ConfigurationError, match="val_size"):
            write_files(valid_config).load_and_validate()

    def test_invalid_n_jobs(self, write_files, valid_config):
        valid_config['trainer']['n_jobs'] = 0
        with pytest.raises(ConfigurationError, match="n_jobs"):
            write_files(valid_config).load_and_validate()

    def test_configuration_explosion(self, write_files, valid_config):
        valid_config['resources'] = {'max_configs': 40}
        # R=27, eta=3 needs 46 configurations
        with pytest.raises(ConfigurationError, match="Hyperband needs 46 configurations"):
            write_files(valid_config).load_and_validate()

    def test_grid_too_small_for_schedule(self, write_files, valid_config):
        valid_config['search']['method'] = 'grid'
        with pytest.raises(ConfigurationError, match="Grid search yields 4 combinations"):
            write_files(valid_config).load_and_validate()

    def test_memory_warning(self, write_files, valid_config, caplog):
        valid_config['resources'] = {'max_memory_mb': 64 * 1024}
        config = write_files(valid_config).load_and_validate()
        assert config['resources']['max_memory_mb'] == 64 * 1024
        assert "exceeds physical system RAM" in caplog.text

    def test_generate_run_id(self, write_files, valid_config):
        manager = write_files(valid_config)
        run_id = manager.generate_run_id()
        assert len(run_id) == len("20240101_120000")
        assert manager.generate_run_id() == run_id

    def test_save_artifacts(self, write_files, valid_config, tmp_path):
        manager = write_files(valid_config)
        manager.load_and_validate()
        manager.generate_run_id()
        manager.save_artifacts(str(tmp_path / "run"))

        config_dir = tmp_path / "run" / "01_RunConfiguration"
        saved = json.loads((config_dir / "config_used.json").read_text())
        assert saved['hyperband'] == valid_config['hyperband']
        assert len((config_dir / "config_hash.txt").read_text()) == 64
        metadata = json.loads((config_dir / "run_metadata.json").read_text())
        assert metadata['run_id'] == manager.run_id
