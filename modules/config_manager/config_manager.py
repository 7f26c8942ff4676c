import json
import os
import hashlib
import sys
import logging
import jsonschema
import psutil  # Required for memory awareness
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional
from sklearn.model_selection import ParameterGrid

from modules.config_manager.hyperband_config import HyperbandConfig
from modules.trainer import IncrementalModelFactory
from utils.exceptions import ConfigurationError
from utils import constants

class ConfigurationManager:
    """
    Manages system configuration loading, validation, and access.
    Acts as the single source of truth and safety guard for a search run.

    Validation stages:
    - Structural validation against the JSON schema.
    - Logical validation (Hyperband parameters, bounds, cross-field rules).
    - Resource guardrails (configuration count, memory ceiling).
    """

    # Default Resource Limits (Safety Guardrails)
    DEFAULT_MAX_CONFIGURATIONS = constants.DEFAULT_MAX_CONFIGURATIONS

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.hyperband: Optional[HyperbandConfig] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config, validates schema/logic/resources,
        and propagates seeds.

        Returns:
            Dict[str, Any]: The fully validated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        # 1. Load Files
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        # 2. Structural Validation (Schema)
        self._validate_schema()

        # 3. Logical Validation (Business Rules & Bounds)
        self._validate_logic()

        # 4. Resource Validation (Prevent Exhaustion)
        self._validate_resources()

        # 5. Internal Seed Propagation (Reproducibility)
        self._propagate_seeds()

        return self.config

    def get_hyperband_config(self) -> HyperbandConfig:
        """Typed view of the 'hyperband' section (validated on first access)."""
        if self.hyperband is None:
            self.hyperband = HyperbandConfig.from_dict(self.config.get('hyperband', {}))
        return self.hyperband

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        Used for directory naming and metadata.
        """
        if not self.run_id:
            timestamp = datetime.now()
            # Format: YYYYMMDD_HHMMSS
            self.run_id = timestamp.strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save configuration artifacts to the run directory for full reproducibility.

        Saves:
        1. config_used.json: The exact config object in memory.
        2. config_hash.txt: SHA256 hash for versioning.
        3. run_metadata.json: Environment details (Python version, Platform, etc.).
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        # 1. Save Config
        with open(config_dir / constants.CONFIG_USED_FILE, 'w') as f:
            json.dump(self.config, f, indent=2)

        # 2. Calculate and Save Hash
        config_str = json.dumps(self.config, sort_keys=True)
        config_hash = hashlib.sha256(config_str.encode()).hexdigest()

        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        # 3. Save Metadata (Environment Capture)
        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'config_hash': config_hash,
            'working_directory': os.getcwd()
        }

        with open(config_dir / constants.RUN_METADATA_FILE, 'w') as f:
            json.dump(metadata, f, indent=2)

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        """Comprehensive logical validation."""
        # --- Hyperband Section ---
        # R / eta / skip_last bounds are enforced by the schedule calculator.
        self.hyperband = None
        self.get_hyperband_config()

        # --- Search Section ---
        search = self.config.get('search', {})
        method = search.get('method', 'random')
        if method not in ('grid', 'random'):
            raise ConfigurationError(f"search.method must be 'grid' or 'random', got {method!r}")
        grids = search.get('grids')
        if not grids:
            raise ConfigurationError("search.grids cannot be empty.")
        unknown_models = sorted(set(grids) - set(IncrementalModelFactory.get_available_models()))
        if unknown_models:
            raise ConfigurationError(
                f"search.grids names unsupported models {unknown_models}. "
                f"Available: {IncrementalModelFactory.get_available_models()}"
            )
        for model_name, grid in grids.items():
            for param, values in grid.items():
                if not isinstance(values, list) or not values:
                    raise ConfigurationError(
                        f"search.grids.{model_name}.{param} must be a non-empty list of values."
                    )
        if search.get('seed', 42) < 0:
            raise ConfigurationError("search.seed must be non-negative.")

        # --- Data Section ---
        data = self.config.get('data', {})
        if data:
            for key in ['file_path', 'target']:
                if not data.get(key):
                    raise ConfigurationError(f"Data '{key}' must be specified and non-empty.")
            val_size = data.get('val_size', 0.2)
            if not (0.0 <= val_size < 1.0):
                raise ConfigurationError(f"val_size must be in [0, 1), got {val_size}")

        # --- Trainer Section ---
        trainer = self.config.get('trainer', {})
        if 'n_jobs' in trainer:
            n_jobs = trainer['n_jobs']
            if n_jobs == 0 or n_jobs < -1:
                raise ConfigurationError(f"trainer.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")
        frequency = trainer.get('metrics_compute_frequency', 1)
        if frequency < 1:
            raise ConfigurationError(f"trainer.metrics_compute_frequency must be >= 1, got {frequency}")

    def _validate_resources(self) -> None:
        """
        Validate against system resources.
        The Hyperband schedule fixes how many configurations are generated; make
        sure that count fits within safe limits before anything is trained.
        """
        resources = self.config.get('resources', {})
        schedule = self.get_hyperband_config().build_schedule()
        total_configs = schedule.total_configurations

        # 1. Configuration Explosion Check
        max_configs = resources.get('max_configs', self.DEFAULT_MAX_CONFIGURATIONS)
        if total_configs > max_configs:
            raise ConfigurationError(
                f"Hyperband needs {total_configs} configurations, exceeding the "
                f"safety limit ({max_configs}). Lower hyperband.R or increase 'resources.max_configs'."
            )

        search = self.config.get('search', {})
        if search.get('method', 'random') == 'grid':
            space = [{constants.MODEL_NAME: [name], **grid} for name, grid in search.get('grids', {}).items()]
            try:
                grid_size = len(ParameterGrid(space))
            except Exception as e:
                raise ConfigurationError(f"Invalid parameter grid: {str(e)}")
            if grid_size < total_configs:
                raise ConfigurationError(
                    f"Grid search yields {grid_size} combinations but Hyperband needs {total_configs}."
                )

        # Log the pool size for visibility
        logging.info(f"Hyperband pool size validated: {total_configs} configurations (Limit: {max_configs})")

        # 2. Memory Limits Check
        system_ram_mb = int(psutil.virtual_memory().total / (1024 * 1024))
        # Default safety buffer: 80% of system RAM
        safe_ram_limit = int(system_ram_mb * 0.8)

        config_max_ram = resources.get('max_memory_mb', safe_ram_limit)

        if config_max_ram > system_ram_mb:
            logging.warning(
                f"Configured max_memory_mb ({config_max_ram}MB) exceeds physical system RAM ({system_ram_mb}MB). "
                "This may lead to instability."
            )

        # Inject the limit back into config for other modules to use
        self.config.setdefault('resources', {})['max_memory_mb'] = config_max_ram

    def _propagate_seeds(self) -> None:
        """
        Propagate master seed to internal components to ensure reproducible runs.
        Uses large, non-overlapping offsets to avoid correlation between components.
        """
        master_seed = self.config.get('search', {}).get('seed', 42)

        self.config['_internal_seeds'] = {
            'search': master_seed,
            'trainer': master_seed + 1000,
            'split': master_seed + 2000,
        }
        logging.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")
