# utils/constants.py

# --- Top-Level Result Directories ---
# Sequentially numbered for proper sorting with clear, self-explanatory names

CONFIG_DIR = "01_RunConfiguration"              # Run config, metadata, seeds
SCHEDULE_DIR = "02_HyperbandSchedule"           # Bracket/round/config/resource table
SEARCH_DIR = "03_DiagonalSearch"                # Journal of per-round results
REPORTING_DIR = "04_FinalReports"               # Model info table, summary, best config

# Canonical list used when building the base results structure (in order).
TOP_LEVEL_RESULT_DIRS = [
    CONFIG_DIR,
    SCHEDULE_DIR,
    SEARCH_DIR,
    REPORTING_DIR,
]

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
SCHEDULE_FILE = "schedule.parquet"
RESULTS_JOURNAL_FILE = "results_journal.jsonl"
MODEL_INFO_FILE = "model_info.parquet"
SUMMARY_FILE = "summary.json"
BEST_CONFIGURATION_FILE = "best_configuration.json"

# --- Schedule Columns ---
BRACKET = "bracket"
ROUND = "round"
CONFIGURATIONS = "num_configs"
RESOURCES = "resources"

# --- Result Record Columns ---
MST_KEY = "mst_key"
MODEL_NAME = "model_name"
PARAMS = "params"
ITERATIONS = "iterations"
METRICS_ITERS = "metrics_iters"
ROUND_LOSSES = "round_losses"
TRAINING_LOSS = "training_loss"
TRAINING_METRIC = "training_metric"
VALIDATION_LOSS = "validation_loss"
VALIDATION_METRIC = "validation_metric"
ELAPSED_TIME = "metrics_elapsed_time"
TRAINING_LOSS_FINAL = "training_loss_final"
TRAINING_METRIC_FINAL = "training_metric_final"
VALIDATION_LOSS_FINAL = "validation_loss_final"
VALIDATION_METRIC_FINAL = "validation_metric_final"

# Loss columns the Pruner may rank on (lower is better).
PRUNE_METRICS = (TRAINING_LOSS, VALIDATION_LOSS)

# --- Hyperband Defaults ---
DEFAULT_ETA = 3
DEFAULT_SKIP_LAST = 0
DEFAULT_PRUNE_METRIC = TRAINING_LOSS

# --- Resource Guardrails ---
DEFAULT_MAX_CONFIGURATIONS = 5000
