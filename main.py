#!/usr/bin/env python
"""
Diagonal Hyperband - Main Entry Point
Computes the Hyperband schedule, generates candidate configurations and runs
the diagonal search with the reference incremental trainer.
"""
import sys
import logging
import argparse
import traceback
import random
from pathlib import Path

import numpy as np

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

# Core Infrastructure
from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.data_manager import DataManager
from utils.exceptions import HyperbandError
from utils import constants

# Hyperband
from modules.configuration_pool import ConfigurationPool
from modules.configuration_generator import ConfigurationGenerator
from modules.trainer import SklearnIncrementalTrainer
from modules.diagonal_executor import DiagonalExecutor
from modules.reporting_engine import ReportingEngine


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Diagonal Hyperband - hyperparameter search with diagonal bracket execution",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier (defaults to timestamp if not provided)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and print the schedule without training"
    )

    return parser.parse_args(argv)


def setup_global_determinism(config: dict, logger: logging.Logger):
    """Seed python and numpy global generators from the search seed."""
    seed = config.get('_internal_seeds', {}).get('search', 42)
    logger.info(f"Setting Global Deterministic Seed: {seed}")
    random.seed(seed)
    np.random.seed(seed)


def setup_run_directory(config: dict, run_id: str, logger: logging.Logger = None) -> Path:
    """
    Create the run directory and its numbered sub-directories.

    Returns:
        Path: Absolute run directory.
    """
    base_results_dir = config.get('outputs', {}).get('base_results_dir', 'results')
    run_dir = Path(f"{base_results_dir}_{run_id}").absolute()

    run_dir.mkdir(parents=True, exist_ok=True)
    for name in constants.TOP_LEVEL_RESULT_DIRS:
        (run_dir / name).mkdir(exist_ok=True)

    if logger:
        logger.info(f"Created new run directory: {run_dir}")
    return run_dir


def main(argv=None):
    """
    Main orchestration function.

    Returns:
        int: Exit code (0 for success, 1 for errors, 130 on interruption)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        print("\n" + "=" * 80)
        print("    DIAGONAL HYPERBAND SEARCH")
        print("=" * 80 + "\n")

        # ---------------------------------------------------------------
        # PHASE 0: INITIALIZATION & VALIDATION
        # ---------------------------------------------------------------
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config = config_manager.load_and_validate()

        if args.verbose:
            config.setdefault('logging', {})['level'] = 'DEBUG'

        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('hyperband')

        logger.info(f"Configuration loaded from: {args.config}")

        hyperband = config_manager.get_hyperband_config()
        schedule = hyperband.build_schedule()
        logger.info(
            f"Hyperband schedule: R={schedule.R}, eta={schedule.eta}, skip_last={schedule.skip_last}, "
            f"s_max={schedule.s_max}, {schedule.total_configurations} configurations"
        )
        for entry in schedule.entries:
            logger.debug(
                f"bracket={entry.bracket} round={entry.round} "
                f"num_configs={entry.num_configs} resources={entry.resources}"
            )

        if args.dry_run:
            logger.info("Dry run mode: validation complete. Exiting without training.")
            print(schedule.to_frame().to_string(index=False))
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        run_id = args.run_id or config_manager.generate_run_id()
        config_manager.run_id = run_id
        run_dir = setup_run_directory(config, run_id, logger)
        config.setdefault('outputs', {})['base_results_dir'] = str(run_dir)
        config_manager.save_artifacts(str(run_dir))

        setup_global_determinism(config, logger)

        # ---------------------------------------------------------------
        # PHASE 1: DATA & CANDIDATES
        # ---------------------------------------------------------------
        logger.info("\n" + "=" * 60)
        logger.info("PHASE 1: DATA INGESTION & CANDIDATE GENERATION")
        logger.info("=" * 60)

        X_train, y_train, X_val, y_val = DataManager(config, logger).execute()

        pool = ConfigurationPool.from_schedule(schedule)
        for row in pool.describe():
            logger.info(f"Bracket {row['bracket']}: mst_keys {row['lower']}..{row['upper']} ({row['count']} configurations)")

        generator = ConfigurationGenerator(config, logger)
        pool.assign(generator.generate(pool.total))

        # ---------------------------------------------------------------
        # PHASE 2: DIAGONAL SEARCH
        # ---------------------------------------------------------------
        logger.info("\n" + "=" * 60)
        logger.info("PHASE 2: DIAGONAL HYPERBAND SEARCH")
        logger.info("=" * 60)

        trainer = SklearnIncrementalTrainer(config, logger, X_train, y_train, X_val, y_val)
        executor = DiagonalExecutor(config, logger, hyperband, pool, trainer)
        summary = executor.execute()

        # ---------------------------------------------------------------
        # PHASE 3: REPORTING
        # ---------------------------------------------------------------
        logger.info("\n" + "=" * 60)
        logger.info("PHASE 3: REPORTING")
        logger.info("=" * 60)

        ReportingEngine(config, logger).execute(summary)

        logger.info("\n" + "-" * 60)
        logger.info("SEARCH COMPLETED SUCCESSFULLY")
        logger.info(f"Run ID: {run_id}")
        logger.info(f"Output Directory: {run_dir}")
        logger.info("-" * 60 + "\n")

        print(f"\n[SUCCESS] Search completed. Results saved to: {run_dir}")
        return 0

    except HyperbandError as e:
        msg = f"Hyperband Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Search interrupted by user.")
        if logger:
            logger.warning("Search interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
