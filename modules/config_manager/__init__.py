"""
Configuration Manager Module
============================

Responsibility:
- Centralized loading and validation of JSON configuration files.
- Enforcement of schema constraints and logical rules (R, eta, skip_last).
- Resource usage guardrails (configuration count / memory).
- Deterministic seed propagation for reproducibility.
"""

from .config_manager import ConfigurationManager
from .hyperband_config import HyperbandConfig

__all__ = ['ConfigurationManager', 'HyperbandConfig']
