"""
Configuration Generator
=======================

Responsibility:
- Emit the initial pool of candidate configurations (grid or random search)
  over per-model value lists, numbered 1..n.
"""

from .configuration_generator import ConfigurationGenerator

__all__ = ['ConfigurationGenerator']
