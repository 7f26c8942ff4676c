"""
Utility package setup.

Enables pandas Copy-on-Write globally so the report tables built from result
records do not duplicate data on every column selection.
"""

import pandas as pd

# Reduce implicit copies across the scheduler's reporting.
pd.options.mode.copy_on_write = True
