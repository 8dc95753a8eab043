"""
SpendTracker: personal transaction tracking with filtering, sorting and analytics.

This package provides:

- :mod:`SpendTracker.core` – The :class:`SpendTracker.core.coordinator.Coordinator` that owns the
  transaction set and view state, and the storage collaborators it persists through.
- :mod:`SpendTracker.data` – The transaction model, date-range resolution, the filter/sort/aggregate
  engine (:mod:`SpendTracker.data.data`) and time-series bucketing (:mod:`SpendTracker.data.trends`).
- :mod:`SpendTracker.settings` – Settings management, schema validation and locale formatting.
- :mod:`SpendTracker.log` – Logging setup with an in-memory log tank.

Use :meth:`SpendTracker.core.coordinator.Coordinator.from_settings` to build a coordinator from the
user's configuration.
"""

import sys

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('SpendTracker requires Python 3.11 or higher.')

__version__ = '0.1.0'
__license__ = 'GPL-3.0'
__description__ = 'SpendTracker: filtering, sorting and analytics engine for personal transactions.'

from .log import log

log.setup_logging()
