"""
Settings package: configuration API and locale helpers.

This package provides:

- :mod:`SpendTracker.settings.lib` – Core settings management and schema validation.
- :mod:`SpendTracker.settings.locale` – Localization utilities for formatting.
"""
