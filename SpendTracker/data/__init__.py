"""
SpendTracker data package: model, date ranges, analytics and trends.

This package provides:

- :mod:`SpendTracker.data.model` – The :class:`SpendTracker.data.model.Transaction` record, closed token types and per-field defaulting.
- :mod:`SpendTracker.data.daterange` – Resolution of period tokens and custom pairs into day-aligned intervals.
- :mod:`SpendTracker.data.data` – Filtering, stable sorting and category aggregation.
- :mod:`SpendTracker.data.trends` – Chart-ready time-series bucketing per analytics period.
- :mod:`SpendTracker.data.sample` – Sample transaction generator.
"""
