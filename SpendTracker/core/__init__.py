"""
Core package for SpendTracker.

This package includes:

- :mod:`SpendTracker.core.coordinator` – Owns transactions and view state, recomputes derived views.
- :mod:`SpendTracker.core.storage` – Key-value store collaborators and transaction persistence.
- :mod:`SpendTracker.core.signals` – Application-wide Qt signals.
"""
