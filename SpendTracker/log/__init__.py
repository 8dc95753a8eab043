"""
Logging subsystem.

Modules:

- :mod:`SpendTracker.log.log` – Root logger setup, Qt message bridge and the in-memory log tank.
"""
