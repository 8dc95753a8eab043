"""Application-wide Qt signals.

Components that are not owned by a single :class:`~SpendTracker.core.coordinator.Coordinator`
(settings, logging, status exceptions) broadcast through the module-level :data:`signals` instance.
"""
from PySide6 import QtCore


class Signals(QtCore.QObject):
    # Errors raised anywhere in the engine
    error = QtCore.Signal(str)
    showLogs = QtCore.Signal()

    # Settings
    configSectionChanged = QtCore.Signal(str)
    metadataChanged = QtCore.Signal(str, object)

    def __init__(self):
        super().__init__()


signals = Signals()
