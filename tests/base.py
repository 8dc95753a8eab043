"""Unittest base classes for creating a clean test environment."""
import datetime
import logging
import shutil
import unittest
from pathlib import Path

from PySide6 import QtCore

# Redirect QStandardPaths to a test location before any settings are created
QtCore.QStandardPaths.setTestModeEnabled(True)

from SpendTracker.data.model import Transaction
from SpendTracker.settings import lib

NOW = datetime.datetime(2024, 3, 14, 15, 30, 0)


def make_transaction(_id: str, amount: float = 10.0, category: str = 'Food', days_ago: int = 0,
                     description: str = '', hour: int = None) -> Transaction:
    """Build a record dated ``days_ago`` days before :data:`NOW`."""
    occurred_at = NOW - datetime.timedelta(days=days_ago)
    if hour is not None:
        occurred_at = occurred_at.replace(hour=hour, minute=0)
    return Transaction(
        id=_id,
        amount=amount,
        category=category,
        occurred_at=occurred_at,
        description=description,
    )


def ensure_app() -> QtCore.QCoreApplication:
    app = QtCore.QCoreApplication.instance()
    if not app:
        app = QtCore.QCoreApplication([])
        logging.debug('QtCore.QCoreApplication initialized for tests.')
    return app


class BaseTestCase(unittest.TestCase):
    """Base test case that sets up and tears down a clean test config directory."""

    config_paths: lib.ConfigPaths

    def setUp(self) -> None:
        """Remove any leftover test config and reinitialize the settings API."""
        ensure_app()

        self.config_paths = lib.ConfigPaths()
        for d in (self.config_paths.config_dir, self.config_paths.db_dir):
            if d.exists():
                shutil.rmtree(d)
                logging.debug(f'Removed test directory {d}')

        lib.settings = lib.SettingsAPI()
        logging.debug('SettingsAPI reinitialized.')

    def tearDown(self) -> None:
        for d in (self.config_paths.config_dir, self.config_paths.db_dir):
            path = Path(d)
            if path.exists():
                shutil.rmtree(path)
                logging.debug(f'Removed test directory {path}')


class BaseAsyncTestCase(unittest.IsolatedAsyncioTestCase):
    """Base test case for coroutine tests, with a Qt core application available."""

    def setUp(self) -> None:
        ensure_app()
