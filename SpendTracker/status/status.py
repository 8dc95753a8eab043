"""Status definitions and exceptions for SpendTracker.

This module provides:
    - Status: enumeration of possible engine states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., NotFoundException) raised by the coordinator, storage and settings
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Config status
    LedgerConfigNotFound = enum.auto()
    LedgerConfigInvalid = enum.auto()
    CategoriesInvalid = enum.auto()

    # Transaction status
    ValidationFailed = enum.auto()
    NotFound = enum.auto()

    # Storage status
    PersistenceFailed = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status. Please check the settings.',
    Status.Okay: 'Everything is okay.',

    Status.LedgerConfigNotFound: 'Could not find the ledger config.',
    Status.LedgerConfigInvalid: 'The ledger config seems to be incomplete, or contains invalid values.',
    Status.CategoriesInvalid: 'The categories seem to be incomplete, or contain invalid values.',

    Status.ValidationFailed: 'The transaction contains invalid values.',
    Status.NotFound: 'The transaction could not be found.',

    Status.PersistenceFailed: 'Could not read or write the transaction store.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in SpendTracker.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        self.detail = message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)

        from ..core.signals import signals
        signals.error.emit(message or self.status_message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class LedgerConfigNotFoundException(BaseStatusException):
    """Exception raised when the ledger configuration file cannot be found."""
    status = Status.LedgerConfigNotFound


class LedgerConfigInvalidException(BaseStatusException):
    """Exception raised when the ledger configuration is invalid or malformed."""
    status = Status.LedgerConfigInvalid


class CategoriesInvalidException(BaseStatusException):
    """Exception raised when category configuration is invalid or incomplete."""
    status = Status.CategoriesInvalid


class ValidationException(BaseStatusException):
    """Exception raised when a transaction amount, date or patch is malformed.

    Raised before any mutation, so the transaction set is left unchanged.
    """
    status = Status.ValidationFailed


class NotFoundException(BaseStatusException):
    """Exception raised when an update or removal references an unknown transaction id."""
    status = Status.NotFound


class PersistenceException(BaseStatusException):
    """Exception raised when the storage collaborator fails to read or write."""
    status = Status.PersistenceFailed
