"""Transaction persistence through a key-value store.

The coordinator never touches files directly. It reads and writes the whole transaction list
through :class:`TransactionStorage`, which sits on top of any :class:`KeyValueStore`:

- :class:`MemoryStore` keeps values in a dict, used by tests and throwaway sessions.
- :class:`JsonFileStore` keeps every key in a single JSON document on disk.

Reads repair malformed records where possible and drop the ones that cannot be repaired. Writes
are retried once before a :class:`~SpendTracker.status.status.PersistenceException` is raised.
"""
import abc
import asyncio
import copy
import json
import logging
import os
import pathlib
import tempfile
from typing import Any, Optional

from ..data.model import CategoryCatalog, Transaction, new_id
from ..status import status

DEFAULT_STORAGE_KEY = 'spendtracker_transactions'
MAX_WRITE_ATTEMPTS = 2


class KeyValueStore(abc.ABC):
    """Asynchronous get/set store of JSON-serializable values."""

    @abc.abstractmethod
    async def get(self, key: str) -> Any:
        """Return the value stored under ``key``, or None when the key is absent."""
        ...

    @abc.abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


class MemoryStore(KeyValueStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStore(KeyValueStore):
    """Store keeping all keys in a single JSON file.

    File I/O runs in a worker thread. Writes go to a temporary file that replaces the target, so
    a failed write never leaves a truncated document behind.
    """

    def __init__(self, path: os.PathLike | str) -> None:
        self.path = pathlib.Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open('r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'Expected a JSON object in {self.path}, got {type(data).__name__}.')
        return data

    def _write(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f'.{self.path.name}.', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            pathlib.Path(tmp).unlink(missing_ok=True)
            raise

    async def get(self, key: str) -> Any:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)
        logging.debug(f'Wrote "{key}" to {self.path}')


class TransactionStorage:
    """Reads and writes the transaction list stored under a single key.

    Args:
        store: The key-value store to use.
        key: The key the transaction list is stored under.
        catalog: Categories that stored records are normalized against.
    """

    def __init__(
            self,
            store: KeyValueStore,
            key: str = DEFAULT_STORAGE_KEY,
            catalog: Optional[CategoryCatalog] = None,
    ) -> None:
        self.store = store
        self.key = key
        self.catalog = catalog

    async def load_all(self) -> list[Transaction]:
        """Load every stored transaction.

        Records with an unparseable amount, an unknown category or no id are repaired. Records
        with a missing or malformed date, and duplicate ids, are dropped or re-keyed with a
        logged warning.

        Returns:
            list[Transaction]: The stored records in stored order. Empty when nothing is stored.

        Raises:
            status.PersistenceException: If the store cannot be read or holds a malformed value.
        """
        try:
            raw = await self.store.get(self.key)
        except Exception as ex:
            logging.error(f'Error reading "{self.key}": {ex}', exc_info=True)
            raise status.PersistenceException(f'Could not read "{self.key}": {ex}') from ex

        if raw is None:
            logging.debug(f'Nothing stored under "{self.key}".')
            return []

        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError as ex:
                raise status.PersistenceException(f'"{self.key}" does not hold valid JSON.') from ex

        if not isinstance(raw, list):
            raise status.PersistenceException(
                f'"{self.key}" must hold a list of transactions, got {type(raw).__name__}.')

        transactions = []
        seen = set()
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                logging.warning(f'Dropping stored record #{index}: not an object.')
                continue
            try:
                transaction = Transaction.from_dict(item, catalog=self.catalog)
            except status.ValidationException as ex:
                logging.warning(f'Dropping stored record #{index}: {ex}')
                continue

            if transaction.id in seen:
                _id = new_id()
                logging.warning(f'Duplicate transaction id "{transaction.id}", assigned "{_id}".')
                transaction = Transaction(
                    id=_id,
                    amount=transaction.amount,
                    category=transaction.category,
                    occurred_at=transaction.occurred_at,
                    description=transaction.description,
                )
            seen.add(transaction.id)
            transactions.append(transaction)

        logging.info(f'Loaded {len(transactions)} of {len(raw)} stored transactions.')
        return transactions

    async def save_all(self, transactions: list[Transaction]) -> None:
        """Write the full transaction list, retrying once on failure.

        Raises:
            status.PersistenceException: If the write fails on every attempt.
        """
        payload = [t.to_dict() for t in transactions]

        attempt = 0
        while attempt < MAX_WRITE_ATTEMPTS:
            attempt += 1
            try:
                await self.store.set(self.key, payload)
                logging.debug(f'Saved {len(payload)} transactions to "{self.key}".')
                return
            except Exception as ex:
                logging.error(f'Error writing "{self.key}" (attempt {attempt}/{MAX_WRITE_ATTEMPTS}): {ex}')
                if attempt >= MAX_WRITE_ATTEMPTS:
                    raise status.PersistenceException(
                        f'Failed to write "{self.key}" after {MAX_WRITE_ATTEMPTS} attempts: {ex}'
                    ) from ex
                logging.debug('Retrying write...')
