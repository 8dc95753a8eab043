# tests/test_storage.py
"""
Unit tests for SpendTracker.core.storage.

Run with:
    python -m unittest tests.test_storage
"""
import json
import pathlib
import shutil
import tempfile
import unittest
from unittest import mock

from tests.base import BaseAsyncTestCase, make_transaction
from SpendTracker.core import storage
from SpendTracker.core.storage import JsonFileStore, MemoryStore, TransactionStorage
from SpendTracker.data.model import CategoryCatalog
from SpendTracker.status import status


class MemoryStoreTests(BaseAsyncTestCase):
    async def test_get_missing_key(self):
        self.assertIsNone(await MemoryStore().get('missing'))

    async def test_values_are_copied(self):
        store = MemoryStore()
        value = [{'id': 'a'}]
        await store.set('k', value)
        value.append({'id': 'b'})
        self.assertEqual(await store.get('k'), [{'id': 'a'}])


class JsonFileStoreTests(BaseAsyncTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tmp_dir = pathlib.Path(tempfile.mkdtemp(prefix='spendtracker_test_'))
        self.path = self.tmp_dir / 'db' / 'transactions.json'

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    async def test_get_before_first_write(self):
        self.assertIsNone(await JsonFileStore(self.path).get('k'))

    async def test_set_and_get(self):
        store = JsonFileStore(self.path)
        await store.set('k', [1, 2])
        await store.set('other', {'a': 1})
        self.assertEqual(await store.get('k'), [1, 2])

        with self.path.open('r', encoding='utf-8') as f:
            self.assertEqual(json.load(f), {'k': [1, 2], 'other': {'a': 1}})

        leftovers = [p for p in self.path.parent.iterdir() if p != self.path]
        self.assertEqual(leftovers, [])

    async def test_malformed_document(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text('[1, 2]', encoding='utf-8')
        with self.assertRaises(ValueError):
            await JsonFileStore(self.path).get('k')


class TransactionStorageTests(BaseAsyncTestCase):
    async def test_load_nothing_stored(self):
        self.assertEqual(await TransactionStorage(MemoryStore()).load_all(), [])

    async def test_round_trip(self):
        transactions = [make_transaction('a', 10, 'Food', description='Lunch'), make_transaction('b', 3, 'Bills')]
        ts = TransactionStorage(MemoryStore(), 'k')
        await ts.save_all(transactions)
        self.assertEqual(await ts.load_all(), transactions)

    async def test_load_json_string(self):
        raw = json.dumps([make_transaction('a').to_dict()])
        ts = TransactionStorage(MemoryStore({'k': raw}), 'k')
        self.assertEqual([t.id for t in await ts.load_all()], ['a'])

    async def test_load_repairs_and_drops_records(self):
        raw = [
            {'id': 'a', 'amount': 'abc', 'category': 'Food', 'date': '2024-03-01T10:00:00'},
            {'amount': 5, 'category': 'Groceries', 'date': '2024-03-02T10:00:00'},
            {'id': 'c', 'amount': 5, 'category': 'Food', 'date': 'not a date'},
            {'id': 'd', 'amount': 5, 'category': 'Food'},
            'garbage',
            {'id': 'a', 'amount': 1, 'category': 'Bills', 'date': '2024-03-03T10:00:00'},
        ]
        ts = TransactionStorage(MemoryStore({'k': raw}), 'k')
        loaded = await ts.load_all()

        self.assertEqual(len(loaded), 3)
        self.assertEqual(loaded[0].id, 'a')
        self.assertEqual(loaded[0].amount, 0.0)
        self.assertTrue(loaded[1].id)
        self.assertEqual(loaded[1].category, 'Other')
        self.assertNotEqual(loaded[2].id, 'a')
        self.assertEqual(len({t.id for t in loaded}), 3)

    async def test_load_uses_catalog(self):
        raw = [{'id': 'a', 'amount': 1, 'category': 'Rent', 'date': '2024-03-01'}]
        ts = TransactionStorage(MemoryStore({'k': raw}), 'k', CategoryCatalog(['Rent']))
        self.assertEqual((await ts.load_all())[0].category, 'Rent')

    async def test_load_malformed_value(self):
        for raw in ({'not': 'a list'}, '{broken json', 42):
            with self.subTest(raw=raw):
                ts = TransactionStorage(MemoryStore({'k': raw}), 'k')
                with self.assertRaises(status.PersistenceException):
                    await ts.load_all()

    async def test_load_store_failure(self):
        store = MemoryStore()
        with mock.patch.object(store, 'get', side_effect=OSError('disk gone')):
            with self.assertRaises(status.PersistenceException):
                await TransactionStorage(store, 'k').load_all()

    async def test_save_retries_once(self):
        store = MemoryStore()
        original_set = store.set
        calls = []

        async def flaky_set(key, value):
            calls.append(key)
            if len(calls) == 1:
                raise OSError('busy')
            await original_set(key, value)

        with mock.patch.object(store, 'set', side_effect=flaky_set):
            await TransactionStorage(store, 'k').save_all([make_transaction('a')])

        self.assertEqual(len(calls), 2)
        self.assertEqual(len(await store.get('k')), 1)

    async def test_save_raises_after_retry(self):
        store = MemoryStore()
        with mock.patch.object(store, 'set', side_effect=OSError('read-only')) as m:
            with self.assertRaises(status.PersistenceException):
                await TransactionStorage(store, 'k').save_all([make_transaction('a')])
        self.assertEqual(m.call_count, storage.MAX_WRITE_ATTEMPTS)


if __name__ == '__main__':
    unittest.main()
