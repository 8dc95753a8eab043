# tests/test_sample.py
"""
Unit tests for SpendTracker.data.sample.

Run with:
    python -m unittest tests.test_sample
"""
import datetime
import unittest

from tests.base import NOW
from SpendTracker.data.model import CategoryCatalog
from SpendTracker.data.sample import generate_sample_transactions


class SampleTests(unittest.TestCase):
    def test_count_and_order(self):
        transactions = generate_sample_transactions(NOW, count=40, seed=1)
        self.assertEqual(len(transactions), 40)
        dates = [t.occurred_at for t in transactions]
        self.assertEqual(dates, sorted(dates))
        self.assertEqual(len({t.id for t in transactions}), 40)

    def test_dates_within_window(self):
        transactions = generate_sample_transactions(NOW, count=100, days=10, seed=2)
        earliest = NOW - datetime.timedelta(days=10)
        for t in transactions:
            self.assertLessEqual(t.occurred_at, NOW)
            self.assertGreater(t.occurred_at, earliest)
            self.assertGreaterEqual(t.amount, 0)

    def test_seed_is_reproducible(self):
        a = generate_sample_transactions(NOW, count=10, seed=5)
        b = generate_sample_transactions(NOW, count=10, seed=5)
        self.assertEqual(
            [(t.amount, t.category, t.occurred_at, t.description) for t in a],
            [(t.amount, t.category, t.occurred_at, t.description) for t in b],
        )

    def test_custom_catalog(self):
        catalog = CategoryCatalog(['Rent'])
        transactions = generate_sample_transactions(NOW, count=20, seed=3, catalog=catalog)
        self.assertTrue(all(t.category in ('Rent', 'Other') for t in transactions))
        rent = [t for t in transactions if t.category == 'Rent']
        self.assertTrue(all(t.description == 'Rent' for t in rent))

    def test_zero_count(self):
        self.assertEqual(generate_sample_transactions(NOW, count=0), [])


if __name__ == '__main__':
    unittest.main()
