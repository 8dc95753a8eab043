# tests/test_data.py
"""
Unit tests for SpendTracker.data.data
(covers the filter pipeline, the stable sort and aggregation).

Run with:
    python -m unittest tests.test_data
"""
import math
import random
import unittest

from tests.base import NOW, make_transaction
from SpendTracker.data import daterange
from SpendTracker.data.data import (
    aggregate,
    category_breakdown,
    filter_transactions,
    sort_transactions,
    top_categories,
)
from SpendTracker.data.model import ALL_CATEGORIES, DateRangeToken, SortKey, Transaction

LAST_30 = daterange.resolve(DateRangeToken.Last30Days, NOW)


def ids(transactions: list[Transaction]) -> list[str]:
    return [t.id for t in transactions]


class FilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.transactions = [
            make_transaction('a', 20, 'Food', days_ago=0, description='Lunch'),
            make_transaction('b', 30, 'Transport', days_ago=8, description='Taxi to airport'),
            make_transaction('c', 5, 'Food', days_ago=40, description='Coffee'),
            make_transaction('d', 12, 'Entertainment', days_ago=2, description='Cinema'),
            make_transaction('e', 7, 'Transport', days_ago=1),
        ]

    def test_date_range_scenario(self):
        transactions = [
            make_transaction('today', 20, 'Food', days_ago=0),
            make_transaction('old', 30, 'Transport', days_ago=8),
        ]
        r = daterange.resolve(DateRangeToken.Last7Days, NOW)
        result = filter_transactions(transactions, r)
        self.assertEqual(ids(result), ['today'])
        self.assertEqual(aggregate(result, r.days).total_amount, 20)

    def test_date_range_keeps_input_order(self):
        result = filter_transactions(self.transactions, LAST_30)
        self.assertEqual(ids(result), ['a', 'b', 'd', 'e'])

    def test_category_filter(self):
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, 'Transport')), ['b', 'e'])
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, 'Health')), [])

    def test_all_categories_sentinel(self):
        expected = ids(filter_transactions(self.transactions, LAST_30))
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, ALL_CATEGORIES)), expected)
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, None)), expected)

    def test_search_matches_description_or_category(self):
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, search_text='LUNCH')), ['a'])
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, search_text='port')), ['b', 'e'])

    def test_search_treats_text_literally(self):
        self.assertEqual(filter_transactions(self.transactions, LAST_30, search_text='.*'), [])

    def test_empty_search_is_skipped(self):
        expected = ids(filter_transactions(self.transactions, LAST_30))
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, search_text='')), expected)
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, search_text=None)), expected)

    def test_whitespace_search_is_a_literal_needle(self):
        self.assertEqual(ids(filter_transactions(self.transactions, LAST_30, search_text=' ')), ['b'])
        self.assertEqual(filter_transactions(self.transactions, LAST_30, search_text='   '), [])

    def test_predicates_combine(self):
        result = filter_transactions(self.transactions, LAST_30, 'Transport', 'taxi')
        self.assertEqual(ids(result), ['b'])

    def test_empty_input(self):
        self.assertEqual(filter_transactions([], LAST_30, 'Food', 'x'), [])


class SortTests(unittest.TestCase):
    def test_amount_sort_is_stable(self):
        transactions = [
            make_transaction('A', 10),
            make_transaction('B', 50),
            make_transaction('C', 10),
        ]
        self.assertEqual(ids(sort_transactions(transactions, SortKey.Amount)), ['B', 'A', 'C'])

    def test_date_sort_is_most_recent_first(self):
        transactions = [
            make_transaction('old', days_ago=5),
            make_transaction('new', days_ago=0),
            make_transaction('mid', days_ago=2),
            make_transaction('mid2', days_ago=2),
        ]
        self.assertEqual(ids(sort_transactions(transactions, SortKey.Date)), ['new', 'mid', 'mid2', 'old'])

    def test_category_sort_is_case_insensitive(self):
        transactions = [
            make_transaction('1', category='transport'),
            make_transaction('2', category='Bills'),
            make_transaction('3', category='food'),
            make_transaction('4', category='Bills'),
        ]
        self.assertEqual(ids(sort_transactions(transactions, SortKey.Category)), ['2', '4', '3', '1'])

    def test_name_sort_falls_back_to_category(self):
        transactions = [
            make_transaction('1', category='Food', description='zoo ticket'),
            make_transaction('2', category='Bills', description=''),
            make_transaction('3', category='Food', description='Apples'),
        ]
        self.assertEqual(ids(sort_transactions(transactions, SortKey.Name)), ['3', '2', '1'])

    def test_unparseable_amount_sorts_as_zero(self):
        transactions = [
            make_transaction('bad', amount='n/a'),  # type: ignore[arg-type]
            make_transaction('one', amount=1),
        ]
        self.assertEqual(ids(sort_transactions(transactions, SortKey.Amount)), ['one', 'bad'])

    def test_unrecognized_key_sorts_by_date(self):
        transactions = [make_transaction('old', days_ago=3), make_transaction('new', days_ago=0)]
        self.assertEqual(ids(sort_transactions(transactions, 'Colour')), ['new', 'old'])

    def test_sort_returns_new_list(self):
        transactions = [make_transaction('a', 1), make_transaction('b', 2)]
        result = sort_transactions(transactions, SortKey.Amount)
        self.assertEqual(ids(transactions), ['a', 'b'])
        self.assertEqual(ids(result), ['b', 'a'])

    def test_sort_is_deterministic(self):
        rng = random.Random(7)
        transactions = [
            make_transaction(str(i), rng.choice([5, 10, 15]), rng.choice(['Food', 'Bills']), rng.randint(0, 3))
            for i in range(40)
        ]
        for key in SortKey:
            with self.subTest(key=key):
                self.assertEqual(
                    ids(sort_transactions(transactions, key)),
                    ids(sort_transactions(list(transactions), key)),
                )


class AggregateTests(unittest.TestCase):
    def test_empty(self):
        result = aggregate([], 7)
        self.assertEqual(result.total_amount, 0.0)
        self.assertEqual(result.category_totals, {})
        self.assertIsNone(result.most_spent_category)
        self.assertEqual(result.avg_daily_spending, 0.0)

    def test_totals_and_average(self):
        transactions = [
            make_transaction('1', 10, 'Food'),
            make_transaction('2', 25, 'Bills'),
            make_transaction('3', 5.5, 'Food'),
        ]
        result = aggregate(transactions, 7)
        self.assertAlmostEqual(result.total_amount, 40.5)
        self.assertEqual(list(result.category_totals), ['Food', 'Bills'])
        self.assertAlmostEqual(result.category_totals['Food'], 15.5)
        self.assertEqual(result.most_spent_category, 'Bills')
        self.assertEqual(result.most_spent_amount, 25)
        self.assertAlmostEqual(result.avg_daily_spending, 40.5 / 7)

    def test_days_floor(self):
        result = aggregate([make_transaction('1', 10)], 0)
        self.assertEqual(result.avg_daily_spending, 10)

    def test_tie_goes_to_first_encountered(self):
        transactions = [
            make_transaction('1', 10, 'Transport'),
            make_transaction('2', 10, 'Food'),
        ]
        self.assertEqual(aggregate(transactions).most_spent_category, 'Transport')

    def test_category_totals_sum_to_total(self):
        rng = random.Random(11)
        categories = ['Food', 'Bills', 'Health', 'Other']
        transactions = [
            make_transaction(str(i), round(rng.uniform(0, 500), 2), rng.choice(categories))
            for i in range(200)
        ]
        result = aggregate(transactions, 30)
        self.assertTrue(math.isclose(sum(result.category_totals.values()), result.total_amount, rel_tol=1e-6))

    def test_category_breakdown(self):
        rows = category_breakdown({'Food': 30.0, 'Bills': 10.0}, 40.0)
        self.assertEqual(rows, [('Food', 30.0, 75), ('Bills', 10.0, 25)])
        self.assertEqual(category_breakdown({'Food': 0.0}, 0.0), [('Food', 0.0, 0)])

    def test_top_categories(self):
        totals = {'A': 5.0, 'B': 20.0, 'C': 5.0, 'D': 1.0, 'E': 8.0}
        self.assertEqual(top_categories(totals), [('B', 20.0), ('E', 8.0), ('A', 5.0), ('C', 5.0)])
        self.assertEqual(top_categories(totals, 1), [('B', 20.0)])
        self.assertEqual(top_categories({}), [])


if __name__ == '__main__':
    unittest.main()
