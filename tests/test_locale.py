# tests/test_locale.py
"""
Unit tests for SpendTracker.settings.locale.

Run with:
    python -m unittest tests.test_locale
"""
import datetime
import unittest

from SpendTracker.settings import locale


class LocaleTests(unittest.TestCase):
    def test_currency_from_locale(self):
        self.assertEqual(locale.get_currency_from_locale('en_GB'), 'GBP')
        self.assertEqual(locale.get_currency_from_locale('de_DE'), 'EUR')
        self.assertEqual(locale.get_currency_from_locale('xx_ZZ'), 'USD')
        self.assertEqual(locale.get_currency_from_locale('en'), 'USD')

    def test_conform_locale(self):
        self.assertEqual(locale.conform_locale('hu_HU'), 'hu_HU')
        self.assertEqual(locale.conform_locale('bogus'), locale.DEFAULT_LOCALE)

    def test_format_currency_value(self):
        self.assertEqual(locale.format_currency_value(1234.5, 'en_US'), '$1,234.50')
        self.assertEqual(locale.format_currency_value(3.0, 'not a locale'), '3.0')

    def test_format_float(self):
        self.assertEqual(locale.format_float(1234.5, 'en_US'), '1,234.5')
        self.assertEqual(locale.format_float(1234.5, 'de_DE'), '1.234,5')

    def test_calendar_abbreviations(self):
        self.assertEqual(locale.weekday_abbreviation(datetime.date(2024, 3, 11)), 'Mon')
        self.assertEqual(locale.month_abbreviation(datetime.date(2024, 9, 1)), 'Sep')
        self.assertEqual(locale.month_abbreviation(datetime.date(2024, 9, 1), 'bogus'), 'Sep')


if __name__ == '__main__':
    unittest.main()
