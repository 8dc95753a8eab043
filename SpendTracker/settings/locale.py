"""
Module for formatting decimal, currency and calendar values using Babel.

"""
import datetime
import logging
from typing import List

from babel import Locale, numbers
from babel.core import UnknownLocaleError
from babel.dates import format_date

DEFAULT_LOCALE = 'en_US'

CURRENCY_MAP: dict[str, str] = {
    'US': 'USD',
    'GB': 'GBP',
    'DE': 'EUR',
    'FR': 'EUR',
    'BE': 'EUR',
    'IT': 'EUR',
    'ES': 'EUR',
    'JP': 'JPY',
    'CA': 'CAD',
    'AU': 'AUD',
    'IN': 'INR',
    'BR': 'BRL',
    'DK': 'DKK',
    'SE': 'SEK',
    'NO': 'NOK',
    'FI': 'EUR',
    'HU': 'HUF',
    'MX': 'MXN',
    'NL': 'EUR',
}

LOCALE_MAP: List[str] = [
    "en_US",
    "en_GB",
    "de_DE",
    "es_ES",
    "hu_HU",
    "da_DK",
    "en_AU",
    "en_CA",
    "en_IN",
    "es_MX",
    "fi_FI",
    "fr_BE",
    "fr_FR",
    "it_IT",
    "ja_JP",
    "nb_NO",
    "nl_NL",
    "pt_BR",
    "sv_SE",
]


def conform_locale(locale: str) -> str:
    """Return ``locale`` when it is supported, the default locale otherwise."""
    if locale in LOCALE_MAP:
        return locale
    logging.debug(f'Unsupported locale "{locale}", using "{DEFAULT_LOCALE}".')
    return DEFAULT_LOCALE


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: Currency code such as 'EUR'. Defaults to 'USD' if the territory is unknown.
    """
    parts = locale.split('_')
    if len(parts) < 2:
        return 'USD'
    country_code = parts[1]
    return CURRENCY_MAP.get(country_code, 'USD')


def format_float(value: float, locale: str) -> str:
    """
    Format a float as a decimal string according to the locale conventions.

    Args:
        value (float): The numeric value to be formatted.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted decimal string.
    """
    try:
        locale_obj = Locale.parse(locale)
        return numbers.format_decimal(value, locale=locale_obj)
    except (ValueError, UnknownLocaleError) as e:
        logging.debug(f'Error formatting float: {e}')
        return str(value)


def format_currency_value(value: float, locale: str) -> str:
    """
    Format a float as a currency string based on the locale's default currency.

    The default currency is determined by the territory extracted from the locale.

    Args:
        value (float): The numeric value to be formatted.
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: The formatted currency string.
    """
    try:
        currency_code = get_currency_from_locale(locale)
        locale_obj = Locale.parse(locale)
        return numbers.format_currency(value, currency=currency_code, locale=locale_obj)
    except (ValueError, UnknownLocaleError) as e:
        logging.debug(f'Error formatting currency: {e}')
        return str(value)


def weekday_abbreviation(value: datetime.date, locale: str = DEFAULT_LOCALE) -> str:
    """Return the abbreviated weekday name of ``value``, e.g. 'Mon'."""
    return format_date(value, 'EEE', locale=conform_locale(locale))


def month_abbreviation(value: datetime.date, locale: str = DEFAULT_LOCALE) -> str:
    """Return the abbreviated month name of ``value``, e.g. 'Jan'."""
    return format_date(value, 'MMM', locale=conform_locale(locale))
