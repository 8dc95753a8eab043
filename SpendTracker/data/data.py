"""Transaction filtering, sorting and aggregation.

This module provides the engine behind the transaction list and the analytics summary:

- :func:`filter_transactions` applies the date-range, category and search predicates, in that
  order, keeping the input order of the surviving records.
- :func:`sort_transactions` orders records by a :class:`~SpendTracker.data.model.SortKey` using a
  stable sort.
- :func:`aggregate` computes the grand total, per-category totals and derived metrics of a
  period-scoped list.

Records are projected into a :class:`pandas.DataFrame` indexed by input position, so every step
can map its result back onto the original :class:`~SpendTracker.data.model.Transaction` objects.
"""
import dataclasses
import logging
from typing import Any, Optional

import pandas as pd

from . import daterange
from .model import (
    SortKey,
    Transaction,
    from_frame,
    is_all_categories,
    to_frame,
)


@dataclasses.dataclass
class Aggregates:
    """Totals of a period-scoped list of transactions."""
    total_amount: float = 0.0
    category_totals: dict[str, float] = dataclasses.field(default_factory=dict)
    most_spent_category: Optional[str] = None
    most_spent_amount: float = 0.0
    avg_daily_spending: float = 0.0


def _conform_date_range(df: pd.DataFrame, date_range: daterange.DateRange) -> pd.DataFrame:
    """Keep rows whose 'occurred_at' falls within the inclusive range."""
    mask = (df['occurred_at'] >= pd.Timestamp(date_range.start)) & (
            df['occurred_at'] <= pd.Timestamp(date_range.end))
    return df[mask]


def _conform_category(df: pd.DataFrame, category: Optional[str]) -> pd.DataFrame:
    """Keep rows of a single category. The all-categories sentinel keeps every row."""
    if is_all_categories(category):
        return df
    return df[df['category'] == category]


def _conform_search(df: pd.DataFrame, search_text: Optional[str]) -> pd.DataFrame:
    """Keep rows whose description or category contains the search text, ignoring case."""
    if not search_text:
        return df
    needle = search_text.lower()
    description = df['description'].fillna('').astype(str).str.lower()
    category = df['category'].fillna('').astype(str).str.lower()
    mask = description.str.contains(needle, regex=False) | category.str.contains(needle, regex=False)
    return df[mask]


def filter_transactions(
        transactions: list[Transaction],
        date_range: daterange.DateRange,
        category: Optional[str] = None,
        search_text: Optional[str] = '',
) -> list[Transaction]:
    """Apply the date-range, category and search predicates.

    The predicates always run in that order. Surviving records keep their relative input order.

    Args:
        transactions: Records to filter.
        date_range: Resolved inclusive interval.
        category: A category name, or the all-categories sentinel / None to skip the predicate.
        search_text: Case-insensitive substring matched against description or category. Empty
            text skips the predicate.

    Returns:
        list[Transaction]: The surviving records.
    """
    if not transactions:
        return []

    df = (
        to_frame(transactions)
        .pipe(_conform_date_range, date_range)
        .pipe(_conform_category, category)
        .pipe(_conform_search, search_text)
    )
    logging.debug(f'Filtered {len(transactions)} transactions down to {len(df)}.')
    return from_frame(df, transactions)


def _name_key(df: pd.DataFrame) -> pd.Series:
    description = df['description'].fillna('').astype(str)
    category = df['category'].fillna('').astype(str)
    return description.where(description != '', category).str.lower()


def sort_transactions(transactions: list[Transaction], sort_key: Any = SortKey.Date) -> list[Transaction]:
    """Return a new list ordered by ``sort_key``.

    The sort is stable: records with equal keys keep their relative input order.

    - Date: most recent first.
    - Amount: largest first; unparseable amounts sort as 0.
    - Category: ascending, case-insensitive.
    - Name: ascending, case-insensitive on the description, or the category when the description
      is empty.

    Unrecognized keys sort by Date.
    """
    if not transactions:
        return []

    sort_key = SortKey.from_value(sort_key)
    df = to_frame(transactions)

    match sort_key:
        case SortKey.Amount:
            df['__key'] = df['amount']
            ascending = False
        case SortKey.Category:
            df['__key'] = df['category'].fillna('').astype(str).str.lower()
            ascending = True
        case SortKey.Name:
            df['__key'] = _name_key(df)
            ascending = True
        case _:
            df['__key'] = df['occurred_at']
            ascending = False

    df = df.sort_values('__key', ascending=ascending, kind='stable')
    return from_frame(df, transactions)


def aggregate(transactions: list[Transaction], days: int = 1) -> Aggregates:
    """Compute totals and derived metrics of a period-scoped list.

    Category totals keep the order in which categories are first encountered. The most spent
    category is the one with the largest total; ties go to the category encountered first.

    Args:
        transactions: Records already scoped to the analytics period.
        days: Number of days of the period. Floored at 1.

    Returns:
        Aggregates: The computed totals.
    """
    days = max(int(days or 1), 1)
    if not transactions:
        return Aggregates()

    df = to_frame(transactions)
    totals = df.groupby('category', sort=False)['amount'].sum()
    total_amount = float(df['amount'].sum())

    most_spent = totals.idxmax()
    return Aggregates(
        total_amount=total_amount,
        category_totals={str(k): float(v) for k, v in totals.items()},
        most_spent_category=str(most_spent),
        most_spent_amount=float(totals[most_spent]),
        avg_daily_spending=total_amount / days,
    )


def category_breakdown(category_totals: dict[str, float], total_amount: float) -> list[tuple[str, float, int]]:
    """Return ``(category, amount, percentage)`` rows for a pie chart.

    Percentages are rounded to whole numbers and are 0 when the total is 0.
    """
    rows = []
    for category, amount in category_totals.items():
        percentage = round(amount / total_amount * 100) if total_amount > 0 else 0
        rows.append((category, amount, int(percentage)))
    return rows


def top_categories(category_totals: dict[str, float], n: int = 4) -> list[tuple[str, float]]:
    """Return the ``n`` largest categories, largest first, ties in first-encountered order."""
    if not category_totals:
        return []
    series = pd.Series(category_totals, dtype=float)
    series = series.sort_values(ascending=False, kind='stable')
    return [(str(k), float(v)) for k, v in series.head(max(n, 0)).items()]
