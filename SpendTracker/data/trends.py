"""Chart-ready time-series bucketing of period-scoped transactions.

Each :class:`~SpendTracker.data.model.AnalyticsPeriod` has its own bucketing:

- Day: four 6-hour buckets of the day.
- Week: one bucket per calendar day of the range, labeled by weekday.
- Month: about five buckets of ``ceil(days / 5)`` days walking from the range start, labeled by
  the day of month they start on. The trailing bucket may be shorter.
- Quarter: one bucket per calendar month of the range, labeled by month.
- Year: twelve buckets, one per month of the current year.

Buckets hold raw sums. Rounding to whole currency units is a display concern, see
:meth:`TimeSeries.rounded`.
"""
import dataclasses
import datetime
import logging
import math
from typing import Any, Optional

import pandas as pd

from . import daterange
from .model import AnalyticsPeriod, Transaction, to_frame
from ..settings import locale as _locale

HOUR_LABELS = ['12AM', '6AM', '12PM', '6PM']
HOURS_PER_BUCKET = 6
MONTH_TARGET_LABELS = 5


@dataclasses.dataclass
class TimeSeries:
    """Labeled bucket values. ``labels`` and ``series`` always have the same length."""
    labels: list[str] = dataclasses.field(default_factory=list)
    series: list[float] = dataclasses.field(default_factory=list)

    def __post_init__(self):
        if len(self.labels) != len(self.series):
            raise ValueError(
                f'Label count {len(self.labels)} does not match value count {len(self.series)}.')

    def total(self) -> float:
        return float(sum(self.series))

    def rounded(self) -> 'TimeSeries':
        """Return a copy with values rounded to whole currency units, for chart display only."""
        return TimeSeries(list(self.labels), [float(round(v)) for v in self.series])

    def to_dict(self) -> dict[str, list]:
        return {'labels': list(self.labels), 'series': list(self.series)}


def _sums(df: pd.DataFrame, keys: pd.Series, index) -> list[float]:
    sums = df.groupby(keys)['amount'].sum().reindex(index, fill_value=0.0)
    return [float(v) for v in sums.values]


def _by_hour(df: pd.DataFrame, date_range: daterange.DateRange, now, locale) -> TimeSeries:
    keys = df['occurred_at'].dt.hour // HOURS_PER_BUCKET
    return TimeSeries(list(HOUR_LABELS), _sums(df, keys, range(len(HOUR_LABELS))))


def _by_weekday(df: pd.DataFrame, date_range: daterange.DateRange, now, locale) -> TimeSeries:
    days = pd.date_range(
        pd.Timestamp(date_range.start).normalize(),
        pd.Timestamp(date_range.end).normalize(),
        freq='D'
    )
    keys = df['occurred_at'].dt.normalize()
    labels = [_locale.weekday_abbreviation(d.date(), locale) for d in days]
    return TimeSeries(labels, _sums(df, keys, days))


def _by_interval(df: pd.DataFrame, date_range: daterange.DateRange, now, locale) -> TimeSeries:
    interval = max(math.ceil(date_range.days / MONTH_TARGET_LABELS), 1)
    count = math.ceil(date_range.days / interval)
    start = date_range.start.date()

    offsets = (df['occurred_at'].dt.normalize() - pd.Timestamp(start)).dt.days
    keys = offsets // interval
    labels = [str((start + datetime.timedelta(days=i * interval)).day) for i in range(count)]
    return TimeSeries(labels, _sums(df, keys, range(count)))


def _by_month(df: pd.DataFrame, date_range: daterange.DateRange, now, locale) -> TimeSeries:
    months = pd.period_range(pd.Timestamp(date_range.start), pd.Timestamp(date_range.end), freq='M')
    keys = df['occurred_at'].dt.to_period('M')
    labels = [_locale.month_abbreviation(p.start_time.date(), locale) for p in months]
    return TimeSeries(labels, _sums(df, keys, months))


def _by_month_of_year(df: pd.DataFrame, date_range: daterange.DateRange, now, locale) -> TimeSeries:
    year = now.year
    df = df[df['occurred_at'].dt.year == year]
    keys = df['occurred_at'].dt.month
    labels = [_locale.month_abbreviation(datetime.date(year, m, 1), locale) for m in range(1, 13)]
    return TimeSeries(labels, _sums(df, keys, range(1, 13)))


BUCKETERS = {
    AnalyticsPeriod.Day: _by_hour,
    AnalyticsPeriod.Week: _by_weekday,
    AnalyticsPeriod.Month: _by_interval,
    AnalyticsPeriod.Quarter: _by_month,
    AnalyticsPeriod.Year: _by_month_of_year,
}


def bucket_transactions(
        transactions: list[Transaction],
        period: Any,
        date_range: Optional[daterange.DateRange] = None,
        now: Optional[datetime.datetime] = None,
        locale: str = 'en_US',
) -> TimeSeries:
    """Partition transactions into labeled buckets sized to the analytics period.

    Args:
        transactions: Records to bucket. Records outside ``date_range`` are ignored.
        period: The :class:`AnalyticsPeriod` deciding the bucketing.
        date_range: Range the buckets cover. Defaults to the period's own range.
        now: The current instant. Defaults to the system clock.
        locale: Locale used for weekday and month labels.

    Returns:
        TimeSeries: Bucket labels and raw sums.
    """
    period = AnalyticsPeriod.from_value(period)
    now = now or datetime.datetime.now()
    if date_range is None:
        date_range = daterange.resolve_period(period, now)

    df = to_frame(transactions)
    mask = (df['occurred_at'] >= pd.Timestamp(date_range.start)) & (
            df['occurred_at'] <= pd.Timestamp(date_range.end))
    df = df[mask]

    series = BUCKETERS[period](df, date_range, now, locale)
    logging.debug(f'Bucketed {len(df)} transactions into {len(series.labels)} {period.name} buckets.')
    return series
