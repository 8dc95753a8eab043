"""Resolution of period tokens and custom date pairs into inclusive, day-aligned intervals.

All functions here are pure given their ``now`` argument.
"""
import datetime
import logging
from typing import Any, Mapping, NamedTuple

from .model import AnalyticsPeriod, CustomRange, DateRangeToken, parse_occurred_at

END_OF_DAY = datetime.time(23, 59, 59, 999000)

PERIOD_LABELS = {
    AnalyticsPeriod.Day: 'Today',
    AnalyticsPeriod.Week: 'This Week',
    AnalyticsPeriod.Month: 'This Month',
    AnalyticsPeriod.Quarter: 'Last 3 Months',
    AnalyticsPeriod.Year: 'This Year',
}


class DateRange(NamedTuple):
    """An inclusive interval from the start of one calendar day to the end of another."""
    start: datetime.datetime
    end: datetime.datetime
    days: int

    def contains(self, value: datetime.datetime) -> bool:
        return self.start <= value <= self.end


def start_of_day(value: datetime.date) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        value = value.date()
    return datetime.datetime.combine(value, datetime.time.min)


def end_of_day(value: datetime.date) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        value = value.date()
    return datetime.datetime.combine(value, END_OF_DAY)


def day_count(start: datetime.date, end: datetime.date) -> int:
    """Number of calendar days covered by ``start``..``end`` inclusive, at least 1."""
    if isinstance(start, datetime.datetime):
        start = start.date()
    if isinstance(end, datetime.datetime):
        end = end.date()
    return max((end - start).days + 1, 1)


def make_range(start: datetime.date, end: datetime.date) -> DateRange:
    """Build a day-aligned range, swapping a reversed pair."""
    if isinstance(start, datetime.datetime):
        start = start.date()
    if isinstance(end, datetime.datetime):
        end = end.date()
    if start > end:
        logging.debug(f'Reversed date range {start} > {end}, swapping.')
        start, end = end, start
    return DateRange(start_of_day(start), end_of_day(end), day_count(start, end))


def custom_pair(value: Any):
    if isinstance(value, CustomRange):
        return value.start, value.end
    if isinstance(value, tuple) and len(value) == 2:
        return value
    if isinstance(value, Mapping):
        start = value.get('start', value.get('startDate'))
        end = value.get('end', value.get('endDate'))
        if start is not None and end is not None:
            return start, end
    return None


def resolve(value: Any, now: datetime.datetime) -> DateRange:
    """Resolve a date-range token or custom pair into a :class:`DateRange`.

    ``Last N Days`` spans from N days before today to today, ``This Year`` from January 1 to
    today. Custom pairs are swapped when reversed. Anything unrecognized resolves as
    ``Last 30 Days``.

    Args:
        value: A :class:`DateRangeToken`, token string, :class:`CustomRange`, ``(start, end)``
            tuple, or a mapping with ``start``/``end`` (or ``startDate``/``endDate``) keys.
        now: The current instant.

    Returns:
        DateRange: The resolved interval.
    """
    pair = custom_pair(value)
    if pair is not None:
        start = parse_occurred_at(pair[0], now)
        end = parse_occurred_at(pair[1], now)
        return make_range(start, end)

    token = DateRangeToken.from_value(value)
    today = now.date()
    if token is DateRangeToken.ThisYear:
        return make_range(datetime.date(today.year, 1, 1), today)
    return make_range(today - datetime.timedelta(days=token.days), today)


def _add_months(value: datetime.date, months: int) -> datetime.date:
    month_index = value.year * 12 + (value.month - 1) + months
    return datetime.date(month_index // 12, month_index % 12 + 1, 1)


def resolve_period(period: Any, now: datetime.datetime) -> DateRange:
    """Resolve an :class:`AnalyticsPeriod` into the range its analytics cover.

    Day is today, Week the 7 days ending today, Month the current month to date, Quarter the
    current and two previous calendar months, and Year the current year to date.
    """
    period = AnalyticsPeriod.from_value(period)
    today = now.date()

    match period:
        case AnalyticsPeriod.Day:
            return make_range(today, today)
        case AnalyticsPeriod.Week:
            return make_range(today - datetime.timedelta(days=6), today)
        case AnalyticsPeriod.Month:
            return make_range(today.replace(day=1), today)
        case AnalyticsPeriod.Quarter:
            return make_range(_add_months(today, -2), today)
        case AnalyticsPeriod.Year:
            return make_range(datetime.date(today.year, 1, 1), today)


def period_label(period: Any) -> str:
    """Return the display label of an analytics period."""
    return PERIOD_LABELS[AnalyticsPeriod.from_value(period)]
