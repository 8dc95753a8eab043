"""Transaction record, closed token types and per-field defaulting.

Every field of a :class:`Transaction` has exactly one defaulting function in this module. The
coordinator, the storage layer and the engine all go through these instead of defaulting values
ad hoc.
"""
import dataclasses
import datetime
import enum
import logging
import math
import uuid
from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd

from ..status import status

ALL_CATEGORIES: str = 'All Categories'
FALLBACK_CATEGORY: str = 'Other'

FRAME_COLUMNS = ['id', 'amount', 'category', 'description', 'occurred_at']


class Category(enum.StrEnum):
    """Default category catalog, in display order."""
    Food = 'Food'
    Transport = 'Transport'
    Shopping = 'Shopping'
    Entertainment = 'Entertainment'
    Bills = 'Bills'
    Health = 'Health'
    Education = 'Education'
    Other = 'Other'


class _Token(enum.StrEnum):
    """Closed string token with an explicit fallback for unrecognized values."""

    @classmethod
    def default(cls):
        raise NotImplementedError

    @classmethod
    def from_value(cls, value: Any):
        """Map a member, a member value or a member name to a member.

        Unrecognized or missing values fall back to :meth:`default` with a logged warning.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value == member.value or value == member.name:
                    return member
            normalized = value.strip().lower().replace('-', ' ').replace('_', ' ')
            for member in cls:
                if normalized in (member.value.lower(), member.name.lower()):
                    return member
        fallback = cls.default()
        logging.warning(f'Unrecognized {cls.__name__} "{value}", using "{fallback}".')
        return fallback


class DateRangeToken(_Token):
    Last7Days = 'Last 7 Days'
    Last30Days = 'Last 30 Days'
    Last90Days = 'Last 90 Days'
    ThisYear = 'This Year'

    @classmethod
    def default(cls):
        return cls.Last30Days

    @property
    def days(self) -> Optional[int]:
        """Number of days looked back, or None for calendar-anchored tokens."""
        return {
            DateRangeToken.Last7Days: 7,
            DateRangeToken.Last30Days: 30,
            DateRangeToken.Last90Days: 90,
        }.get(self)


class SortKey(_Token):
    Date = 'Date'
    Amount = 'Amount'
    Category = 'Category'
    Name = 'Name'

    @classmethod
    def default(cls):
        return cls.Date


class AnalyticsPeriod(_Token):
    Day = 'Day'
    Week = 'Week'
    Month = 'Month'
    Quarter = '3M'
    Year = 'Year'

    @classmethod
    def default(cls):
        return cls.Week


@dataclasses.dataclass(frozen=True)
class CustomRange:
    """An explicit date pair used in place of a :class:`DateRangeToken`.

    The pair may be reversed; resolution swaps it.
    """
    start: datetime.datetime
    end: datetime.datetime


DateRangeValue = Union[DateRangeToken, CustomRange, str, tuple, Mapping, None]


class CategoryCatalog:
    """Ordered, closed list of category names.

    The fallback category is always part of the catalog.
    """

    def __init__(self, names: Optional[Iterable[str]] = None) -> None:
        names = list(names) if names is not None else [c.value for c in Category]
        seen = []
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise status.CategoriesInvalidException(f'Invalid category name: {name!r}')
            if name not in seen:
                seen.append(name)
        if FALLBACK_CATEGORY not in seen:
            seen.append(FALLBACK_CATEGORY)
        self._names = tuple(seen)

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def choices(self) -> list[str]:
        """Return the filter choices, the all-categories sentinel first."""
        return [ALL_CATEGORIES, *self._names]

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self):
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f'CategoryCatalog({list(self._names)!r})'


def new_id() -> str:
    """Return a fresh unique transaction id."""
    return uuid.uuid4().hex


def parse_amount(value: Any) -> float:
    """Leniently convert a raw amount to float.

    None, empty, non-numeric, NaN and infinite values become ``0.0``.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        logging.debug(f'Failed to parse "{value}" as an amount. Using 0.0.')
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def validate_amount(value: Any) -> float:
    """Strictly convert an amount supplied by a caller.

    A missing amount defaults to ``0.0``.

    Raises:
        status.ValidationException: If the value is not numeric, not finite, or negative.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise status.ValidationException(f'Amount must be numeric, got {value!r}.')
    try:
        amount = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as ex:
        raise status.ValidationException(f'Amount must be numeric, got {value!r}.') from ex
    if not math.isfinite(amount):
        raise status.ValidationException(f'Amount must be finite, got {value!r}.')
    if amount < 0:
        raise status.ValidationException(f'Amount must not be negative, got {value!r}.')
    return amount


def to_local(value: datetime.datetime) -> datetime.datetime:
    """Convert an aware datetime to naive local time. Naive values are returned as-is."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_occurred_at(value: Any, now: datetime.datetime) -> datetime.datetime:
    """Convert a raw date to a naive local datetime.

    None defaults to ``now`` in local time. Dates become midnight of that day, ISO-8601 strings are parsed.

    Raises:
        status.ValidationException: If the value cannot be interpreted as a date.
    """
    if value is None:
        return to_local(now)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime.datetime):
        return to_local(value)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    if isinstance(value, str) and value.strip():
        try:
            return to_local(datetime.datetime.fromisoformat(value.strip()))
        except ValueError as ex:
            raise status.ValidationException(f'Malformed date: {value!r}.') from ex
    raise status.ValidationException(f'Malformed date: {value!r}.')


def normalize_category(value: Any, catalog: Optional[CategoryCatalog] = None) -> str:
    """Map a raw category to a catalog member, falling back to ``Other``."""
    catalog = catalog or DEFAULT_CATALOG
    if value in catalog:
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        for name in catalog:
            if name.lower() == lowered:
                return name
    if value not in (None, ''):
        logging.debug(f'Unknown category "{value}", using "{FALLBACK_CATEGORY}".')
    return FALLBACK_CATEGORY


def normalize_description(value: Any) -> str:
    """Return the description as a stripped string, empty when absent."""
    if value is None:
        return ''
    return str(value).strip()


@dataclasses.dataclass(frozen=True)
class Transaction:
    """A single financial entry.

    Instances are immutable; updates produce a new record carrying the same ``id``.
    """
    id: str
    amount: float
    category: str
    occurred_at: datetime.datetime
    description: str = ''

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage, with the date as an ISO-8601 string."""
        return {
            'id': self.id,
            'amount': self.amount,
            'category': self.category,
            'description': self.description,
            'date': self.occurred_at.isoformat(),
        }

    @classmethod
    def from_dict(
            cls,
            data: Mapping[str, Any],
            catalog: Optional[CategoryCatalog] = None,
            now: Optional[datetime.datetime] = None,
    ) -> 'Transaction':
        """Build a record from stored data, repairing what can be repaired.

        A missing id is regenerated, an unparseable amount becomes ``0.0`` and an unknown
        category becomes ``Other``.

        Raises:
            status.ValidationException: If the date is missing or malformed.
        """
        raw_date = data.get('date', data.get('occurred_at'))
        if raw_date is None:
            raise status.ValidationException(f'Stored transaction {data.get("id")!r} has no date.')
        occurred_at = parse_occurred_at(raw_date, now or datetime.datetime.now())

        _id = data.get('id')
        if not _id:
            _id = new_id()
            logging.warning(f'Stored transaction without id, assigned "{_id}".')

        return cls(
            id=str(_id),
            amount=parse_amount(data.get('amount')),
            category=normalize_category(data.get('category'), catalog),
            occurred_at=occurred_at,
            description=normalize_description(data.get('description')),
        )


@dataclasses.dataclass
class ViewState:
    """The user's current list and analytics selections."""
    category_filter: Optional[str] = ALL_CATEGORIES
    search_text: str = ''
    date_range: DateRangeValue = DateRangeToken.Last30Days
    sort_key: SortKey = SortKey.Date
    analytics_period: AnalyticsPeriod = AnalyticsPeriod.Week


def is_all_categories(value: Optional[str]) -> bool:
    return value is None or value == '' or value == ALL_CATEGORIES


def to_frame(transactions: list[Transaction]) -> pd.DataFrame:
    """Project records into a DataFrame indexed by their position in ``transactions``."""
    if not transactions:
        frame = pd.DataFrame(columns=FRAME_COLUMNS)
        frame['amount'] = frame['amount'].astype(float)
        frame['occurred_at'] = pd.to_datetime(frame['occurred_at'])
        return frame

    frame = pd.DataFrame(
        [
            {
                'id': t.id,
                'amount': parse_amount(t.amount),
                'category': t.category if isinstance(t.category, str) else '',
                'description': t.description if isinstance(t.description, str) else '',
                'occurred_at': t.occurred_at,
            }
            for t in transactions
        ],
        columns=FRAME_COLUMNS,
    )
    frame['occurred_at'] = pd.to_datetime(frame['occurred_at'])
    return frame


def from_frame(frame: pd.DataFrame, transactions: list[Transaction]) -> list[Transaction]:
    """Return the records of ``transactions`` selected and ordered by ``frame``'s index."""
    return [transactions[i] for i in frame.index]


DEFAULT_CATALOG = CategoryCatalog()
