"""The coordinator owns the transaction set and the view state, and keeps the derived views current.

Every state-changing call recomputes what depends on it before returning:

- Records, category filter, search text, date range and sort key feed the filtered and sorted
  transaction list (:meth:`Coordinator.filtered_sorted_view`).
- Records and the analytics period feed the analytics summary (:meth:`Coordinator.analytics_view`).

Observers connect to the Qt signals of the coordinator to be told about recomputed views.

Mutations are coroutines. The in-memory change and the recompute happen first, then the write is
awaited. A failed write is not rolled back: the views stay updated, ``persistenceFailed`` is
emitted and the :class:`~SpendTracker.status.status.PersistenceException` is raised to the caller.

Example:

    .. code-block:: python

        coordinator = Coordinator()
        coordinator.viewChanged.connect(print)
        await coordinator.load()
        await coordinator.add({'amount': '15.5', 'category': 'Food'})
        coordinator.set_sort_key(SortKey.Amount)

"""
import dataclasses
import datetime
import logging
from typing import Any, Callable, Mapping, Optional

from PySide6 import QtCore

from .storage import DEFAULT_STORAGE_KEY, JsonFileStore, MemoryStore, TransactionStorage
from ..data import daterange
from ..data.data import aggregate, category_breakdown, filter_transactions, sort_transactions, top_categories
from ..data.model import (
    ALL_CATEGORIES,
    AnalyticsPeriod,
    CategoryCatalog,
    CustomRange,
    DEFAULT_CATALOG,
    DateRangeToken,
    SortKey,
    Transaction,
    ViewState,
    is_all_categories,
    new_id,
    normalize_category,
    normalize_description,
    parse_amount,
    parse_occurred_at,
    to_local,
    validate_amount,
)
from ..data.sample import generate_sample_transactions
from ..data.trends import TimeSeries, bucket_transactions
from ..settings import locale as _locale
from ..status import status

RECORD_KEYS = ('id', 'amount', 'category', 'description', 'occurred_at')


@dataclasses.dataclass
class AnalyticsView:
    """Aggregates and chart series of the current analytics period."""
    total_amount: float = 0.0
    category_totals: dict[str, float] = dataclasses.field(default_factory=dict)
    most_spent_category: Optional[str] = None
    most_spent_amount: float = 0.0
    avg_daily_spending: float = 0.0
    series: TimeSeries = dataclasses.field(default_factory=TimeSeries)
    period: AnalyticsPeriod = AnalyticsPeriod.Week
    label: str = ''
    date_range: Optional[daterange.DateRange] = None

    def breakdown(self) -> list[tuple[str, float, int]]:
        return category_breakdown(self.category_totals, self.total_amount)

    def top(self, n: int = 4) -> list[tuple[str, float]]:
        return top_categories(self.category_totals, n)

    def describe(self, locale: str = _locale.DEFAULT_LOCALE) -> str:
        """Return a one-line summary, e.g. 'This Week: $20.00 spent, mostly on Food ($20.00).'"""
        if self.most_spent_category is None:
            return f'{self.label}: nothing spent.'
        total = _locale.format_currency_value(self.total_amount, locale)
        most = _locale.format_currency_value(self.most_spent_amount, locale)
        avg = _locale.format_currency_value(self.avg_daily_spending, locale)
        return (
            f'{self.label}: {total} spent, mostly on {self.most_spent_category} ({most}). '
            f'Daily average {avg}.'
        )


def _conform_record(record: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Copy a caller-supplied record or patch, accepting 'date' as an alias of 'occurred_at'.

    Raises:
        status.ValidationException: If the record is not a mapping or has unknown keys.
    """
    if record is None:
        return {}
    if not isinstance(record, Mapping):
        raise status.ValidationException(f'Expected a mapping, got {type(record).__name__}.')

    fields = dict(record)
    if 'date' in fields:
        if 'occurred_at' in fields:
            raise status.ValidationException('Use either "date" or "occurred_at", not both.')
        fields['occurred_at'] = fields.pop('date')

    unknown = sorted(k for k in fields if k not in RECORD_KEYS)
    if unknown:
        raise status.ValidationException(f'Unknown transaction fields: {unknown}')
    return fields


class Coordinator(QtCore.QObject):
    """Owns the transactions and the view state of a ledger.

    Args:
        storage: Persistence collaborator. Defaults to an in-memory store.
        catalog: The category catalog. Defaults to the built-in categories.
        now: Zero-argument callable returning the current time. Aware values are read as local time.
        locale: Locale used for chart labels.
        state: Initial view state.
        parent: Optional Qt parent.
    """
    viewChanged = QtCore.Signal(list)
    analyticsChanged = QtCore.Signal(object)
    transactionsChanged = QtCore.Signal(int)
    persistenceFailed = QtCore.Signal(str)
    loadFinished = QtCore.Signal(bool)

    def __init__(
            self,
            storage: Optional[TransactionStorage] = None,
            catalog: Optional[CategoryCatalog] = None,
            now: Optional[Callable[[], datetime.datetime]] = None,
            locale: str = _locale.DEFAULT_LOCALE,
            state: Optional[ViewState] = None,
            parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent=parent)

        self._catalog: CategoryCatalog = catalog or DEFAULT_CATALOG
        self._storage: TransactionStorage = storage or TransactionStorage(
            MemoryStore(), DEFAULT_STORAGE_KEY, self._catalog)
        self._clock: Callable[[], datetime.datetime] = now or datetime.datetime.now
        self._locale: str = _locale.conform_locale(locale)
        self._state: ViewState = dataclasses.replace(state) if state else ViewState()

        self._transactions: list[Transaction] = []
        self._view: list[Transaction] = []
        self._analytics: AnalyticsView = AnalyticsView()

        self._load_failed: bool = False
        self._is_loading: bool = False

        self.recompute()

    @classmethod
    def from_settings(cls, settings=None, parent: Optional[QtCore.QObject] = None) -> 'Coordinator':
        """Build a coordinator persisting to the configured JSON store.

        Args:
            settings: A :class:`~SpendTracker.settings.lib.SettingsAPI`. Defaults to the
                application settings.
            parent: Optional Qt parent.
        """
        if settings is None:
            from ..settings import lib
            settings = lib.settings

        catalog = settings.category_catalog()
        storage = TransactionStorage(
            JsonFileStore(settings.db_path),
            settings['storage_key'] or DEFAULT_STORAGE_KEY,
            catalog,
        )
        state = ViewState(
            date_range=DateRangeToken.from_value(settings['date_range']),
            sort_key=SortKey.from_value(settings['sort_key']),
            analytics_period=AnalyticsPeriod.from_value(settings['analytics_period']),
        )
        return cls(
            storage=storage,
            catalog=catalog,
            locale=settings['locale'] or _locale.DEFAULT_LOCALE,
            state=state,
            parent=parent,
        )

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def catalog(self) -> CategoryCatalog:
        return self._catalog

    @property
    def state(self) -> ViewState:
        return dataclasses.replace(self._state)

    @property
    def load_failed(self) -> bool:
        """True when the last load failed, as opposed to loading an empty store."""
        return self._load_failed

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def _now(self) -> datetime.datetime:
        return to_local(self._clock())

    # Derived views

    def filtered_sorted_view(self) -> list[Transaction]:
        return list(self._view)

    def filtered_total(self) -> float:
        """Return the total amount of the filtered view."""
        return float(sum(parse_amount(t.amount) for t in self._view))

    def analytics_view(self) -> AnalyticsView:
        return self._analytics

    def recompute(self) -> None:
        """Recompute both derived views from the current state."""
        self._recompute_view()
        self._recompute_analytics()

    def _recompute_view(self) -> None:
        date_range = daterange.resolve(self._state.date_range, self._now())
        filtered = filter_transactions(
            self._transactions,
            date_range,
            self._state.category_filter,
            self._state.search_text,
        )
        self._view = sort_transactions(filtered, self._state.sort_key)
        self.viewChanged.emit(list(self._view))

    def _recompute_analytics(self) -> None:
        now = self._now()
        period = self._state.analytics_period
        date_range = daterange.resolve_period(period, now)

        scoped = filter_transactions(self._transactions, date_range)
        aggregates = aggregate(scoped, date_range.days)
        series = bucket_transactions(scoped, period, date_range=date_range, now=now, locale=self._locale)

        self._analytics = AnalyticsView(
            total_amount=aggregates.total_amount,
            category_totals=aggregates.category_totals,
            most_spent_category=aggregates.most_spent_category,
            most_spent_amount=aggregates.most_spent_amount,
            avg_daily_spending=aggregates.avg_daily_spending,
            series=series,
            period=period,
            label=daterange.period_label(period),
            date_range=date_range,
        )
        self.analyticsChanged.emit(self._analytics)

    def _records_changed(self) -> None:
        self.transactionsChanged.emit(len(self._transactions))
        self.recompute()

    # View state

    def set_category_filter(self, category: Optional[str]) -> None:
        """Show a single category, or every category for None or the all-categories sentinel."""
        if is_all_categories(category):
            category = ALL_CATEGORIES
        elif category not in self._catalog:
            logging.warning(f'Filtering by category "{category}" which is not in the catalog.')
        self._state.category_filter = category
        self._recompute_view()

    def set_search_text(self, text: Optional[str]) -> None:
        self._state.search_text = text or ''
        self._recompute_view()

    def set_date_range(self, value: Any) -> None:
        """Set a date-range token or a custom ``(start, end)`` pair.

        Raises:
            status.ValidationException: If a custom pair is incomplete or holds a malformed date.
        """
        if isinstance(value, (CustomRange, tuple, Mapping)):
            pair = daterange.custom_pair(value)
            if pair is None:
                raise status.ValidationException(f'Expected a (start, end) pair, got {value!r}.')
            # Resolving validates both dates before the state changes
            daterange.resolve(value, self._now())
            value = CustomRange(*pair)
        else:
            value = DateRangeToken.from_value(value)
        self._state.date_range = value
        self._recompute_view()

    def set_sort_key(self, sort_key: Any) -> None:
        self._state.sort_key = SortKey.from_value(sort_key)
        self._recompute_view()

    def set_analytics_period(self, period: Any) -> None:
        self._state.analytics_period = AnalyticsPeriod.from_value(period)
        self._recompute_analytics()

    # Mutations

    def _index_of(self, _id: str) -> int:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == _id:
                return index
        raise status.NotFoundException(f'No transaction with id "{_id}".')

    def _build(self, _id: str, fields: Mapping[str, Any]) -> Transaction:
        return Transaction(
            id=_id,
            amount=validate_amount(fields.get('amount')),
            category=normalize_category(fields.get('category'), self._catalog),
            occurred_at=parse_occurred_at(fields.get('occurred_at'), self._now()),
            description=normalize_description(fields.get('description')),
        )

    async def _persist(self) -> None:
        try:
            await self._storage.save_all(list(self._transactions))
        except status.PersistenceException as ex:
            self.persistenceFailed.emit(str(ex))
            raise

    async def add(self, record: Optional[Mapping[str, Any]] = None) -> Transaction:
        """Validate and append a new transaction with a fresh id.

        A missing amount is 0, a missing date is now, and an unknown category becomes 'Other'.
        Any id in ``record`` is ignored.

        Returns:
            Transaction: The added record.

        Raises:
            status.ValidationException: If the amount or date is malformed.
            status.PersistenceException: If the write fails. The record stays added.
        """
        fields = _conform_record(record)
        fields.pop('id', None)
        transaction = self._build(new_id(), fields)

        self._transactions.append(transaction)
        logging.debug(f'Added transaction "{transaction.id}".')
        self._records_changed()

        await self._persist()
        return transaction

    async def update(self, _id: str, patch: Optional[Mapping[str, Any]] = None) -> Transaction:
        """Merge ``patch`` into the record with ``_id`` and re-validate it.

        Fields set to None keep their current value.

        Returns:
            Transaction: The updated record.

        Raises:
            status.NotFoundException: If no record has ``_id``.
            status.ValidationException: If the patch changes the id, has unknown keys, or the
                merged record is malformed.
            status.PersistenceException: If the write fails. The record stays updated.
        """
        index = self._index_of(_id)
        patch = _conform_record(patch)
        if patch.get('id', _id) != _id:
            raise status.ValidationException(f'The id of transaction "{_id}" cannot be changed.')
        patch.pop('id', None)
        patch = {k: v for k, v in patch.items() if v is not None}

        current = self._transactions[index]
        fields = {
            'amount': current.amount,
            'category': current.category,
            'description': current.description,
            'occurred_at': current.occurred_at,
        }
        fields.update(patch)
        transaction = self._build(_id, fields)

        self._transactions[index] = transaction
        logging.debug(f'Updated transaction "{_id}".')
        self._records_changed()

        await self._persist()
        return transaction

    async def remove(self, _id: str) -> Transaction:
        """Remove the record with ``_id``.

        Returns:
            Transaction: The removed record.

        Raises:
            status.NotFoundException: If no record has ``_id``.
            status.PersistenceException: If the write fails. The record stays removed.
        """
        index = self._index_of(_id)
        transaction = self._transactions.pop(index)
        logging.debug(f'Removed transaction "{_id}".')
        self._records_changed()

        await self._persist()
        return transaction

    async def load(self) -> bool:
        """Replace the records with the stored ones.

        Never raises. On failure the coordinator starts empty and :attr:`load_failed` is set.

        Returns:
            bool: True when the store was read successfully.
        """
        self._is_loading = True
        try:
            transactions = await self._storage.load_all()
        except status.PersistenceException as ex:
            logging.error(f'Failed to load transactions, starting empty: {ex}')
            self._transactions = []
            self._load_failed = True
        else:
            self._transactions = transactions
            self._load_failed = False
        finally:
            self._is_loading = False

        self._records_changed()
        self.loadFinished.emit(not self._load_failed)
        return not self._load_failed

    async def reload(self) -> bool:
        """Discard the in-memory records and read the store again."""
        logging.info('Reloading transactions.')
        return await self.load()

    async def load_sample(self, count: int = 50, seed: Optional[int] = None) -> list[Transaction]:
        """Replace the records with generated sample transactions and persist them.

        Raises:
            status.PersistenceException: If the write fails. The sample records stay loaded.
        """
        self._transactions = generate_sample_transactions(
            self._now(), count=count, seed=seed, catalog=self._catalog)
        self._load_failed = False
        logging.info(f'Loaded {len(self._transactions)} sample transactions.')
        self._records_changed()

        await self._persist()
        return list(self._transactions)
