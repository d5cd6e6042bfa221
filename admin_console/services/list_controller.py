from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Iterable, Mapping

from admin_console.core.config import settings
from admin_console.core.messages import translate
from admin_console.schemas.query import (
    DATE_RANGE_KEY,
    SEARCH_KEY,
    DateRange,
    FilterPredicate,
    PageResult,
    Pagination,
    QuerySpec,
    SortClause,
)
from admin_console.services.filters import FilterGroup, SearchShortcuts, date_range_for_preset

_LOG = logging.getLogger("admin_console.list")

FetchPage = Callable[[QuerySpec], Awaitable[PageResult]]
Listener = Callable[["ListController"], None]


class ListController:
    """Pagination, sort, filter and search state for one resource table.

    Every setter that changes the fetch key schedules a fetch on the running
    event loop. Responses are tagged with the key and a request sequence
    number; a response is applied only while its key is still current and no
    newer response has been applied, so superseded requests can never
    overwrite fresher data. A failed fetch keeps the last good page.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        per_page: int | None = None,
        date_field: str | None = None,
        query: QuerySpec | None = None,
        search_shortcuts: SearchShortcuts | None = None,
    ):
        self._fetch_page = fetch_page
        self.search_shortcuts = search_shortcuts
        self.date_field = str(date_field or settings.DATE_FILTER_FIELD)
        if query is not None:
            self._query = query.model_copy(deep=True)
        else:
            self._query = QuerySpec(per_page=per_page or settings.DEFAULT_PER_PAGE)
        self.search_text = self._query.search
        self.page_result: PageResult | None = None
        self.error: str | None = None
        self.stale = True
        self._request_seq = 0
        self._applied_seq = 0
        self._in_flight: dict[int, str] = {}
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

    # read side

    @property
    def query(self) -> QuerySpec:
        return self._query.model_copy(deep=True)

    @property
    def fetch_key(self) -> str:
        return self._query.fetch_key()

    @property
    def loading(self) -> bool:
        return bool(self._in_flight)

    @property
    def items(self) -> list[Any]:
        return list(self.page_result.data) if self.page_result else []

    @property
    def total(self) -> int:
        return self.page_result.count if self.page_result else 0

    @property
    def pagination(self) -> Pagination:
        if self.page_result is None:
            return Pagination(current_page=self._query.page, per_page=self._query.per_page)
        return self.page_result.pagination

    @property
    def current_sort(self) -> SortClause | None:
        return self._query.sorts[0] if self._query.sorts else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _LOG.exception("List listener %r failed", listener)

    # mutators

    def _replace(self, **changes: Any) -> None:
        before = self._query.fetch_key()
        self._query = QuerySpec.model_validate({**self._query.model_dump(), **changes})
        if self._query.fetch_key() == before:
            return
        self.stale = True
        self._schedule_fetch()

    def set_page(self, page: int) -> None:
        self._replace(page=int(page))

    def set_per_page(self, per_page: int) -> None:
        self._replace(per_page=int(per_page), page=1)

    def set_sort(self, field: str | None = None, direction: str | None = None) -> None:
        if not field or not direction:
            self._replace(sorts=[], page=1)
            return
        self._replace(sorts=[SortClause(field=field, direction=direction)], page=1)

    def _with_reserved(
        self,
        filters: Iterable[FilterPredicate],
        search: list[FilterPredicate] | None = None,
    ) -> list[FilterPredicate]:
        # Date and search predicates belong to their own widgets and survive filter-panel changes.
        queries = [p for p in filters if p.key not in (DATE_RANGE_KEY, SEARCH_KEY)]
        queries.extend(self._query.search_predicates() if search is None else search)
        date_predicate = self._query.date_predicate()
        if date_predicate is not None:
            queries.append(date_predicate)
        return queries

    def set_filters(self, predicates: Iterable[FilterPredicate]) -> None:
        self._replace(queries=self._with_reserved(predicates), page=1)

    def set_filter_group(self, group: FilterGroup, selections: Mapping[str, Any]) -> None:
        self.set_filters(group.predicates_for(selections))

    def apply_date_range(self, date_range: DateRange | None) -> None:
        queries = [p for p in self._query.queries if p.key != DATE_RANGE_KEY]
        if date_range is not None:
            start, end = date_range.bounds()
            queries.append(
                FilterPredicate(field=self.date_field, operator="between", value=[start, end], key=DATE_RANGE_KEY)
            )
        self._replace(queries=queries, page=1)

    def apply_date_preset(self, preset: str, today: date | None = None) -> None:
        self.apply_date_range(date_range_for_preset(preset, today=today))

    def set_search(self, text: str) -> None:
        """Apply search box input.

        With ``search_shortcuts`` configured, input they understand is sent as
        predicates instead of the free-text ``search`` parameter.
        """
        value = str(text or "").strip()
        self.search_text = value
        shortcuts = []
        if self.search_shortcuts is not None and value:
            shortcuts = [
                p.model_copy(update={"key": SEARCH_KEY}) for p in self.search_shortcuts.predicates_for(value)
            ]
        self._replace(
            queries=self._with_reserved(self._query.queries, shortcuts),
            search="" if shortcuts else value,
            page=1,
        )

    # fetching

    def _schedule_fetch(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _LOG.debug("No running event loop; fetch for %s deferred until refetch()", self.fetch_key)
            return
        task = loop.create_task(self._run_fetch())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refetch(self) -> bool:
        """Fetch the current key again; returns whether the response was applied."""
        return await self._run_fetch()

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()

    async def _run_fetch(self) -> bool:
        self._request_seq += 1
        seq = self._request_seq
        query_spec = self._query.model_copy(deep=True)
        key = query_spec.fetch_key()
        self._in_flight[seq] = key
        self._notify()
        try:
            result = await self._fetch_page(query_spec)
        except asyncio.CancelledError:
            self._in_flight.pop(seq, None)
            raise
        except Exception as exc:
            self._in_flight.pop(seq, None)
            return self._apply_error(seq, key, exc)
        self._in_flight.pop(seq, None)
        return self._apply_result(seq, key, result)

    def _is_current(self, seq: int, key: str) -> bool:
        if key != self._query.fetch_key():
            _LOG.debug("Discarding response #%s for superseded key %s", seq, key)
            return False
        if seq <= self._applied_seq:
            _LOG.debug("Discarding response #%s older than applied #%s", seq, self._applied_seq)
            return False
        return True

    def _apply_result(self, seq: int, key: str, result: PageResult | Mapping[str, Any]) -> bool:
        if not self._is_current(seq, key):
            self._notify()
            return False
        self.page_result = result if isinstance(result, PageResult) else PageResult.model_validate(result)
        self.error = None
        self.stale = False
        self._applied_seq = seq
        self._notify()
        return True

    def _apply_error(self, seq: int, key: str, exc: Exception) -> bool:
        if not self._is_current(seq, key):
            self._notify()
            return False
        message = str(getattr(exc, "server_message", None) or "").strip() or translate("fetch_failed")
        _LOG.warning("List fetch #%s failed: %s", seq, exc)
        self.error = message
        self._applied_seq = seq
        self._notify()
        return True
