from __future__ import annotations

import json
from datetime import date, datetime, time, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Op = Literal[
    "==",
    "!=",
    ">",
    "<",
    ">=",
    "<=",
    "in",
    "not-in",
    "contains",
    "not-contains",
    "regex",
    "starts-with",
    "ends-with",
    "exists",
    "not-exists",
    "between",
    "custom",
]
Dir = Literal["asc", "desc"]

# Reserved key of the predicate produced by the date-range widget.
DATE_RANGE_KEY = "dateRange"
SEARCH_KEY = "search"


class FilterPredicate(BaseModel):
    field: str
    operator: Op
    value: Any = None
    # Identifies predicates owned by a dedicated widget; never sent to the server.
    key: Optional[str] = None

    def as_tuples(self) -> list[list[Any]]:
        if self.operator == "between":
            start, end = self.value
            return [[self.field, ">=", start], [self.field, "<=", end]]
        if self.operator == "custom":
            nested = []
            for item in self.value or []:
                sub = item if isinstance(item, FilterPredicate) else FilterPredicate.model_validate(item)
                nested.extend(sub.as_tuples())
            return [[self.field, "custom", nested]]
        return [[self.field, self.operator, self.value]]


class SortClause(BaseModel):
    field: str
    direction: Dir


class DateRange(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def bounds(self) -> tuple[str, str]:
        lower = datetime.combine(self.start, time.min, tzinfo=timezone.utc)
        upper = datetime.combine(self.end, time(23, 59, 59, 999000), tzinfo=timezone.utc)
        return _iso_utc(lower), _iso_utc(upper)


def _iso_utc(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class QuerySpec(BaseModel):
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1)
    sorts: List[SortClause] = []
    queries: List[FilterPredicate] = []
    search: str = ""

    def fetch_key(self) -> str:
        payload = self.model_dump(mode="json")
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)

    def date_predicate(self) -> Optional[FilterPredicate]:
        for predicate in self.queries:
            if predicate.key == DATE_RANGE_KEY:
                return predicate
        return None

    def search_predicates(self) -> List[FilterPredicate]:
        return [p for p in self.queries if p.key == SEARCH_KEY]


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(default=1, alias="currentPage")
    per_page: int = Field(default=10, alias="perPage")
    total_pages: int = Field(default=1, alias="totalPages")
    next_page: Optional[int] = Field(default=None, alias="nextPage")
    prev_page: Optional[int] = Field(default=None, alias="prevPage")


class PageResult(BaseModel):
    data: List[Any] = []
    count: int = 0
    pagination: Pagination = Pagination()
