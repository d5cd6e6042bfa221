from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Mapping

from pydantic import BaseModel

from admin_console.schemas.query import DateRange, FilterPredicate, Op

ValueType = Literal["string", "boolean", "number"]

DATE_PRESETS = ("today", "thisweek", "thismonth", "last30days", "last3months")


class FilterValueError(ValueError):
    pass


def _bad_filter_value(key: str, kind: str) -> FilterValueError:
    return FilterValueError(f'Invalid filter value for "{key}" ({kind})')


def _coerce_bool_filter_value(key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in {"1", "true", "yes", "y", "active"}:
        return True
    if text in {"0", "false", "no", "n", "inactive"}:
        return False
    raise _bad_filter_value(key, "boolean")


def _coerce_number_filter_value(key: str, value):
    if isinstance(value, bool):
        raise _bad_filter_value(key, "number")
    if isinstance(value, (int, float, Decimal)):
        return value
    text = str(value).strip().replace(",", ".")
    if not text:
        raise _bad_filter_value(key, "number")
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise _bad_filter_value(key, "number")
    if not number.is_finite():
        raise _bad_filter_value(key, "number")
    return int(number) if number == number.to_integral_value() else float(number)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


class FilterOption(BaseModel):
    key: str
    operator: Op
    label: str = ""
    value_type: ValueType = "string"

    def coerce(self, value: Any) -> Any:
        if self.value_type == "boolean":
            return _coerce_bool_filter_value(self.key, value)
        if self.value_type == "number":
            if isinstance(value, (list, tuple)):
                return [_coerce_number_filter_value(self.key, v) for v in value]
            return _coerce_number_filter_value(self.key, value)
        if isinstance(value, str):
            return value.strip()
        return value


class FilterGroup(BaseModel):
    """Screen-specific description of a filter panel."""

    name: str
    options: list[FilterOption] = []

    def option(self, key: str) -> FilterOption | None:
        for option in self.options:
            if option.key == key:
                return option
        return None

    def predicates_for(self, selections: Mapping[str, Any]) -> list[FilterPredicate]:
        out: list[FilterPredicate] = []
        for option in self.options:
            if option.key not in selections:
                continue
            raw = selections[option.key]
            if _is_blank(raw):
                continue
            out.append(FilterPredicate(field=option.key, operator=option.operator, value=option.coerce(raw)))
        return out


class SearchShortcuts(BaseModel):
    """Turns ``prefix:value`` search input into predicates.

    Input without a known prefix becomes a single ``$or`` predicate matching
    ``contains`` across ``fallback_fields``.
    """

    prefixes: dict[str, FilterOption] = {}
    fallback_fields: list[str] = []

    def predicates_for(self, text: str) -> list[FilterPredicate]:
        value = str(text or "").strip()
        if not value:
            return []
        head, sep, tail = value.partition(":")
        if sep:
            option = self.prefixes.get(head.strip().lower())
            if option is not None:
                try:
                    coerced = option.coerce(tail)
                except FilterValueError:
                    return []
                if _is_blank(coerced):
                    return []
                return [FilterPredicate(field=option.key, operator=option.operator, value=coerced)]
        if not self.fallback_fields:
            return []
        nested = [FilterPredicate(field=f, operator="contains", value=value) for f in self.fallback_fields]
        return [FilterPredicate(field="$or", operator="custom", value=nested)]


def _shift_months(day: date, months: int) -> date:
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def date_range_for_preset(name: str, today: date | None = None) -> DateRange | None:
    current = today or date.today()
    preset = str(name or "").strip().lower()
    if preset == "today":
        return DateRange(start=current, end=current)
    if preset == "thisweek":
        # Weeks start on Sunday.
        start = current - timedelta(days=(current.weekday() + 1) % 7)
        return DateRange(start=start, end=start + timedelta(days=6))
    if preset == "thismonth":
        last_day = calendar.monthrange(current.year, current.month)[1]
        return DateRange(start=current.replace(day=1), end=current.replace(day=last_day))
    if preset == "last30days":
        return DateRange(start=current - timedelta(days=30), end=current)
    if preset == "last3months":
        return DateRange(start=_shift_months(current, -3), end=current)
    return None
