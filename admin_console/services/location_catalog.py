from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

import pycountry
from pydantic import ValidationError

from admin_console.core.config import settings
from admin_console.schemas.location import CatalogPayload, City, Country, State

_LOG = logging.getLogger("admin_console.locations")

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "locations.json"


class CatalogError(Exception):
    pass


class LocationCatalog(Protocol):
    def countries(self) -> list[Country]:
        ...

    def country_by_code(self, code: str) -> Country | None:
        ...

    def country_by_name(self, name: str) -> Country | None:
        ...

    def states_of(self, country_code: str) -> list[State]:
        ...

    def state_by_code(self, state_code: str, country_code: str) -> State | None:
        ...

    def state_by_name(self, name: str, country_code: str) -> State | None:
        ...

    def cities_of(self, country_code: str, state_code: str) -> list[City]:
        ...


def _norm_code(value: str | None) -> str:
    return str(value or "").strip().upper()


class InMemoryLocationCatalog:
    def __init__(self, payload: CatalogPayload):
        self._countries: dict[str, Country] = {_norm_code(c.code): c for c in payload.countries}
        self._states: dict[str, list[State]] = {}
        for state in payload.states:
            self._states.setdefault(_norm_code(state.country_code), []).append(state)
        self._cities: dict[tuple[str, str], list[City]] = {}
        for city in payload.cities:
            key = (_norm_code(city.country_code), _norm_code(city.state_code))
            self._cities.setdefault(key, []).append(city)

    def countries(self) -> list[Country]:
        return list(self._countries.values())

    def country_by_code(self, code: str) -> Country | None:
        return self._countries.get(_norm_code(code))

    def country_by_name(self, name: str) -> Country | None:
        wanted = str(name or "").strip().casefold()
        if not wanted:
            return None
        for country in self._countries.values():
            if country.name.casefold() == wanted:
                return country
        return None

    def states_of(self, country_code: str) -> list[State]:
        return list(self._states.get(_norm_code(country_code), []))

    def state_by_code(self, state_code: str, country_code: str) -> State | None:
        code = _norm_code(state_code)
        if not code:
            return None
        for state in self._states.get(_norm_code(country_code), []):
            if _norm_code(state.code) == code:
                return state
        return None

    def state_by_name(self, name: str, country_code: str) -> State | None:
        wanted = str(name or "").strip().casefold()
        if not wanted:
            return None
        for state in self._states.get(_norm_code(country_code), []):
            if state.name.casefold() == wanted:
                return state
        return None

    def cities_of(self, country_code: str, state_code: str) -> list[City]:
        return list(self._cities.get((_norm_code(country_code), _norm_code(state_code)), []))


def _read_payload(source: Path) -> CatalogPayload:
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Cannot read location catalog {source}: {exc}") from exc
    try:
        return CatalogPayload.model_validate(raw)
    except ValidationError as exc:
        raise CatalogError(f"Malformed location catalog {source}: {exc}") from exc


def iso_payload() -> CatalogPayload:
    """Countries (ISO 3166-1) and their subdivisions (ISO 3166-2) from pycountry.

    Subdivision codes drop the ``"<country>-"`` prefix, so ``FR-IDF`` is
    stored as ``IDF`` under ``FR``.
    """
    countries = [
        Country(code=c.alpha_2, name=getattr(c, "common_name", None) or c.name)
        for c in pycountry.countries
    ]
    states = [
        State(code=s.code.split("-", 1)[1], name=s.name, country_code=s.country_code)
        for s in pycountry.subdivisions
    ]
    return CatalogPayload(countries=countries, states=states)


def merge_payloads(base: CatalogPayload, overlay: CatalogPayload) -> CatalogPayload:
    """Overlay entries replace base entries with the same code; cities are concatenated."""
    countries = {_norm_code(c.code): c for c in base.countries}
    countries.update({_norm_code(c.code): c for c in overlay.countries})
    states = {(_norm_code(s.country_code), _norm_code(s.code)): s for s in base.states}
    states.update({(_norm_code(s.country_code), _norm_code(s.code)): s for s in overlay.states})
    return CatalogPayload(
        countries=list(countries.values()),
        states=list(states.values()),
        cities=[*base.cities, *overlay.cities],
    )


def load_catalog(path: str | Path | None = None) -> InMemoryLocationCatalog:
    """Load a catalog file, or the default ISO catalog when no path is given.

    The default combines pycountry's countries and subdivisions with the
    bundled ``data/locations.json``, which supplies English state names and
    city lists. An explicit file is used as the complete catalog.
    """
    if path:
        source = Path(path)
        payload = _read_payload(source)
    else:
        source = DEFAULT_CATALOG_PATH
        payload = merge_payloads(iso_payload(), _read_payload(source))
    _LOG.debug(
        "Loaded location catalog %s: %d countries, %d states, %d cities",
        source,
        len(payload.countries),
        len(payload.states),
        len(payload.cities),
    )
    return InMemoryLocationCatalog(payload)


_cached_catalog: InMemoryLocationCatalog | None = None


def get_location_catalog() -> InMemoryLocationCatalog:
    global _cached_catalog
    if _cached_catalog is None:
        _cached_catalog = load_catalog(settings.LOCATION_CATALOG_PATH)
    return _cached_catalog


def reset_location_catalog_for_tests() -> None:
    global _cached_catalog
    _cached_catalog = None
