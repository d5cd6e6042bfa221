from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from admin_console.schemas.location import (
    LOCATION_DELIMITER,
    City,
    GeocodedPlace,
    LocationSelection,
    State,
)
from admin_console.services.geocoding import reverse_geocode
from admin_console.services.location_catalog import LocationCatalog, get_location_catalog

_LOG = logging.getLogger("admin_console.locations")

Geocoder = Callable[[float, float], Awaitable[Optional[GeocodedPlace]]]
LocationSetter = Callable[[str], None]

_FIELDS = tuple(LocationSelection.model_fields.keys())


def _clean(value: object) -> str:
    return str(value or "").strip()


def _blank(fields: tuple[str, ...], keep: dict[str, str]) -> dict[str, str]:
    return {name: "" for name in fields if name not in keep}


class CascadingSelector:
    """Country -> state -> city selection kept consistent with a location catalog.

    Any change to an upstream level re-validates the levels below it in the same
    update: a state that does not belong to the selected country is cleared
    together with the city, and a city missing from the selected state's city
    list is cleared. Whenever the result holds at least one code, the flattened
    ``"<city>, <stateCode>, <countryCode>"`` string is pushed to ``on_change``.
    """

    def __init__(
        self,
        catalog: LocationCatalog | None = None,
        *,
        on_change: LocationSetter | None = None,
        geocoder: Geocoder | None = None,
    ):
        self.catalog = catalog if catalog is not None else get_location_catalog()
        self._on_change = on_change
        self._geocoder = geocoder or reverse_geocode
        self._selection = LocationSelection()

    @property
    def selection(self) -> LocationSelection:
        return self._selection.model_copy()

    @property
    def country(self) -> str:
        return self._selection.country

    @property
    def country_code(self) -> str:
        return self._selection.country_code

    @property
    def state(self) -> str:
        return self._selection.state

    @property
    def state_code(self) -> str:
        return self._selection.state_code

    @property
    def city(self) -> str:
        return self._selection.city

    @property
    def encoded(self) -> str | None:
        if self._selection.is_empty():
            return None
        return self._selection.encode()

    @property
    def states(self) -> list[State]:
        if not self._selection.country_code:
            return []
        return self.catalog.states_of(self._selection.country_code)

    @property
    def cities(self) -> list[City]:
        if not self._selection.country_code or not self._selection.state_code:
            return []
        return self.catalog.cities_of(self._selection.country_code, self._selection.state_code)

    def _cascade(self, selection: LocationSelection) -> LocationSelection:
        if selection.state_code:
            state = None
            if selection.country_code:
                state = self.catalog.state_by_code(selection.state_code, selection.country_code)
            if state is None:
                return selection.model_copy(update={"state": "", "state_code": "", "city": ""})
            if selection.state != state.name:
                selection = selection.model_copy(update={"state": state.name})
        elif selection.state or selection.city:
            return selection.model_copy(update={"state": "", "city": ""})

        if selection.city:
            names = {c.name for c in self.catalog.cities_of(selection.country_code, selection.state_code)}
            # States without a city list in the catalog take the city as entered.
            if names and selection.city not in names:
                selection = selection.model_copy(update={"city": ""})
        return selection

    def _fill_country(self, selection: LocationSelection) -> LocationSelection:
        if not selection.country_code:
            if selection.country:
                return selection.model_copy(update={"country": ""})
            return selection
        country = self.catalog.country_by_code(selection.country_code)
        if country is None or selection.country == country.name:
            return selection
        return selection.model_copy(update={"country": country.name})

    def _commit(self, selection: LocationSelection, *, emit: bool = True) -> LocationSelection:
        changed = selection != self._selection
        self._selection = selection
        if emit and changed and not selection.is_empty() and self._on_change is not None:
            self._on_change(selection.encode())
        return self.selection

    def update(self, **changes: str) -> LocationSelection:
        unknown = sorted(set(changes) - set(_FIELDS))
        if unknown:
            raise ValueError("Unknown location fields: " + ", ".join(unknown))
        proposed = self._selection.model_copy(update={k: _clean(v) for k, v in changes.items()})
        # A new country starts a fresh state/city choice; a new state starts a fresh city choice.
        if proposed.country_code != self._selection.country_code:
            proposed = proposed.model_copy(update=_blank(("country", "state", "state_code", "city"), changes))
        elif proposed.state_code != self._selection.state_code:
            proposed = proposed.model_copy(update=_blank(("state", "city"), changes))
        proposed = self._cascade(self._fill_country(proposed))
        return self._commit(proposed)

    def select_country(self, code: str) -> LocationSelection:
        country = self.catalog.country_by_code(code)
        if country is None:
            _LOG.debug("Ignoring unknown country code %r", code)
            return self.selection
        return self.update(country=country.name, country_code=country.code)

    def select_state(self, code: str) -> LocationSelection:
        state = self.catalog.state_by_code(code, self._selection.country_code)
        if state is None:
            _LOG.debug("Ignoring state %r outside country %r", code, self._selection.country_code)
            return self.selection
        return self.update(state=state.name, state_code=state.code)

    def select_city(self, name: str) -> LocationSelection:
        wanted = _clean(name)
        names = {c.name for c in self.cities}
        if not wanted or not self._selection.state_code or (names and wanted not in names):
            _LOG.debug("Ignoring city %r outside state %r", name, self._selection.state_code)
            return self.selection
        return self.update(city=wanted)

    def clear(self) -> LocationSelection:
        return self._commit(LocationSelection(), emit=False)

    def load_encoded(self, text: str | None) -> LocationSelection:
        """Rebuild the selection from a persisted ``"<city>, <stateCode>, <countryCode>"`` string.

        Resolution is best-effort: levels that cannot be resolved stay empty and
        nothing is raised. The owning form is not notified, since its value is
        the source being parsed.
        """
        parts = str(text or "").split(LOCATION_DELIMITER)
        if len(parts) != 3:
            if str(text or "").strip():
                _LOG.debug("Unparseable location %r", text)
            return self._commit(LocationSelection(), emit=False)

        city, state_code, country_code = (_clean(p) for p in parts)
        country = self.catalog.country_by_code(country_code) if country_code else None
        if country is None:
            return self._commit(LocationSelection(), emit=False)
        selection = LocationSelection(country=country.name, country_code=country.code)

        state = self.catalog.state_by_code(state_code, country.code) if state_code else None
        if state is not None:
            selection = selection.model_copy(update={"state": state.name, "state_code": state.code, "city": city})
        return self._commit(self._cascade(selection), emit=False)

    async def detect_location(self, latitude: float, longitude: float) -> LocationSelection:
        try:
            place = await self._geocoder(latitude, longitude)
        except Exception as exc:
            _LOG.warning("Location detection failed: %s", exc)
            return self.selection
        if place is None:
            return self.selection

        country = self.catalog.country_by_code(place.country_code) if place.country_code else None
        if country is None:
            country = self.catalog.country_by_name(place.country)
        if country is None:
            _LOG.debug("Detected country %r is not in the catalog", place.country or place.country_code)
            return self.selection

        selection = LocationSelection(country=country.name, country_code=country.code)
        state = None
        if place.state_code:
            state = self.catalog.state_by_code(place.state_code, country.code)
        if state is None:
            state = self.catalog.state_by_name(place.state, country.code)
        if state is not None:
            selection = selection.model_copy(update={"state": state.name, "state_code": state.code})
            wanted = place.city.strip()
            cities = self.catalog.cities_of(country.code, state.code)
            if not cities:
                selection = selection.model_copy(update={"city": wanted})
            for city in cities:
                if wanted and city.name.casefold() == wanted.casefold():
                    selection = selection.model_copy(update={"city": city.name})
                    break
        return self._commit(self._cascade(selection))
