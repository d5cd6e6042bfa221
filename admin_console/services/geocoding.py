from __future__ import annotations

import logging
from typing import Any

import httpx

from admin_console.core.config import settings
from admin_console.schemas.location import GeocodedPlace

_LOG = logging.getLogger("admin_console.geocoding")

_CITY_KEYS = ("city", "town", "village", "municipality", "suburb")
# Nominatim reports ISO 3166-2 codes per admin level, e.g. "ISO3166-2-lvl4": "EG-C".
_SUBDIVISION_KEYS = ("ISO3166-2-lvl4", "ISO3166-2-lvl3", "ISO3166-2-lvl5", "ISO3166-2-lvl6")


def _geocoder_enabled() -> bool:
    return bool(settings.GEOCODER_ENABLED) and bool(str(settings.GEOCODER_URL or "").strip())


def _subdivision_code(address: dict[str, Any], country_code: str) -> str:
    for key in _SUBDIVISION_KEYS:
        value = str(address.get(key) or "").strip().upper()
        prefix, sep, code = value.partition("-")
        if sep and code and (not country_code or prefix == country_code):
            return code
    return ""


def _place_from_payload(payload: dict[str, Any]) -> GeocodedPlace | None:
    address = payload.get("address")
    if not isinstance(address, dict):
        return None
    city = ""
    for key in _CITY_KEYS:
        city = str(address.get(key) or "").strip()
        if city:
            break
    country_code = str(address.get("country_code") or "").strip().upper()
    place = GeocodedPlace(
        country=str(address.get("country") or "").strip(),
        country_code=country_code,
        state=str(address.get("state") or address.get("region") or "").strip(),
        state_code=_subdivision_code(address, country_code),
        city=city,
    )
    if not place.country and not place.country_code:
        return None
    return place


async def reverse_geocode(latitude: float, longitude: float) -> GeocodedPlace | None:
    """Best-effort lookup of the place at the given coordinates.

    Every failure (disabled geocoder, transport error, HTTP error, unexpected
    payload) yields ``None``; callers treat location detection as optional.
    """
    if not _geocoder_enabled():
        _LOG.debug("Geocoder disabled; skipping reverse lookup")
        return None
    url = str(settings.GEOCODER_URL).strip()
    params = {
        "lat": f"{float(latitude):.6f}",
        "lon": f"{float(longitude):.6f}",
        "format": "jsonv2",
        "addressdetails": "1",
        "accept-language": "en",
    }
    try:
        async with httpx.AsyncClient(timeout=float(settings.GEOCODER_TIMEOUT_SECONDS)) as client:
            response = await client.get(url, params=params, headers={"User-Agent": settings.GEOCODER_USER_AGENT})
    except Exception as exc:
        _LOG.warning("Reverse geocoding failed: %s", exc)
        return None
    if response.status_code >= 400:
        _LOG.warning("Reverse geocoding failed: HTTP %s", response.status_code)
        return None
    try:
        payload = response.json() if response.content else {}
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        return None
    return _place_from_payload(payload)
