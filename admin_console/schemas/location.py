from pydantic import BaseModel
from typing import List

LOCATION_DELIMITER = ", "


class Country(BaseModel):
    code: str
    name: str


class State(BaseModel):
    code: str
    name: str
    country_code: str


class City(BaseModel):
    name: str
    country_code: str
    state_code: str


class LocationSelection(BaseModel):
    country: str = ""
    country_code: str = ""
    state: str = ""
    state_code: str = ""
    city: str = ""

    def is_empty(self) -> bool:
        return not (self.city or self.state_code or self.country_code)

    def encode(self) -> str:
        return LOCATION_DELIMITER.join([self.city, self.state_code, self.country_code])


class GeocodedPlace(BaseModel):
    country: str = ""
    country_code: str = ""
    state: str = ""
    state_code: str = ""
    city: str = ""


class CatalogPayload(BaseModel):
    countries: List[Country] = []
    states: List[State] = []
    cities: List[City] = []
