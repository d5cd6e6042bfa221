import json
import os
import tempfile
import unittest

from admin_console.core.config import settings
from admin_console.schemas.location import CatalogPayload, City, Country, State
from admin_console.services.location_catalog import (
    CatalogError,
    get_location_catalog,
    load_catalog,
    merge_payloads,
    reset_location_catalog_for_tests,
)


class LocationCatalogTests(unittest.TestCase):
    def setUp(self):
        self.catalog = load_catalog()

    def test_lookups_are_case_insensitive_on_codes(self):
        self.assertEqual(self.catalog.country_by_code("eg").name, "Egypt")
        self.assertEqual(self.catalog.state_by_code("c", "EG").name, "Cairo")
        self.assertIsNone(self.catalog.state_by_code("C", "US"))
        self.assertIsNone(self.catalog.state_by_code("", "EG"))

    def test_states_and_cities_are_scoped(self):
        self.assertTrue(all(s.country_code == "SA" for s in self.catalog.states_of("SA")))
        self.assertEqual([c.name for c in self.catalog.cities_of("AE", "AZ")], ["Abu Dhabi", "Al Ain"])
        self.assertEqual(self.catalog.cities_of("AE", "XX"), [])
        self.assertEqual(self.catalog.states_of(""), [])

    def test_default_catalog_covers_iso_countries_and_subdivisions(self):
        self.assertEqual(self.catalog.country_by_code("BR").code, "BR")
        self.assertIsNotNone(self.catalog.state_by_code("SP", "BR"))
        self.assertGreater(len(self.catalog.countries()), 200)

    def test_bundled_names_and_cities_overlay_iso_data(self):
        self.assertEqual(self.catalog.state_by_code("IDF", "FR").name, "Île-de-France")
        self.assertEqual(self.catalog.state_by_code("AZ", "JO").name, "Zarqa")
        self.assertEqual(self.catalog.state_by_code("AZ", "AE").name, "Abu Dhabi")
        self.assertIn("Paris", [c.name for c in self.catalog.cities_of("FR", "IDF")])

    def test_name_lookups(self):
        self.assertEqual(self.catalog.country_by_name("united states").code, "US")
        self.assertEqual(self.catalog.state_by_name("Eastern Province", "SA").code, "04")
        self.assertIsNone(self.catalog.country_by_name(""))


class MergePayloadsTests(unittest.TestCase):
    def test_overlay_replaces_by_code_and_appends_cities(self):
        base = CatalogPayload(
            countries=[Country(code="EG", name="Egypt"), Country(code="JO", name="Jordan")],
            states=[State(code="C", name="Al Qahirah", country_code="EG")],
        )
        overlay = CatalogPayload(
            states=[State(code="c", name="Cairo", country_code="eg")],
            cities=[City(name="Cairo", country_code="EG", state_code="C")],
        )
        merged = merge_payloads(base, overlay)
        self.assertEqual([c.code for c in merged.countries], ["EG", "JO"])
        self.assertEqual([s.name for s in merged.states], ["Cairo"])
        self.assertEqual(len(merged.cities), 1)


class CatalogFileTests(unittest.TestCase):
    def setUp(self):
        self._backup = settings.LOCATION_CATALOG_PATH
        self._tmp = tempfile.TemporaryDirectory()
        reset_location_catalog_for_tests()

    def tearDown(self):
        settings.LOCATION_CATALOG_PATH = self._backup
        reset_location_catalog_for_tests()
        self._tmp.cleanup()

    def _write(self, name, content):
        path = os.path.join(self._tmp.name, name)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(content)
        return path

    def test_custom_catalog_from_settings(self):
        settings.LOCATION_CATALOG_PATH = self._write(
            "catalog.json",
            json.dumps(
                {
                    "countries": [{"code": "JO", "name": "Jordan"}],
                    "states": [{"code": "AM", "name": "Amman", "country_code": "JO"}],
                    "cities": [{"name": "Amman", "country_code": "JO", "state_code": "AM"}],
                }
            ),
        )
        catalog = get_location_catalog()
        self.assertEqual([c.code for c in catalog.countries()], ["JO"])
        self.assertIs(get_location_catalog(), catalog)

    def test_missing_file_raises(self):
        with self.assertRaises(CatalogError):
            load_catalog(os.path.join(self._tmp.name, "missing.json"))

    def test_malformed_file_raises(self):
        with self.assertRaises(CatalogError):
            load_catalog(self._write("bad.json", "{not json"))
        with self.assertRaises(CatalogError):
            load_catalog(self._write("shape.json", json.dumps({"countries": [{"code": "JO"}]})))


if __name__ == "__main__":
    unittest.main()
