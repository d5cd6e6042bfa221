import unittest
from datetime import date

from pydantic import ValidationError

from admin_console.schemas.query import DateRange, FilterPredicate, PageResult, QuerySpec, SortClause


class QuerySpecTests(unittest.TestCase):
    def test_page_and_per_page_must_be_positive(self):
        with self.assertRaises(ValidationError):
            QuerySpec(page=0)
        with self.assertRaises(ValidationError):
            QuerySpec(per_page=0)

    def test_fetch_key_is_content_based(self):
        a = QuerySpec(page=2, sorts=[SortClause(field="createdAt", direction="desc")], search="x")
        b = QuerySpec(search="x", sorts=[{"field": "createdAt", "direction": "desc"}], page=2)
        self.assertEqual(a.fetch_key(), b.fetch_key())
        self.assertNotEqual(a.fetch_key(), QuerySpec(page=3, search="x").fetch_key())

    def test_fetch_key_serializes_dates(self):
        query_spec = QuerySpec(queries=[FilterPredicate(field="deliveryDate", operator="==", value=date(2026, 1, 2))])
        self.assertIn("2026-01-02", query_spec.fetch_key())


class FilterPredicateTests(unittest.TestCase):
    def test_plain_predicate_tuple(self):
        predicate = FilterPredicate(field="status", operator="==", value=True)
        self.assertEqual(predicate.as_tuples(), [["status", "==", True]])

    def test_between_expands_to_inclusive_bounds(self):
        predicate = FilterPredicate(field="createdAt", operator="between", value=["a", "b"])
        self.assertEqual(predicate.as_tuples(), [["createdAt", ">=", "a"], ["createdAt", "<=", "b"]])

    def test_unknown_operator_is_rejected(self):
        with self.assertRaises(ValidationError):
            FilterPredicate(field="status", operator="~=", value=1)


class DateRangeTests(unittest.TestCase):
    def test_bounds_cover_whole_days(self):
        rng = DateRange(start=date(2026, 2, 26), end=date(2026, 2, 27))
        self.assertEqual(rng.bounds(), ("2026-02-26T00:00:00.000Z", "2026-02-27T23:59:59.999Z"))

    def test_reversed_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            DateRange(start=date(2026, 2, 27), end=date(2026, 2, 26))

    def test_accepts_iso_strings(self):
        rng = DateRange(start="2026-02-01", end="2026-02-01")
        self.assertEqual(rng.start, date(2026, 2, 1))


class PageResultTests(unittest.TestCase):
    def test_defaults(self):
        page = PageResult()
        self.assertEqual(page.data, [])
        self.assertEqual(page.count, 0)
        self.assertEqual(page.pagination.current_page, 1)
        self.assertIsNone(page.pagination.next_page)


if __name__ == "__main__":
    unittest.main()
