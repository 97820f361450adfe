import unittest

from models import Country, LoanAmortization, Rating
from tests.support import DatabaseTestCase


def _amortization(months: int) -> LoanAmortization:
    amortization = LoanAmortization()
    amortization.months = months
    return amortization


class TestTotalYears(unittest.TestCase):
    def test_three_year_term(self):
        self.assertEqual(_amortization(36).total_years, 3.0)

    def test_partial_year(self):
        self.assertEqual(_amortization(6).total_years, 0.5)

    def test_non_positive_months(self):
        self.assertEqual(_amortization(0).total_years, 0.0)


class TestLookups(DatabaseTestCase):
    async def test_get_for_id(self):
        amortization = await LoanAmortization().get_for_id(3)
        self.assertIsNotNone(amortization)
        self.assertEqual(amortization.name, "3-Year")
        self.assertEqual(amortization.months, 36)
        self.assertEqual(amortization.total_years, 3.0)

    async def test_get_for_unknown_id(self):
        self.assertIsNone(await LoanAmortization().get_for_id(999))

    async def test_get_all_ordered_by_months(self):
        models = await LoanAmortization.get_all_as_model()
        self.assertEqual([m.months for m in models], [6, 12, 36, 60])

    async def test_countries(self):
        canada = await Country().get_for_code("ca")
        self.assertEqual(canada.name, "Canada")
        self.assertEqual((await Country().get_country(canada.id)).code, "CA")
        self.assertIsNone(await Country().get_for_code("ZZ"))
        self.assertEqual(len(await Country.get_all()), 3)

    async def test_ratings(self):
        ratings = await Rating.get_all()
        self.assertEqual([r.name for r in ratings], ["A", "B", "C", "D", "E"])
        self.assertEqual((await Rating().get_for_id(2)).get_api_model().name, "B")


if __name__ == "__main__":
    unittest.main()
