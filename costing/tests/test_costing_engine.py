from django.test import SimpleTestCase

from costing.app_settings import make_default_settings
from costing.costing_engine import (
    compute_purchase_total_cents,
    compute_totals,
    compute_unit_cost_cents_from_cost,
    make_blank_sheet,
    sum_material_cents,
    sum_overhead_percent_cents,
)
from costing.demo_data import create_demo_sheet
from costing.domain_models import CostSheet, FlatOverhead, LaborItem, MaterialItem, PercentOverhead
from costing.money import as_finite_number, clamp, round_cents


def _sheet(**kwargs) -> CostSheet:
    defaults = dict(id="s1", materials=[], labor=[], overhead=[])
    defaults.update(kwargs)
    return CostSheet(**defaults)


class MoneyTests(SimpleTestCase):
    def test_round_cents_rounds_half_away_from_zero(self):
        self.assertEqual(round_cents(2.5), 3)
        self.assertEqual(round_cents(0.5), 1)
        self.assertEqual(round_cents(-2.5), -3)
        self.assertEqual(round_cents(2.4), 2)

    def test_round_cents_non_finite_is_zero(self):
        for value in (float("nan"), float("inf"), "abc", None):
            with self.subTest(value=value):
                self.assertEqual(round_cents(value), 0)

    def test_clamp(self):
        self.assertEqual(clamp(50, 0, 10), 10)
        self.assertEqual(clamp(-1, 0, 10), 0)
        self.assertEqual(clamp(float("nan"), 0, 10), 0)

    def test_as_finite_number_fallback(self):
        self.assertEqual(as_finite_number("12.5"), 12.5)
        self.assertEqual(as_finite_number(True, 7), 7)
        self.assertEqual(as_finite_number(float("-inf"), 3), 3)


class ComputeTotalsTests(SimpleTestCase):
    def setUp(self):
        self.sheet = _sheet(
            batch_size=10,
            waste_pct=10,
            markup_pct=50,
            materials=[MaterialItem(id="m1", qty=10, unit_cost_cents=100)],
            overhead=[
                FlatOverhead(id="o1", amount_cents=50),
                PercentOverhead(id="o2", percent=10),
            ],
        )

    def test_batch_breakdown(self):
        totals = compute_totals(self.sheet)

        self.assertEqual(totals.materials_subtotal_cents, 1000)
        self.assertEqual(totals.materials_with_waste_cents, 1100)
        self.assertEqual(totals.labor_subtotal_cents, 0)
        self.assertEqual(totals.overhead_flat_cents, 50)
        self.assertEqual(totals.overhead_percent_cents, 110)
        self.assertEqual(totals.overhead_total_cents, 160)
        self.assertEqual(totals.batch_total_cents, 1260)

    def test_per_unit_pricing(self):
        totals = compute_totals(self.sheet)

        self.assertEqual(totals.cost_per_unit_cents, 126)
        self.assertEqual(totals.price_per_unit_cents, 189)
        self.assertEqual(totals.profit_per_unit_cents, 63)
        self.assertAlmostEqual(totals.margin_pct, 33.3)
        self.assertEqual(totals.price_per_unit_with_tax_cents, 189)

    def test_tax_is_added_on_top_of_price(self):
        self.sheet.tax_pct = 10

        totals = compute_totals(self.sheet)

        self.assertEqual(totals.price_per_unit_with_tax_cents, 208)

    def test_zero_batch_size_has_no_per_unit_values(self):
        self.sheet.batch_size = 0

        totals = compute_totals(self.sheet)

        self.assertEqual(totals.batch_total_cents, 1260)
        self.assertIsNone(totals.cost_per_unit_cents)
        self.assertIsNone(totals.price_per_unit_cents)
        self.assertIsNone(totals.profit_per_unit_cents)
        self.assertIsNone(totals.margin_pct)
        self.assertIsNone(totals.price_per_unit_with_tax_cents)

    def test_negative_and_nan_inputs_are_clamped(self):
        sheet = _sheet(
            batch_size=-4,
            waste_pct=float("nan"),
            markup_pct=-20,
            materials=[MaterialItem(id="m1", qty=-5, unit_cost_cents=100)],
            labor=[LaborItem(id="l1", hours=2, rate_cents=-300)],
        )

        totals = compute_totals(sheet)

        self.assertEqual(totals.materials_subtotal_cents, 0)
        self.assertEqual(totals.labor_subtotal_cents, 0)
        self.assertEqual(totals.batch_total_cents, 0)
        self.assertIsNone(totals.cost_per_unit_cents)

    def test_batch_total_is_never_negative(self):
        for qty, cost, hours, rate, waste in [(0, 0, 0, 0, 0), (0.333, 7, 1.5, 1999, 12.5), (1e6, 99999, 40, 5000, 1000)]:
            with self.subTest(qty=qty, cost=cost):
                sheet = _sheet(
                    waste_pct=waste,
                    materials=[MaterialItem(id="m", qty=qty, unit_cost_cents=cost)],
                    labor=[LaborItem(id="l", hours=hours, rate_cents=rate)],
                    overhead=[PercentOverhead(id="o", percent=waste)],
                )

                self.assertGreaterEqual(compute_totals(sheet).batch_total_cents, 0)

    def test_per_line_rounding_is_half_up(self):
        items = [MaterialItem(id="a", qty=0.5, unit_cost_cents=5), MaterialItem(id="b", qty=0.5, unit_cost_cents=5)]

        self.assertEqual(sum_material_cents(items), 6)

    def test_percent_overheads_do_not_compound(self):
        items = [PercentOverhead(id="a", percent=10), PercentOverhead(id="b", percent=10)]

        self.assertEqual(sum_overhead_percent_cents(items, 1000), 200)

    def test_percent_overhead_is_capped(self):
        self.assertEqual(sum_overhead_percent_cents([PercentOverhead(id="a", percent=5000)], 100), 1000)

    def test_zero_price_has_no_margin(self):
        totals = compute_totals(_sheet(batch_size=1))

        self.assertEqual(totals.price_per_unit_cents, 0)
        self.assertIsNone(totals.margin_pct)

    def test_demo_sheet(self):
        totals = compute_totals(create_demo_sheet())

        self.assertEqual(totals.materials_subtotal_cents, 4554)
        self.assertEqual(totals.materials_with_waste_cents, 4827)
        self.assertEqual(totals.labor_subtotal_cents, 5500)
        self.assertEqual(totals.overhead_total_cents, 1839)
        self.assertEqual(totals.batch_total_cents, 12166)
        self.assertEqual(totals.cost_per_unit_cents, 1217)
        self.assertEqual(totals.price_per_unit_cents, 1886)
        self.assertAlmostEqual(totals.margin_pct, 35.5)

    def test_to_dict_uses_camel_case_keys(self):
        data = compute_totals(self.sheet).to_dict()

        self.assertEqual(data["batchTotalCents"], 1260)
        self.assertEqual(data["pricePerUnitWithTaxCents"], 189)


class PurchaseMathTests(SimpleTestCase):
    def test_purchase_total(self):
        self.assertEqual(compute_purchase_total_cents(2.5, 101), 253)
        self.assertEqual(compute_purchase_total_cents(-1, 101), 0)

    def test_unit_cost_from_line_cost(self):
        self.assertEqual(compute_unit_cost_cents_from_cost(3, 1000), 333)
        self.assertEqual(compute_unit_cost_cents_from_cost(0, 1000), 0)


class BlankSheetTests(SimpleTestCase):
    def test_blank_sheet_uses_setting_defaults(self):
        settings = make_default_settings()
        settings.default_markup_pct = 65
        settings.base_currency = "EUR"

        sheet = make_blank_sheet("sheet_1", settings)

        self.assertEqual(sheet.id, "sheet_1")
        self.assertEqual(sheet.markup_pct, 65)
        self.assertEqual(sheet.currency, "EUR")
        self.assertEqual(len(sheet.materials), 1)
        self.assertEqual(len(sheet.labor), 1)
        self.assertEqual(sheet.overhead, [])
        self.assertEqual(sheet.created_at, sheet.updated_at)
