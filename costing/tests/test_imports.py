from django.test import SimpleTestCase

from costing.demo_data import create_demo_materials
from costing.domain_models import MaterialRecord
from costing.services.header_contracts import (
    MATERIAL_HEADERS,
    parse_header_row,
    validate_headers,
    validate_purchase_headers,
)
from costing.services.import_pipeline import validate_and_normalize
from costing.services.import_rules import MARKETPLACE_OPTIONS, resolve_imported_select_value
from costing.services.material_import import materials_from_tsv
from costing.services.purchase_import import (
    parse_amount,
    parse_money_cents,
    parse_purchase_date,
    purchases_from_tsv,
)

PURCHASE_HEADER = "Description\tQuantity\tCost\tUsable Quantity\tPurchase Date"


class HeaderContractTests(SimpleTestCase):
    def test_valid_purchase_header(self):
        result = validate_purchase_headers(PURCHASE_HEADER + "\tStore\nCanvas\t1\t2\t1\t2026-01-01\tShop")

        self.assertTrue(result.ok)
        self.assertEqual(result.message, "Purchases-specific header validation passed.")

    def test_leading_blank_lines_are_skipped(self):
        self.assertEqual(parse_header_row("\n  \nA\t B \tC"), ["A", "B", "C"])

    def test_empty_header(self):
        result = validate_purchase_headers("")

        self.assertFalse(result.ok)
        self.assertEqual(result.reason, "Validation failed: header row is empty.")

    def test_empty_column_names(self):
        result = validate_purchase_headers("Description\t\tCost\t")

        self.assertEqual(
            result.reason,
            "Validation failed: header has empty column names at position(s): 2, 4.",
        )

    def test_duplicate_headers(self):
        result = validate_purchase_headers(PURCHASE_HEADER + "\tStore\tStore")

        self.assertEqual(result.reason, "Validation failed: duplicate header(s): Store.")

    def test_unsupported_headers_list_allowed_names(self):
        result = validate_purchase_headers(PURCHASE_HEADER + "\tColor")

        self.assertEqual(
            result.reason,
            "Validation failed: unsupported header(s): Color. Allowed headers: Description, Quantity, "
            "Cost, Usable Quantity, Purchase Date, Material, Variation, Marketplace, Store.",
        )

    def test_missing_required_headers(self):
        result = validate_purchase_headers("Description\tQuantity\tCost")

        self.assertEqual(
            result.reason,
            "Validation failed: missing required header(s): Usable Quantity, Purchase Date.",
        )

    def test_header_names_are_case_sensitive(self):
        result = validate_headers("name\tUnit\tUnit Cost", MATERIAL_HEADERS)

        self.assertFalse(result.ok)
        self.assertIn("unsupported header(s): name.", result.reason)


class SelectValueTests(SimpleTestCase):
    def test_value_and_alias_matching(self):
        self.assertEqual(resolve_imported_select_value(" Shopee ", MARKETPLACE_OPTIONS), "shopee")
        self.assertEqual(resolve_imported_select_value("LZD", MARKETPLACE_OPTIONS), "lazada")
        self.assertEqual(resolve_imported_select_value("In Store", MARKETPLACE_OPTIONS), "local")
        self.assertIsNone(resolve_imported_select_value("ebay", MARKETPLACE_OPTIONS))
        self.assertIsNone(resolve_imported_select_value("", MARKETPLACE_OPTIONS))


class AmountParsingTests(SimpleTestCase):
    def test_parse_amount(self):
        self.assertEqual(parse_amount("$1,234.50"), 1234.5)
        self.assertEqual(parse_amount("12"), 12.0)
        self.assertIsNone(parse_amount("n/a"))
        self.assertIsNone(parse_amount(""))

    def test_parse_money_cents(self):
        self.assertEqual(parse_money_cents("$3.99"), 399)
        self.assertEqual(parse_money_cents("6.25"), 625)
        self.assertIsNone(parse_money_cents("free"))

    def test_parse_purchase_date(self):
        self.assertEqual(parse_purchase_date("2026-02-10"), "2026-02-10")
        self.assertEqual(parse_purchase_date("03/04/2026", "dd/MM/yyyy"), "2026-04-03")
        self.assertEqual(parse_purchase_date("03/04/2026", "MM/dd/yyyy"), "2026-03-04")
        self.assertIsNone(parse_purchase_date("soon"))
        self.assertIsNone(parse_purchase_date("  "))

    def test_iso_is_accepted_whatever_the_setting(self):
        self.assertEqual(parse_purchase_date("2026-02-10", "dd/MM/yyyy"), "2026-02-10")

    def test_words_and_partial_dates_are_rejected(self):
        for value in ("today", "now", "2024", "2024-02", "Feb 10 2026", "13/13/2026", "2026-02-30"):
            with self.subTest(value=value):
                self.assertIsNone(parse_purchase_date(value, "MM/dd/yyyy"))

    def test_word_dates_become_row_warnings(self):
        tsv = PURCHASE_HEADER + "\nCanvas\t1\t5\t1\ttoday\nThread\t1\t2\t1\t2024"

        result = purchases_from_tsv(tsv)

        self.assertEqual(result.records, [])
        self.assertEqual(
            result.warnings,
            ["Row 2: Purchase Date is not a valid date.", "Row 3: Purchase Date is not a valid date."],
        )


class PurchaseImportTests(SimpleTestCase):
    def setUp(self):
        self.materials = create_demo_materials()

    def test_rows_become_purchase_records(self):
        tsv = (
            PURCHASE_HEADER + "\tMaterial\tMarketplace\tStore\n"
            "12oz canvas\t10\t$60.00\t9.5\t2026-02-10\tcanvas fabric\tShopee\tMetro Textile\n"
            "Thread\t4\t10\t4\t2026-02-11\tTHREAD-BLK\tLocal\tCorner shop"
        )

        result = purchases_from_tsv(tsv, materials=self.materials, currency="usd")

        self.assertTrue(result.ok)
        self.assertEqual(result.warnings, [])
        canvas, thread = result.records
        self.assertEqual(canvas.material_id, "material_demo_canvas")
        self.assertEqual(canvas.unit, "yd")
        self.assertEqual(canvas.quantity, 10)
        self.assertEqual(canvas.usable_quantity, 9.5)
        self.assertEqual(canvas.cost_cents, 6000)
        self.assertEqual(canvas.unit_cost_cents, 600)
        self.assertEqual(canvas.total_cost_cents, 6000)
        self.assertEqual(canvas.marketplace, "shopee")
        self.assertEqual(canvas.currency, "USD")
        self.assertEqual(canvas.purchase_date, "2026-02-10")
        self.assertEqual(thread.material_id, "material_demo_thread")
        self.assertEqual(thread.unit_cost_cents, 250)
        self.assertEqual(thread.supplier, "Corner shop")

    def test_unknown_values_produce_warnings(self):
        tsv = (
            PURCHASE_HEADER + "\tMaterial\tMarketplace\tStore\n"
            "Mystery\t2\t5\t2\t2026-02-11\tUnobtainium\teBay\tNowhere"
        )

        result = purchases_from_tsv(tsv, materials=self.materials)

        record = result.records[0]
        self.assertIsNone(record.material_id)
        self.assertEqual(record.material_name, "Unobtainium")
        self.assertEqual(record.marketplace, "other")
        self.assertEqual(len(result.warnings), 2)

    def test_missing_marketplace_defaults_to_local(self):
        tsv = PURCHASE_HEADER + "\tMarketplace\tStore\nCanvas\t1\t5\t1\t2026-02-11\t\tShop"

        result = purchases_from_tsv(tsv)

        self.assertEqual(result.records[0].marketplace, "local")

    def test_bad_rows_are_skipped(self):
        tsv = (
            PURCHASE_HEADER + "\n"
            "Good\t1\t5\t1\t2026-02-11\n"
            "Bad qty\tlots\t5\t1\t2026-02-11\n"
            "Bad date\t1\t5\t1\tyesterday-ish"
        )

        result = purchases_from_tsv(tsv)

        self.assertTrue(result.ok)
        self.assertEqual([record.description for record in result.records], ["Good"])
        self.assertEqual(
            result.warnings,
            [
                "Row 3: Quantity and Usable Quantity must be numbers.",
                "Row 4: Purchase Date is not a valid date.",
            ],
        )

    def test_header_problems_fail_the_import(self):
        result = purchases_from_tsv("Description\tQuantity\nA\t1")

        self.assertFalse(result.ok)
        self.assertIn("missing required header(s)", result.reason)

    def test_pasted_csv_flows_through_validation(self):
        raw = (
            "Description,Quantity,Cost,Usable Quantity,Purchase Date,Store\n"
            'Canvas,2,"$1,250.00",2,2026-02-12,Metro\n'
            "Thread,1,3.99,1,2026-02-13,Metro"
        )

        validation = validate_and_normalize(raw)
        result = purchases_from_tsv(validation.tsv)

        self.assertTrue(validation.converted_from_csv)
        self.assertEqual([record.cost_cents for record in result.records], [125000, 399])
        self.assertEqual(result.records[0].unit_cost_cents, 62500)


class MaterialImportTests(SimpleTestCase):
    def test_codes_continue_from_existing_catalog(self):
        existing = [MaterialRecord(id="m1", code="MAT-0007")]
        tsv = "Name\tUnit\tUnit Cost\tCode\nCanvas\tyd\t6.25\t\nThread\tspool\t$3.99\tthr-1\nTape\troll\t2\t"

        result = materials_from_tsv(tsv, existing=existing)

        self.assertTrue(result.ok)
        self.assertEqual([record.code for record in result.records], ["MAT-0008", "THR-1", "MAT-0009"])
        self.assertEqual([record.unit_cost_cents for record in result.records], [625, 399, 200])

    def test_invalid_cost_is_reported(self):
        result = materials_from_tsv("Name\tUnit\tUnit Cost\nCanvas\tyd\tcheap")

        self.assertEqual(result.records, [])
        self.assertEqual(result.warnings, ["Row 2: Unit Cost must be a number."])

    def test_wrong_headers(self):
        result = materials_from_tsv("Name\tPrice\nCanvas\t1")

        self.assertFalse(result.ok)
