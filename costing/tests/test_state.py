from django.test import SimpleTestCase

from costing.app_settings import (
    SETTINGS_COLLECTION,
    SETTINGS_RECORD_ID,
    load_settings,
    make_default_settings,
    normalize_settings,
    save_settings,
)
from costing.state import DuplicateRecordError, RecordNotFoundError, RecordStore, RecordStoreError, WriteCoalescer


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class RecordStoreTests(SimpleTestCase):
    def setUp(self):
        self.store = RecordStore()

    def test_insert_get_list(self):
        self.store.insert("alice", "materials", {"id": "m1", "name": "Canvas"})

        self.assertEqual(self.store.get("alice", "materials", "m1")["name"], "Canvas")
        self.assertEqual(len(self.store.list("alice", "materials")), 1)
        self.assertIsNone(self.store.get("bob", "materials", "m1"))
        self.assertEqual(self.store.list("bob", "materials"), [])

    def test_records_are_copied(self):
        record = {"id": "m1", "tags": ["a"]}
        self.store.insert("alice", "materials", record)
        record["tags"].append("b")

        fetched = self.store.get("alice", "materials", "m1")
        fetched["tags"].append("c")

        self.assertEqual(self.store.get("alice", "materials", "m1")["tags"], ["a"])

    def test_insert_requires_id(self):
        with self.assertRaises(RecordStoreError):
            self.store.insert("alice", "materials", {"name": "x"})

    def test_duplicate_insert(self):
        self.store.insert("alice", "materials", {"id": "m1"})
        with self.assertRaises(DuplicateRecordError):
            self.store.insert("alice", "materials", {"id": "m1"})

    def test_update_and_delete_missing(self):
        with self.assertRaises(RecordNotFoundError):
            self.store.update("alice", "materials", {"id": "nope"})
        with self.assertRaises(RecordNotFoundError):
            self.store.delete("alice", "materials", "nope")

    def test_upsert(self):
        self.store.upsert("alice", "sheets", {"id": "s1", "name": "A"})
        self.store.upsert("alice", "sheets", {"id": "s1", "name": "B"})

        self.assertEqual(self.store.list("alice", "sheets"), [{"id": "s1", "name": "B"}])


class WriteCoalescerTests(SimpleTestCase):
    def setUp(self):
        self.store = RecordStore()
        self.clock = FakeClock()
        self.coalescer = WriteCoalescer(self.store, delay_seconds=0.6, clock=self.clock)

    def test_last_write_wins(self):
        for name in ("a", "ab", "abc"):
            self.coalescer.schedule("alice", "sheets", {"id": "s1", "name": name})

        self.assertEqual(self.coalescer.pending_count(), 1)
        self.clock.now += 1
        self.assertEqual(self.coalescer.flush(), 1)
        self.assertEqual(self.store.get("alice", "sheets", "s1")["name"], "abc")

    def test_nothing_is_written_before_the_delay(self):
        self.coalescer.schedule("alice", "sheets", {"id": "s1"})
        self.clock.now += 0.3

        self.assertEqual(self.coalescer.flush(), 0)
        self.assertIsNone(self.store.get("alice", "sheets", "s1"))
        self.assertEqual(self.coalescer.pending_count(), 1)

    def test_force_flush(self):
        self.coalescer.schedule("alice", "sheets", {"id": "s1"})
        self.coalescer.schedule("bob", "sheets", {"id": "s1"})

        self.assertEqual(self.coalescer.flush(force=True), 2)
        self.assertEqual(self.coalescer.pending_count(), 0)
        self.assertIsNotNone(self.store.get("bob", "sheets", "s1"))

    def test_rescheduling_restarts_the_delay(self):
        self.coalescer.schedule("alice", "sheets", {"id": "s1", "name": "a"})
        self.clock.now += 0.5
        self.coalescer.schedule("alice", "sheets", {"id": "s1", "name": "b"})
        self.clock.now += 0.5

        self.assertEqual(self.coalescer.flush(), 0)


class AppSettingsTests(SimpleTestCase):
    def setUp(self):
        self.store = RecordStore()

    def test_defaults(self):
        settings = make_default_settings("2026-01-01T00:00:00.000Z")

        self.assertEqual(settings.base_currency, "USD")
        self.assertEqual(settings.default_markup_pct, 40)
        self.assertEqual(len(settings.uom_conversions), 6)
        self.assertEqual(settings.created_at, "2026-01-01T00:00:00.000Z")

    def test_normalize_clamps_and_falls_back(self):
        settings = normalize_settings(
            {
                "baseCurrency": "eur",
                "dateFormat": "yyyy/MM/dd",
                "currencyRoundingIncrement": 500,
                "defaultMarkupPct": -10,
                "defaultWastePct": "abc",
                "currencyDisplay": "code",
                "uomConversions": [{"fromUnit": "kg", "toUnit": "g", "factor": 1000}, {"fromUnit": "x"}],
            }
        )

        self.assertEqual(settings.base_currency, "EUR")
        self.assertEqual(settings.date_format, "MM/dd/yyyy")
        self.assertEqual(settings.currency_rounding_increment, 100)
        self.assertEqual(settings.default_markup_pct, 0)
        self.assertEqual(settings.default_waste_pct, 0)
        self.assertEqual(settings.currency_display, "code")
        self.assertEqual([conv.id for conv in settings.uom_conversions], ["kg_g"])

    def test_normalize_non_dict(self):
        self.assertEqual(normalize_settings(None).default_markup_pct, 40)

    def test_load_creates_defaults_once(self):
        first = load_settings(self.store, "alice", "php")

        self.assertEqual(first.base_currency, "PHP")
        self.assertIsNotNone(self.store.get("alice", SETTINGS_COLLECTION, SETTINGS_RECORD_ID))
        self.assertEqual(load_settings(self.store, "alice", "USD").base_currency, "PHP")

    def test_save_round_trips_through_store(self):
        settings = load_settings(self.store, "alice")
        settings.default_markup_pct = 75

        save_settings(self.store, "alice", settings)

        self.assertEqual(load_settings(self.store, "alice").default_markup_pct, 75)
