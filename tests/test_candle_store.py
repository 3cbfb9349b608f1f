import threading
import unittest
from datetime import datetime, timezone

from app.candles.store import CandleStore, format_bucket

H02 = datetime(2025, 6, 24, 2, tzinfo=timezone.utc)
H03 = datetime(2025, 6, 24, 3, tzinfo=timezone.utc)


class TestCandleStore(unittest.TestCase):
    def test_upsert_creates_then_updates(self):
        store = CandleStore()

        first, created = store.upsert("CapeTown", H02, 16.0)
        self.assertTrue(created)
        self.assertEqual((first.open, first.close), (16.0, 16.0))

        second, created = store.upsert("CapeTown", H02, 18.0)
        self.assertFalse(created)
        self.assertEqual((second.open, second.high, second.close), (16.0, 18.0, 18.0))

    def test_upsert_returns_copy(self):
        store = CandleStore()
        candle, _ = store.upsert("CapeTown", H02, 16.0)
        candle.high = 50

        self.assertEqual(store.snapshot("CapeTown")[0].high, 16.0)

    def test_snapshot_sorted_and_detached(self):
        store = CandleStore()
        store.upsert("CapeTown", H03, 1.0)
        store.upsert("CapeTown", H02, 2.0)

        snap = store.snapshot("CapeTown")
        self.assertEqual([c.timestamp for c in snap], ["2025-06-24T02:00:00Z", "2025-06-24T03:00:00Z"])

        store.upsert("CapeTown", H02, 5.0)
        self.assertEqual(snap[0].close, 2.0)

    def test_unknown_city(self):
        store = CandleStore()
        self.assertEqual(store.snapshot("Nowhere"), [])
        self.assertFalse(store.has_city("Nowhere"))
        store.upsert("CapeTown", H02, 1.0)
        self.assertTrue(store.has_city("CapeTown"))

    def test_format_bucket(self):
        self.assertEqual(format_bucket(H02), "2025-06-24T02:00:00Z")

    def test_concurrent_writers_and_readers(self):
        store = CandleStore()
        errors: list[str] = []

        def write(offset: int) -> None:
            for i in range(500):
                store.upsert("CapeTown", H02, float((i + offset) % 100 - 40))

        def read() -> None:
            for _ in range(500):
                for c in store.snapshot("CapeTown"):
                    if not (c.low <= c.open <= c.high and c.low <= c.close <= c.high):
                        errors.append(repr(c))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=read) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        [c] = store.snapshot("CapeTown")
        self.assertEqual((c.low, c.high), (-40.0, 59.0))


if __name__ == "__main__":
    unittest.main()
