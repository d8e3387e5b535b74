# caching/tests/test_cache.py

from django.contrib.auth import get_user_model
from django.core.cache.backends.locmem import LocMemCache
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from caching import cache as cache_module
from caching import keys
from caching.cache import LedgerCache, get_ledger_cache
from caching.router import DataType, InvalidationRouter

User = get_user_model()


def _backend(name):
    return LocMemCache(name, {})


class LedgerCacheTests(SimpleTestCase):
    """
    Read-through cache.

    GUARANTEES:
    - TTLs are clamped to the configured window
    - Prefix deletion removes exactly the matching keys
    - Hit/miss counters reflect lookups
    """

    def setUp(self):
        self.cache = LedgerCache(_backend("ledger-cache-tests"), default_ttl=300, ttl_min=300, ttl_max=900)
        self.cache.clear()
        self.cache.reset_stats()

    def test_ttl_clamped(self):
        self.assertEqual(self.cache.clamp_ttl(10), 300)
        self.assertEqual(self.cache.clamp_ttl(5000), 900)
        self.assertEqual(self.cache.clamp_ttl(600), 600)
        self.assertEqual(self.cache.clamp_ttl(None), 300)

    def test_get_set_and_stats(self):
        self.assertIsNone(self.cache.get("bills:list:sale:all"))
        self.cache.set("bills:list:sale:all", {"rows": 1})
        self.assertEqual(self.cache.get("bills:list:sale:all"), {"rows": 1})

        stats = self.cache.stats()
        self.assertEqual(stats["hits"], 1)
        self.assertEqual(stats["misses"], 1)
        self.assertEqual(stats["sets"], 1)
        self.assertEqual(stats["total_keys"], 1)
        self.assertEqual(stats["hit_rate"], 0.5)

    def test_get_or_set_computes_once(self):
        calls = []

        def compute():
            calls.append(1)
            return [1, 2, 3]

        self.assertEqual(self.cache.get_or_set("stocks:list:all", compute), [1, 2, 3])
        self.assertEqual(self.cache.get_or_set("stocks:list:all", compute), [1, 2, 3])
        self.assertEqual(len(calls), 1)

    def test_delete_by_prefix(self):
        self.cache.set("bills:list:sale:all", 1)
        self.cache.set("bills:list:purchase:all", 2)
        self.cache.set("bills:bill:sale:abc", 3)
        self.cache.set("stocks:list:all", 4)

        removed = self.cache.delete_by_prefix("bills:list:")

        self.assertEqual(removed, 2)
        self.assertIsNone(self.cache.get("bills:list:sale:all"))
        self.assertEqual(self.cache.get("bills:bill:sale:abc"), 3)
        self.assertEqual(self.cache.get("stocks:list:all"), 4)
        self.assertEqual(self.cache.keys("bills"), ["bills:bill:sale:abc"])

    def test_index_prefix_reserved(self):
        with self.assertRaises(ValueError):
            self.cache.set("__keys__:bills", [])
        with self.assertRaises(ValueError):
            self.cache.set("__gen__:bills", 1)

    def test_clear_drops_every_namespace(self):
        self.cache.set("bills:list:sale:all", 1)
        self.cache.set("stocks:list:all", 2)

        self.assertEqual(self.cache.clear(), 2)
        self.assertEqual(self.cache.keys(), [])


class InvalidationRouterTests(SimpleTestCase):
    """
    Data type -> prefix routing.

    GUARANTEES:
    - invalidate() removes every key owned by the named data types
    - Unrelated namespaces survive
    - Bad input is reported as 0 removed, never raised
    """

    def setUp(self):
        self.cache = LedgerCache(_backend("ledger-router-tests"))
        self.cache.clear()
        self.router = InvalidationRouter(self.cache)

    def test_invalidate_bills(self):
        self.cache.set(keys.bills_list("sale"), 1)
        self.cache.set(keys.bill_detail("sale:1"), 2)
        self.cache.set(keys.stocks_list(), 3)

        removed = self.router.invalidate([DataType.BILLS])

        self.assertEqual(removed, 2)
        self.assertEqual(self.cache.get(keys.stocks_list()), 3)

    def test_string_names_accepted(self):
        self.cache.set(keys.stocks_list({"q": "main"}), 1)
        self.assertEqual(self.router.invalidate(["stocks"]), 1)

    def test_related_sweeps_related_namespaces(self):
        self.cache.set(keys.product_detail("p1"), 1)
        self.cache.set(keys.movement_stats(), 2)

        removed = self.router.invalidate([DataType.STOCKS], related=True)

        self.assertEqual(removed, 2)

    def test_unknown_type_reports_zero(self):
        self.cache.set(keys.stocks_list(), 1)

        self.assertEqual(self.router.invalidate(["nope"]), 0)
        self.assertEqual(self.cache.get(keys.stocks_list()), 1)


class SharedBackendInvalidationTests(SimpleTestCase):
    """
    Several workers sharing one backend (Redis / Memcached in production).

    GUARANTEES:
    - Invalidation by any worker hides entries written by every worker
    - Losing the key index never leaves a stale entry readable
    - An entry computed before an invalidation is not served after it
    """

    def setUp(self):
        self.backend = _backend("ledger-shared-tests")
        self.backend.clear()
        self.worker_a = LedgerCache(self.backend)
        self.worker_b = LedgerCache(self.backend)

    def test_invalidation_reaches_entries_of_other_workers(self):
        self.worker_a.set(keys.product_detail("p1"), {"current_stock": 40})
        self.worker_b.set(keys.product_detail("p2"), {"current_stock": 10})

        InvalidationRouter(self.worker_b).invalidate([DataType.INVENTORY])

        self.assertIsNone(self.worker_a.get(keys.product_detail("p1")))
        self.assertIsNone(self.worker_b.get(keys.product_detail("p2")))

    def test_lost_index_update_does_not_leave_stale_entry(self):
        self.worker_a.set(keys.product_detail("p1"), {"current_stock": 40})
        self.worker_b.set(keys.product_detail("p2"), {"current_stock": 10})

        # Concurrent read-modify-write: worker B's index write drops worker A's entry.
        index_key = f"{cache_module.INDEX_PREFIX}inventory"
        self.backend.set(index_key, [k for k in self.backend.get(index_key) if "p1" not in k], None)

        InvalidationRouter(self.worker_b).invalidate([DataType.INVENTORY])

        self.assertIsNone(self.worker_a.get(keys.product_detail("p1")))
        self.assertIsNone(self.worker_b.get(keys.product_detail("p1")))

    def test_write_after_invalidation_is_not_served(self):
        key = keys.bill_detail("sale:1")
        stale = self.worker_a._stored_key(key)

        InvalidationRouter(self.worker_b).invalidate([DataType.BILLS])
        # Worker A finishes a read computed before the invalidation.
        self.backend.set(stale, {"remaining_amount": "60.00"}, 300)

        self.assertIsNone(self.worker_b.get(key))
        self.assertIsNone(self.worker_a.get(key))

    def test_unsupported_prefix_rejected(self):
        with self.assertRaises(ValueError):
            self.worker_a.delete_by_prefix("stocks:stock_products:abc")


class CacheApiTests(TestCase):
    """
    /api/cache/

    GUARANTEES:
    - Stats are readable by any authenticated user
    - Invalidate / flush are staff-only
    """

    def setUp(self):
        get_ledger_cache().clear()
        self.user = User.objects.create_user(username="viewer", password="password123")
        self.admin = User.objects.create_user(username="ops", password="password123", is_staff=True)
        self.client = APIClient()

    def test_stats(self):
        self.client.force_authenticate(user=self.user)

        res = self.client.get("/api/cache/stats/")

        self.assertEqual(res.status_code, 200)
        self.assertIn("hit_rate", res.data["data"])

    def test_flush_requires_staff(self):
        self.client.force_authenticate(user=self.user)
        self.assertEqual(self.client.post("/api/cache/flush/").status_code, 403)

        get_ledger_cache().set(keys.stocks_list(), [1])
        self.client.force_authenticate(user=self.admin)
        res = self.client.post("/api/cache/flush/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["keys_removed"], 1)

    def test_invalidate_validates_types(self):
        self.client.force_authenticate(user=self.admin)

        bad = self.client.post("/api/cache/invalidate/", {"types": ["nope"]}, format="json")
        self.assertEqual(bad.status_code, 400)

        get_ledger_cache().set(keys.bills_list("sale"), [1])
        ok = self.client.post("/api/cache/invalidate/", {"types": ["bills"]}, format="json")
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.data["data"]["keys_removed"], 1)
