import unittest

from mudbeaver.db import BlogPost, InMemoryDbClient
from mudbeaver.slugs import (
    RESOLUTION_STRATEGIES,
    assign_unique_slug,
    backfill_slugs,
    by_id,
    by_published_scan,
    by_slug,
    derive_slug,
    is_object_id,
    resolve_post,
)

TITLES = [
    "Mud Houses in Sikkim",
    "  Hello, World!  ",
    "---Already-Hyphenated---",
    "Ünïcödé Walls & Roofs",
    "2024: Year of Bamboo",
    "!!!",
    "",
    "CAPS_and_under_scores",
]


class DeriveSlugTests(unittest.TestCase):
    def test_shape(self):
        for title in TITLES:
            slug = derive_slug(title)
            self.assertEqual(slug, slug.lower())
            self.assertRegex(slug, r"^[a-z0-9-]*$")
            self.assertFalse(slug.startswith("-"), title)
            self.assertFalse(slug.endswith("-"), title)
            self.assertNotIn("--", slug)

    def test_examples(self):
        self.assertEqual(derive_slug("Mud Houses in Sikkim"), "mud-houses-in-sikkim")
        self.assertEqual(derive_slug("  Hello, World!  "), "hello-world")
        self.assertEqual(derive_slug("Ünïcödé Walls & Roofs"), "n-c-d-walls-roofs")
        self.assertEqual(derive_slug("!!!"), "")

    def test_idempotent(self):
        for title in TITLES:
            slug = derive_slug(title)
            self.assertEqual(derive_slug(title), slug)
            self.assertEqual(derive_slug(slug), slug)


class ObjectIdTests(unittest.TestCase):
    def test_classification(self):
        self.assertTrue(is_object_id("0123456789abcdef01234567"))
        self.assertTrue(is_object_id("0123456789ABCDEF01234567"))
        self.assertFalse(is_object_id("0123456789abcdef0123456"))
        self.assertFalse(is_object_id("mud-houses-in-sikkim"))
        self.assertFalse(is_object_id("0123456789abcdef0123456g"))


class ResolutionTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.post = self.db.create_blog(
            BlogPost(
                title="Mud Houses in Sikkim",
                content="...",
                author_id="a" * 24,
                published=True,
                slug="mud-houses-in-sikkim",
            )
        )

    def test_strategy_order(self):
        self.assertEqual(RESOLUTION_STRATEGIES, (by_slug, by_id, by_published_scan))

    def test_each_strategy_only_handles_its_shape(self):
        self.assertEqual(by_slug(self.db, "mud-houses-in-sikkim").id, self.post.id)
        self.assertIsNone(by_slug(self.db, self.post.id))
        self.assertEqual(by_id(self.db, self.post.id).id, self.post.id)
        self.assertIsNone(by_id(self.db, "mud-houses-in-sikkim"))
        self.assertEqual(by_published_scan(self.db, "mud-houses-in-sikkim").id, self.post.id)
        self.assertIsNone(by_published_scan(self.db, self.post.id))

    def test_resolve_by_slug_and_id(self):
        self.assertEqual(resolve_post(self.db, "mud-houses-in-sikkim").id, self.post.id)
        self.assertEqual(resolve_post(self.db, self.post.id).id, self.post.id)
        self.assertIsNone(resolve_post(self.db, "missing"))
        self.assertIsNone(resolve_post(self.db, "f" * 24))

    def test_resolve_ignores_publication_state(self):
        self.db.update_blog(self.post.id, {"published": False})
        found = resolve_post(self.db, "mud-houses-in-sikkim")
        self.assertIsNotNone(found)
        self.assertFalse(found.published)

    def test_scan_fallback_used_when_indexed_lookup_misses(self):
        def miss(db, identifier):
            return None

        found = resolve_post(self.db, "mud-houses-in-sikkim", (miss, by_published_scan))
        self.assertEqual(found.id, self.post.id)


class UniqueSlugTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def add(self, title, slug=None, published=True):
        return self.db.create_blog(
            BlogPost(title=title, content="...", author_id="a" * 24, slug=slug, published=published)
        )

    def test_suffixes_until_free(self):
        self.add("Hello World", slug="hello-world")
        self.add("Hello World!", slug="hello-world-2")
        self.assertEqual(assign_unique_slug(self.db, "hello, world"), "hello-world-3")

    def test_own_slug_is_not_a_collision(self):
        post = self.add("Hello World", slug="hello-world")
        self.assertEqual(
            assign_unique_slug(self.db, "Hello World", exclude_id=post.id), "hello-world"
        )

    def test_unsluggable_title(self):
        self.assertIsNone(assign_unique_slug(self.db, "???"))

    def test_id_shaped_slug_is_suffixed(self):
        self.assertEqual(
            assign_unique_slug(self.db, "deadbeefdeadbeefdeadbeef"), "deadbeefdeadbeefdeadbeef-2"
        )
        self.assertEqual(
            assign_unique_slug(self.db, "DEADBEEF deadbeef DEADBEEF"), "deadbeef-deadbeef-deadbeef"
        )

    def test_taken_slugs_are_skipped(self):
        self.assertEqual(
            assign_unique_slug(self.db, "Legacy", taken={"legacy", "legacy-2"}), "legacy-3"
        )

    def test_backfill_dry_run_matches_real_run(self):
        first = self.add("Legacy")
        second = self.add("Legacy")

        planned = backfill_slugs(self.db, dry_run=True)
        self.assertEqual(planned, [(first.id, "legacy"), (second.id, "legacy-2")])
        self.assertIsNone(self.db.get_blog(first.id).slug)
        self.assertEqual(backfill_slugs(self.db), planned)

    def test_backfill_is_idempotent(self):
        older = self.add("Earth Bags")
        newer = self.add("Earth bags", published=False)
        keep = self.add("Cob Ovens", slug="cob-ovens")

        self.assertEqual(backfill_slugs(self.db, dry_run=True), [
            (older.id, "earth-bags"),
            (newer.id, "earth-bags-2"),
        ])
        self.assertIsNone(self.db.get_blog(older.id).slug)

        assigned = dict(backfill_slugs(self.db))
        self.assertEqual(assigned, {older.id: "earth-bags", newer.id: "earth-bags-2"})
        self.assertEqual(self.db.get_blog(keep.id).slug, "cob-ovens")
        self.assertEqual(backfill_slugs(self.db), [])


if __name__ == "__main__":
    unittest.main()
