import unittest
from datetime import date, timezone

from mudbeaver.db import (
    BlogPost,
    ContactMessage,
    InternshipApplication,
    Requirement,
    SqlDbClient,
    UserRecord,
)
from mudbeaver.errors import PersistenceError
from mudbeaver.slugs import resolve_post


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")
        self.author = self.db.create_user(
            UserRecord(name="Admin", email="admin@example.com", role="admin")
        )

    def add_post(self, title, slug=None, published=True):
        return self.db.create_blog(
            BlogPost(
                title=title,
                content="Walls of rammed earth.",
                author_id=self.author.id,
                images=["https://media.example.test/a.png"],
                published=published,
                slug=slug,
            )
        )

    def test_user_roundtrip(self):
        user = self.db.get_user(self.author.id)
        self.assertTrue(user.is_admin)
        self.assertEqual(len(user.id), 24)

    def test_create_and_lookup_blog(self):
        post = self.add_post("Mud Houses", slug="mud-houses")
        self.assertEqual(self.db.get_blog(post.id).images, ["https://media.example.test/a.png"])
        self.assertEqual(self.db.find_blog_by_slug("mud-houses").id, post.id)
        self.assertIsNone(self.db.find_blog_by_slug("elsewhere"))
        self.assertEqual(post.created_at.tzinfo, timezone.utc)

    def test_resolution_against_sql_store(self):
        post = self.add_post("Mud Houses", slug="mud-houses")
        self.assertEqual(resolve_post(self.db, "mud-houses").id, post.id)
        self.assertEqual(resolve_post(self.db, post.id).id, post.id)

    def test_list_filters_by_publication(self):
        self.add_post("Visible", slug="visible")
        self.add_post("Draft", slug="draft", published=False)
        self.assertEqual([p.title for p in self.db.list_blogs(published=True)], ["Visible"])
        self.assertEqual(len(self.db.list_blogs()), 2)

    def test_duplicate_slug_is_a_persistence_error(self):
        self.add_post("Hello", slug="hello")
        with self.assertRaises(PersistenceError):
            self.add_post("Hello again", slug="hello")
        self.assertEqual(len(self.db.list_blogs()), 1)

    def test_many_posts_without_slug_are_allowed(self):
        self.add_post("Legacy one")
        self.add_post("Legacy two")
        self.assertEqual(len(self.db.list_blogs()), 2)

    def test_update_and_delete_blog(self):
        post = self.add_post("Mud Houses", slug="mud-houses")
        updated = self.db.update_blog(post.id, {"title": "Earth Houses", "slug": "earth-houses"})
        self.assertEqual(updated.slug, "earth-houses")
        self.assertGreaterEqual(updated.updated_at, post.updated_at)
        self.assertIsNone(self.db.update_blog("0" * 24, {"title": "x"}))
        self.assertTrue(self.db.delete_blog(post.id))
        self.assertFalse(self.db.delete_blog(post.id))

    def test_submission_status_update(self):
        requirement = self.db.create_submission(
            Requirement(username="Tashi", email="tashi@example.com", phone="123")
        )
        self.assertEqual(requirement.status, "new")
        updated = self.db.update_submission_status(Requirement, requirement.id, "quoted")
        self.assertEqual(updated.status, "quoted")
        self.assertIsNone(self.db.update_submission_status(Requirement, "0" * 24, "quoted"))

    def test_submissions_are_kept_per_kind(self):
        self.db.create_submission(
            ContactMessage(name="A", email="a@example.com", subject="s", message="m")
        )
        application = self.db.create_submission(
            InternshipApplication(
                name="B",
                email="b@example.com",
                phone="1",
                address="Road",
                city="Gangtok",
                region="Sikkim",
                zip_code="737101",
                institution="College",
                payment_screenshot="https://media.example.test/p.png",
                date_of_birth=date(2001, 1, 31),
            )
        )
        self.assertEqual(len(self.db.list_submissions(ContactMessage)), 1)
        self.assertEqual(len(self.db.list_submissions(Requirement)), 0)
        stored = self.db.get_submission(InternshipApplication, application.id)
        self.assertEqual(stored.date_of_birth, date(2001, 1, 31))
        self.assertEqual(stored.status, "pending")


if __name__ == "__main__":
    unittest.main()
