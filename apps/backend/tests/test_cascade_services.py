import unittest

from infrastructure.document_store import BATCH_LIMIT
from services import list_service, project_service
from services.article_service import ARTICLES_COLLECTION
from services.errors import InvalidRequestError, NotFoundError
from tests.fakes import InMemoryDocumentStore

UID = "user-1"


class ListCascadeTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()

    def _seed_articles(self, count, list_ids):
        for i in range(count):
            self.store.seed(ARTICLES_COLLECTION, f"a{i}", {"userId": UID, "listIds": list(list_ids)})

    def test_delete_list_strips_membership_in_batches(self):
        list_id = list_service.create_list(self.store, UID, "Research")
        self._seed_articles(BATCH_LIMIT + 120, [list_id, "other"])

        updated = list_service.delete_list(self.store, UID, list_id)

        self.assertEqual(updated, BATCH_LIMIT + 120)
        self.assertEqual(self.store.batch_sizes, [BATCH_LIMIT, 120])
        self.assertIsNone(self.store.get(list_service.LISTS_COLLECTION, list_id))
        for record in self.store.query(ARTICLES_COLLECTION):
            self.assertEqual(record["listIds"], ["other"])

    def test_membership_removal_is_idempotent(self):
        list_id = list_service.create_list(self.store, UID, "Research")
        self._seed_articles(3, [list_id])
        self.assertEqual(list_service.remove_list_from_articles(self.store, list_id), 3)
        self.assertEqual(list_service.remove_list_from_articles(self.store, list_id), 0)

    def test_default_lists_are_protected(self):
        list_service.ensure_default_lists(self.store, UID)
        for list_id in list_service.default_list_ids(UID):
            with self.assertRaises(InvalidRequestError) as ctx:
                list_service.delete_list(self.store, UID, list_id)
            self.assertEqual(ctx.exception.message, "Cannot delete default lists")
            with self.assertRaises(InvalidRequestError) as ctx:
                list_service.update_list(self.store, UID, list_id, {"name": "x"})
            self.assertEqual(ctx.exception.message, "Cannot edit default lists")

    def test_other_users_list_is_not_found(self):
        list_id = list_service.create_list(self.store, "someone-else", "Theirs")
        with self.assertRaises(NotFoundError):
            list_service.delete_list(self.store, UID, list_id)
        self.assertIsNotNone(self.store.get(list_service.LISTS_COLLECTION, list_id))

    def test_fetch_lists_puts_defaults_first(self):
        list_service.create_list(self.store, UID, "Old")
        list_service.create_list(self.store, UID, "New")
        names = [item["name"] for item in list_service.fetch_lists(self.store, UID)]
        self.assertEqual(names, ["Favourites", "Read Later", "New", "Old"])


class ProjectCascadeTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()

    def test_delete_project_moves_articles_to_default(self):
        project_id = project_service.create_project(self.store, UID, "Thesis")
        for i in range(BATCH_LIMIT + 1):
            self.store.seed(ARTICLES_COLLECTION, f"a{i}", {"userId": UID, "projectId": project_id})

        moved = project_service.delete_project(self.store, UID, project_id)

        default_id = project_service.default_project_id(UID)
        self.assertEqual(moved, BATCH_LIMIT + 1)
        self.assertEqual(self.store.batch_sizes, [BATCH_LIMIT, 1])
        self.assertIsNone(self.store.get(project_service.PROJECTS_COLLECTION, project_id))
        self.assertIsNotNone(self.store.get(project_service.PROJECTS_COLLECTION, default_id))
        projects = {r["projectId"] for r in self.store.query(ARTICLES_COLLECTION)}
        self.assertEqual(projects, {default_id})

    def test_default_project_cannot_be_deleted(self):
        with self.assertRaises(InvalidRequestError) as ctx:
            project_service.delete_project(self.store, UID, project_service.default_project_id(UID))
        self.assertEqual(ctx.exception.message, "Cannot delete default project")

    def test_legacy_ownerless_project_is_accessible(self):
        self.store.seed(project_service.PROJECTS_COLLECTION, "legacy", {"name": "Old data"})
        self.assertEqual(project_service.resolve_project_id(self.store, UID, "legacy"), "legacy")
        self.assertEqual(project_service.delete_project(self.store, UID, "legacy"), 0)

    def test_foreign_project_falls_back_to_default(self):
        foreign = project_service.create_project(self.store, "someone-else", "Theirs")
        resolved = project_service.resolve_project_id(self.store, UID, foreign)
        self.assertEqual(resolved, project_service.default_project_id(UID))


if __name__ == "__main__":
    unittest.main()
