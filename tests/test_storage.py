import threading
import unittest
from unittest.mock import MagicMock, patch
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from incident_reports.services.storage import IncidentStore, StorageError, get_store


class TestIncidentStore(unittest.TestCase):

    def setUp(self):
        # One mock collection per table, created on first access
        self.collections = {}
        self.mock_db = MagicMock()
        self.mock_db.__getitem__.side_effect = lambda name: self.collections.setdefault(name, MagicMock())
        self.store = IncidentStore(self.mock_db)

    def test_fetch_all_sorts_by_identity(self):
        rows = [{"incident_id": 1, "title": "A"}, {"incident_id": 2, "title": "B"}]
        incidents = self.mock_db["incidents"]
        incidents.find.return_value.sort.return_value = iter(rows)

        result = self.store.fetch_all("incidents")

        self.assertEqual(result, rows)
        incidents.find.assert_called_once_with({}, {"_id": 0})
        incidents.find.return_value.sort.assert_called_once_with("incident_id", 1)

    def test_fetch_all_link_rows_keep_natural_order(self):
        rows = [{"type_of_force_id": 1, "incident_id": 1}]
        links = self.mock_db["incident_type_of_force"]
        links.find.return_value = iter(rows)

        result = self.store.fetch_all("incident_type_of_force")

        self.assertEqual(result, rows)

    def test_insert_assigns_next_identity(self):
        counters = self.mock_db["counters"]
        counters.find_one_and_update.return_value = {"_id": "sources", "seq": 7}
        row = {"incident_id": 1, "src_url": "https://twitter.com/x", "src_type": "post"}

        identity = self.store.insert("sources", row)

        self.assertEqual(identity, 7)
        counters.find_one_and_update.assert_called_once_with(
            {"_id": "sources"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        self.collections["sources"].insert_one.assert_called_once_with({**row, "src_id": 7})
        # The caller's row is left untouched
        self.assertNotIn("src_id", row)

    def test_insert_link_row_has_no_identity(self):
        identity = self.store.insert("incident_type_of_force", {"type_of_force_id": 1, "incident_id": 2})

        self.assertEqual(identity, 0)
        self.assertNotIn("counters", self.collections)
        self.collections["incident_type_of_force"].insert_one.assert_called_once_with(
            {"type_of_force_id": 1, "incident_id": 2}
        )

    def test_unknown_table(self):
        with self.assertRaises(ValueError):
            self.store.fetch_all("users")

    def test_errors_are_wrapped(self):
        self.mock_db["incidents"].find.side_effect = PyMongoError("down")

        with self.assertRaises(StorageError) as ctx:
            self.store.fetch_all("incidents")
        self.assertIsInstance(ctx.exception.__cause__, PyMongoError)

    def test_get_sources_by_incident(self):
        rows = [{"src_id": 1, "incident_id": 3}]
        sources = self.mock_db["sources"]
        sources.find.return_value.sort.return_value = iter(rows)

        self.assertEqual(self.store.get_sources_by_incident(3), rows)
        sources.find.assert_called_once_with({"incident_id": 3}, {"_id": 0})

    def test_find_tag(self):
        self.mock_db["type_of_force"].find_one.return_value = {"type_of_force_id": 4, "type_of_force": "taser"}

        self.assertEqual(self.store.find_tag("taser")["type_of_force_id"], 4)
        self.collections["type_of_force"].find_one.assert_called_once_with({"type_of_force": "taser"}, {"_id": 0})

    def test_get_or_create_tag_reuses_existing(self):
        self.mock_db["type_of_force"].find_one.return_value = {"type_of_force_id": 4, "type_of_force": "taser"}

        self.assertEqual(self.store.get_or_create_tag("taser"), 4)
        self.collections["type_of_force"].find_one_and_update.assert_not_called()
        self.assertNotIn("counters", self.collections)

    def test_get_or_create_tag_upserts_on_label(self):
        tags = self.mock_db["type_of_force"]
        tags.find_one.return_value = None
        tags.find_one_and_update.return_value = {"type_of_force_id": 6, "type_of_force": "taser"}
        self.mock_db["counters"].find_one_and_update.return_value = {"_id": "type_of_force", "seq": 6}

        self.assertEqual(self.store.get_or_create_tag("taser"), 6)
        tags.find_one_and_update.assert_called_once_with(
            {"type_of_force": "taser"},
            {"$setOnInsert": {"type_of_force_id": 6, "type_of_force": "taser"}},
            projection={"_id": 0},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        tags.insert_one.assert_not_called()

    def test_get_or_create_tag_after_duplicate_key(self):
        tags = self.mock_db["type_of_force"]
        tags.find_one.side_effect = [None, {"type_of_force_id": 2, "type_of_force": "taser"}]
        tags.find_one_and_update.side_effect = DuplicateKeyError("E11000 duplicate key")
        self.mock_db["counters"].find_one_and_update.return_value = {"_id": "type_of_force", "seq": 3}

        self.assertEqual(self.store.get_or_create_tag("taser"), 2)

    def test_get_or_create_tag_wraps_errors(self):
        self.mock_db["type_of_force"].find_one.return_value = None
        self.mock_db["counters"].find_one_and_update.side_effect = PyMongoError("down")

        with self.assertRaises(StorageError):
            self.store.get_or_create_tag("taser")

    def test_clear_drops_every_table(self):
        self.store.clear()

        dropped = [c.args[0] for c in self.mock_db.drop_collection.call_args_list]
        self.assertEqual(
            sorted(dropped),
            sorted(["incidents", "sources", "type_of_force", "incident_type_of_force", "counters"]),
        )

    @patch('incident_reports.services.storage.get_database')
    def test_get_store_uses_configured_database(self, mock_get_database):
        store = get_store()

        self.assertIsInstance(store, IncidentStore)
        mock_get_database.assert_called_once_with()
        mock_get_database.return_value.__getitem__.return_value.create_index.assert_called_once_with(
            "type_of_force", unique=True
        )


class _InMemoryCollection:
    """Minimal collection whose upserts are atomic, like MongoDB's."""

    def __init__(self, lookup_barrier=None):
        self.documents = []
        self._lock = threading.Lock()
        self._lookup_barrier = lookup_barrier

    def _match(self, query):
        for document in self.documents:
            if all(document.get(key) == value for key, value in query.items()):
                return document
        return None

    def find_one(self, query, projection=None):
        if self._lookup_barrier is not None:
            # Both writers finish their lookup before either one writes
            self._lookup_barrier.wait(timeout=5)
        with self._lock:
            document = self._match(query)
            return dict(document) if document else None

    def find_one_and_update(self, query, update, projection=None, upsert=False, return_document=None):
        with self._lock:
            document = self._match(query)
            if document is None and upsert:
                document = dict(query)
                document.update(update.get("$setOnInsert", {}))
                self.documents.append(document)
            for key, amount in update.get("$inc", {}).items():
                document[key] = document.get(key, 0) + amount
            return dict(document)


class TestConcurrentTagCreation(unittest.TestCase):

    def test_same_new_label_yields_one_definition(self):
        tags = _InMemoryCollection(lookup_barrier=threading.Barrier(2))
        collections = {"type_of_force": tags, "counters": _InMemoryCollection()}
        mock_db = MagicMock()
        mock_db.__getitem__.side_effect = lambda name: collections[name]
        store = IncidentStore(mock_db)

        ids = []
        workers = [threading.Thread(target=lambda: ids.append(store.get_or_create_tag("tear_gas"))) for _ in range(2)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        self.assertEqual(len(ids), 2)
        self.assertEqual(ids[0], ids[1])
        self.assertEqual(len(tags.documents), 1)
        self.assertEqual(tags.documents[0]["type_of_force"], "tear_gas")


if __name__ == '__main__':
    unittest.main()
