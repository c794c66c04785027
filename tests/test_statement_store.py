"""
Statement Store Tests

TEST FOCUS:
- In-memory store: id/stored assignment, queries, inclusive ranges, delete
- Mongo store: document mapping and queries against a mocked collection
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from lrs_api.services.statement_store import InMemoryStatementStore, MongoStatementStore
from tests.conftest import VERB_NS, make_statement


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestInMemoryStore:
    """Dict-backed store used for local runs and tests."""

    @pytest.fixture
    def store(self):
        return InMemoryStatementStore()

    def test_save_assigns_id_and_stored(self, store):
        saved = store.save(make_statement())
        assert saved.id
        assert saved.stored is not None
        assert store.find_by_id(saved.id) == saved

    def test_save_keeps_given_id(self, store):
        saved = store.save(make_statement(statement_id="fixed-id"))
        assert saved.id == "fixed-id"
        assert store.find_by_id("fixed-id") is not None

    def test_find_by_id_missing(self, store):
        assert store.find_by_id("nope") is None

    def test_find_all_in_insertion_order(self, store):
        ids = [store.save(make_statement(actor_id=f"a-{i}")).id for i in range(3)]
        assert [s.id for s in store.find_all()] == ids

    def test_find_by_actor_name_and_verb(self, store):
        store.save(make_statement(actor_name="Ama", verb="completed"))
        store.save(make_statement(actor_name="Kofi", verb="viewed"))
        store.save(make_statement(actor_name="Ama", verb="viewed"))

        assert len(store.find_by_actor_name("Ama")) == 2
        assert len(store.find_by_verb_id(f"{VERB_NS}viewed")) == 2
        assert store.find_by_actor_name("Nobody") == []

    def test_timestamp_range_is_inclusive(self, store):
        store.save(make_statement(timestamp=_utc(2025, 1, 1)))
        store.save(make_statement(timestamp=_utc(2025, 1, 15)))
        store.save(make_statement(timestamp=_utc(2025, 1, 31)))
        store.save(make_statement(timestamp=_utc(2025, 2, 1, 0, 0, 1)))
        store.save(make_statement(timestamp=None))

        found = store.find_by_timestamp_range(_utc(2025, 1, 1), _utc(2025, 1, 31))
        assert len(found) == 3

    def test_timestamp_range_accepts_naive_bounds(self, store):
        store.save(make_statement(timestamp=_utc(2025, 1, 15)))
        found = store.find_by_timestamp_range(datetime(2025, 1, 1), datetime(2025, 1, 31))
        assert len(found) == 1

    def test_delete(self, store):
        saved = store.save(make_statement())
        assert store.delete_by_id(saved.id) is True
        assert store.find_by_id(saved.id) is None
        assert store.delete_by_id(saved.id) is False

    def test_returned_statements_are_copies(self, store):
        saved = store.save(make_statement(actor_name="Ama"))

        store.find_all()[0].actor.name = "changed"
        store.find_by_id(saved.id).object.definition.name["en-US"] = "changed"
        saved.actor.name = "changed too"

        kept = store.find_by_id(saved.id)
        assert kept.actor.name == "Ama"
        assert kept.object.definition.name == {"en-US": "Intro to Algebra"}

    def test_clear(self, store):
        store.save(make_statement())
        store.clear()
        assert store.find_all() == []


class TestMongoStore:
    """pymongo collection calls, with the collection mocked."""

    @pytest.fixture
    def collection(self):
        return MagicMock()

    @pytest.fixture
    def store(self, collection):
        return MongoStatementStore(collection=collection)

    def test_save_upserts_document(self, store, collection):
        saved = store.save(make_statement(scaled=0.8, completion=True))

        collection.replace_one.assert_called_once()
        query, doc = collection.replace_one.call_args.args
        assert query == {"_id": saved.id}
        assert doc["_id"] == saved.id
        assert "id" not in doc
        assert collection.replace_one.call_args.kwargs == {"upsert": True}

        # Dates stay datetimes for range queries
        assert isinstance(doc["timestamp"], datetime)
        assert isinstance(doc["stored"], datetime)
        assert doc["verb"]["id"] == f"{VERB_NS}completed"
        assert doc["result"]["score"]["scaled"] == 0.8

    def test_document_round_trip(self, store, collection):
        statement = store.save(make_statement(actor_name="Ama"))
        _, doc = collection.replace_one.call_args.args
        collection.find_one.return_value = doc

        loaded = store.find_by_id(statement.id)
        collection.find_one.assert_called_once_with({"_id": statement.id})
        assert loaded == statement

    def test_find_by_id_missing(self, store, collection):
        collection.find_one.return_value = None
        assert store.find_by_id("nope") is None

    def test_queries(self, store, collection):
        collection.find.return_value = []

        store.find_all()
        store.find_by_actor_name("Ama")
        store.find_by_verb_id(f"{VERB_NS}viewed")
        store.find_by_timestamp_range(datetime(2025, 1, 1), _utc(2025, 1, 31))

        queries = [c.args[0] for c in collection.find.call_args_list]
        assert queries == [
            {},
            {"actor.name": "Ama"},
            {"verb.id": f"{VERB_NS}viewed"},
            {"timestamp": {"$gte": _utc(2025, 1, 1), "$lte": _utc(2025, 1, 31)}},
        ]

    def test_find_maps_documents(self, store, collection):
        collection.find.return_value = [
            {
                "_id": "s-1",
                "actor": {"name": "Ama", "objectType": "Agent"},
                "verb": {"id": f"{VERB_NS}viewed"},
                "object": {"id": "http://example.com/activities/x"},
                "timestamp": _utc(2025, 1, 2),
            }
        ]
        [statement] = store.find_by_actor_name("Ama")
        assert statement.id == "s-1"
        assert statement.actor.name == "Ama"

    def test_delete(self, store, collection):
        collection.delete_one.return_value = MagicMock(deleted_count=1)
        assert store.delete_by_id("s-1") is True
        collection.delete_one.assert_called_once_with({"_id": "s-1"})

        collection.delete_one.return_value = MagicMock(deleted_count=0)
        assert store.delete_by_id("s-2") is False

    def test_ping(self, store, collection):
        assert store.ping() is True
        collection.database.client.admin.command.assert_called_once_with("ping")

        collection.database.client.admin.command.side_effect = RuntimeError("down")
        assert store.ping() is False
