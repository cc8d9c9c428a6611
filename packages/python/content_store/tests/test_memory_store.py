import pytest

from content_store import (
    DocumentConflictError,
    DocumentNotFoundError,
    InMemoryStoreClient,
    Query,
    StoreClient,
)


@pytest.fixture()
def store():
    return InMemoryStoreClient(
        [
            {"_id": "p1", "_type": "post", "title": "Beta", "author": {"name": "ada"}, "rank": 2},
            {"_id": "p2", "_type": "post", "title": "Alpha", "author": {"name": "bob"}, "rank": 1},
            {"_id": "p3", "_type": "post", "title": "Gamma", "author": {"name": "ada"}, "rank": 3},
            {"_id": "a1", "_type": "person", "name": "ada"},
        ]
    )


def test_satisfies_store_client_protocol():
    assert isinstance(InMemoryStoreClient(), StoreClient)


def test_create_assigns_id_and_system_fields():
    store = InMemoryStoreClient()

    stored = store.create({"_type": "post", "title": "Hello"})

    assert stored["_id"]
    assert stored["_type"] == "post"
    assert {"_createdAt", "_updatedAt", "_rev"} <= set(stored)
    assert stored["_id"] in store


def test_create_with_existing_id_conflicts(store):
    with pytest.raises(DocumentConflictError):
        store.create({"_id": "p1", "_type": "post"})


def test_create_or_replace_overwrites_fields_and_keeps_created_at(store):
    before = store.get_document("p1")

    replaced = store.create_or_replace({"_id": "p1", "_type": "post", "title": "Replaced"})

    assert replaced["title"] == "Replaced"
    assert "author" not in replaced
    assert replaced["_createdAt"] == before["_createdAt"]
    assert replaced["_rev"] != before["_rev"]


def test_create_if_not_exists_leaves_existing_document(store):
    before = store.get_document("p1")

    result = store.create_if_not_exists({"_id": "p1", "_type": "post", "title": "Other"})

    assert result == before
    assert store.create_if_not_exists({"_id": "p9", "_type": "post"})["_id"] == "p9"


def test_upserts_require_an_id():
    store = InMemoryStoreClient()

    with pytest.raises(ValueError):
        store.create_or_replace({"_type": "post"})
    with pytest.raises(ValueError):
        store.create_if_not_exists({"_type": "post"})


def test_patch_sets_and_unsets_fields(store):
    patched = store.patch("p1", set={"title": "Patched"}, unset=["rank"])

    assert patched["title"] == "Patched"
    assert "rank" not in patched
    assert patched["author"] == {"name": "ada"}


def test_patch_missing_document_raises(store):
    with pytest.raises(DocumentNotFoundError):
        store.patch("nope", set={"title": "x"})


def test_delete_removes_and_reports_missing(store):
    store.delete("p1")

    assert store.get_document("p1") is None
    with pytest.raises(DocumentNotFoundError):
        store.delete("p1")


def test_returned_documents_are_copies(store):
    document = store.get_document("p1")
    document["title"] = "Mutated"

    assert store.get_document("p1")["title"] == "Beta"


def test_query_filters_by_type_and_dotted_equality(store):
    rows = store.query(Query(document_type="post", equals={"author.name": "ada"}))

    assert sorted(row["_id"] for row in rows) == ["p1", "p3"]


def test_query_orders_and_windows(store):
    rows = store.query(Query(document_type="post", order=["rank desc"], offset=1, limit=1))

    assert [row["_id"] for row in rows] == ["p1"]


def test_query_orders_by_several_fields(store):
    rows = store.query(Query(document_type="post", order=["author.name", "title desc"]))

    assert [row["_id"] for row in rows] == ["p3", "p1", "p2"]


def test_query_rejects_raw_filters(store):
    with pytest.raises(ValueError):
        store.query(Query(filter="rank > 1"))


def test_query_rejects_offset_without_limit(store):
    with pytest.raises(ValueError):
        store.query(Query(offset=2))


def test_query_null_equality_matches_missing_fields(store):
    store.create({"_id": "p4", "_type": "post", "title": "Delta", "slug": None})

    rows = store.query(Query(document_type="post", equals={"slug": None}))

    assert sorted(row["_id"] for row in rows) == ["p1", "p2", "p3", "p4"]
    assert store.query(Query(document_type="post", equals={"author.name": None})) == [
        store.get_document("p4")
    ]
