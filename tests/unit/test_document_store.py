"""Unit tests for DocumentStore."""

from __future__ import annotations

import pytest

from project_hub_service.services.access_filter import AccessFilterBuilder, DocumentQuery
from project_hub_service.services.database import Database
from project_hub_service.services.document_store import DocumentStore
from project_hub_service.services.predicates import MATCH_ALL, Eq
from tests.helpers import ALICE, BOB, CAROL, MANAGER, make_document


@pytest.fixture
def store(tmp_path):
    database = Database(str(tmp_path / "documents.db"))
    yield DocumentStore(database)
    database.close()


@pytest.mark.unit
def test_insert_and_get_round_trip_with_shares_and_tags(store) -> None:
    document = make_document(shared_with=frozenset({BOB.id, CAROL.id}), tags=("q1", "tax"))
    store.insert_document(document)

    assert store.get_document("doc-1") == document
    assert store.get_document("doc-missing") is None


@pytest.mark.unit
def test_find_orders_newest_first_and_pages(store) -> None:
    for index in range(5):
        store.insert_document(
            make_document(f"doc-{index}", created_at=f"2026-01-0{index + 1}T00:00:00.000Z")
        )

    assert store.count_documents(MATCH_ALL) == 5
    page = store.find_documents(MATCH_ALL, skip=1, limit=2)
    assert [doc.document_id for doc in page] == ["doc-3", "doc-2"]


@pytest.mark.unit
def test_listing_predicate_scopes_member_visibility(store) -> None:
    store.insert_document(make_document("doc-own", created_by=ALICE.id))
    store.insert_document(
        make_document("doc-shared", created_by=BOB.id, shared_with=frozenset({ALICE.id}))
    )
    store.insert_document(make_document("doc-other", created_by=BOB.id))
    store.insert_document(
        make_document("doc-gone-project", created_by=ALICE.id, project_id="prj-x")
    )

    builder = AccessFilterBuilder()
    predicate = builder.build(ALICE, DocumentQuery(), ["prj-1"])

    visible = {doc.document_id for doc in store.find_documents(predicate, skip=0, limit=10)}
    assert visible == {"doc-own", "doc-shared"}
    assert store.count_documents(predicate) == 2

    everything = builder.build(MANAGER, DocumentQuery(), ["prj-1"])
    assert store.count_documents(everything) == 3


@pytest.mark.unit
def test_search_cannot_widen_member_visibility(store) -> None:
    store.insert_document(make_document("doc-mine", created_by=ALICE.id, name="Budget"))
    store.insert_document(make_document("doc-theirs", created_by=BOB.id, name="Budget"))

    predicate = AccessFilterBuilder().build(ALICE, DocumentQuery(search="budget"), ["prj-1"])

    assert [doc.document_id for doc in store.find_documents(predicate, 0, 10)] == ["doc-mine"]


@pytest.mark.unit
def test_update_replace_shares_and_soft_delete(store) -> None:
    store.insert_document(make_document(shared_with=frozenset({BOB.id})))

    assert store.update_document("doc-1", {"name": "Renamed", "tags": ["a"]}) == 1
    store.replace_shares("doc-1", [CAROL.id], "2026-02-01T00:00:00.000Z")

    document = store.get_document("doc-1")
    assert document is not None
    assert document.name == "Renamed"
    assert document.tags == ("a",)
    assert document.shared_with == frozenset({CAROL.id})
    assert document.updated_at == "2026-02-01T00:00:00.000Z"

    assert store.soft_delete("doc-1", "2026-02-02T00:00:00.000Z") == 1
    assert store.get_document("doc-1") is None
    assert store.count_documents(Eq("document_id", "doc-1")) == 0
    assert store.soft_delete("doc-1", "2026-02-02T00:00:00.000Z") == 0
    assert store.count_all() == 0


@pytest.mark.unit
def test_update_rejects_unknown_columns(store) -> None:
    store.insert_document(make_document())

    with pytest.raises(ValueError):
        store.update_document("doc-1", {"deleted": 1})
