"""Document endpoint tests: visibility, pagination, CRUD, sharing and download."""

from __future__ import annotations

import pytest

from tests.helpers import auth
from tests.unit.routers.conftest import create_document, create_project, upload_document

# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


@pytest.mark.unit
async def test_upload_document(client):
    project_id = await create_project(client)

    response = await upload_document(
        client,
        "alice-token",
        project_id,
        category="tax",
        description="Quarterly filing",
        tags="vat, q1",
    )
    assert response.status_code == 201

    data = response.json()["data"]
    assert data["document_id"].startswith("doc-")
    assert data["name"] == "report.pdf"
    assert data["category"] == "tax"
    assert data["status"] == "active"
    assert data["created_by"] == "u-alice"
    assert data["file_type"] == "application/pdf"
    assert data["file_size"] == len(b"%PDF-1.4 test")
    assert data["file_path"].startswith("/uploads/documents/file-")
    assert data["tags"] == ["vat", "q1"]
    assert data["shared_with"] == []


@pytest.mark.unit
async def test_upload_accepts_repeated_tag_fields(client):
    project_id = await create_project(client)

    response = await upload_document(
        client, "alice-token", project_id, tags=["vat", "q1, q2"]
    )
    assert response.status_code == 201
    assert response.json()["data"]["tags"] == ["vat", "q1", "q2"]


@pytest.mark.unit
async def test_upload_requires_file(client):
    project_id = await create_project(client)
    response = await client.post(
        "/documents",
        data={"project_id": project_id},
        files={"other": ("x.txt", b"x", "text/plain")},
        headers=auth("alice-token"),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Please upload a file"


@pytest.mark.unit
async def test_upload_rejects_disallowed_type(client):
    project_id = await create_project(client)
    response = await upload_document(
        client,
        "alice-token",
        project_id,
        filename="run.exe",
        content_type="application/x-msdownload",
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_FAILED"


@pytest.mark.unit
async def test_upload_rejects_oversized_file(client):
    project_id = await create_project(client)
    response = await upload_document(client, "alice-token", project_id, content=b"x" * 2048)
    assert response.status_code == 413
    assert response.json()["error"] == "FILE_TOO_LARGE"


@pytest.mark.unit
async def test_upload_to_missing_project_returns_404(client):
    response = await upload_document(client, "alice-token", "prj-missing")
    assert response.status_code == 404


@pytest.mark.unit
async def test_upload_rejects_unknown_category(client):
    project_id = await create_project(client)
    response = await upload_document(client, "alice-token", project_id, category="secret")
    assert response.status_code == 400
    assert "'category'" in response.json()["message"]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.unit
async def test_members_only_see_own_and_shared_documents(client):
    project_id = await create_project(client)
    alice_doc = await create_document(client, "alice-token", project_id, name="Alice notes")
    bob_doc = await create_document(client, "bob-token", project_id, name="Bob notes")

    alice_view = (await client.get("/documents", headers=auth("alice-token"))).json()
    assert [doc["document_id"] for doc in alice_view["data"]] == [alice_doc]
    assert alice_view["total"] == 1

    manager_view = (await client.get("/documents", headers=auth("manager-token"))).json()
    assert {doc["document_id"] for doc in manager_view["data"]} == {alice_doc, bob_doc}

    await client.put(
        f"/documents/{bob_doc}/share", json={"user_ids": ["u-alice"]}, headers=auth("bob-token")
    )
    alice_view = (await client.get("/documents", headers=auth("alice-token"))).json()
    assert {doc["document_id"] for doc in alice_view["data"]} == {alice_doc, bob_doc}


@pytest.mark.unit
async def test_search_does_not_widen_visibility(client):
    project_id = await create_project(client)
    await create_document(client, "bob-token", project_id, name="Budget plan")

    response = await client.get("/documents?search=budget", headers=auth("alice-token"))
    body = response.json()
    assert body["total"] == 0
    assert body["data"] == []


@pytest.mark.unit
async def test_search_matches_name_or_description_case_insensitively(client):
    project_id = await create_project(client)
    by_name = await create_document(client, "alice-token", project_id, name="Budget plan")
    by_description = await create_document(
        client, "alice-token", project_id, name="Plan", description="Annual BUDGET review"
    )
    await create_document(client, "alice-token", project_id, name="Contract")

    body = (await client.get("/documents?search=budget", headers=auth("alice-token"))).json()
    assert {doc["document_id"] for doc in body["data"]} == {by_name, by_description}


@pytest.mark.unit
async def test_search_folds_accented_letters(client):
    project_id = await create_project(client)
    wanted = await create_document(client, "alice-token", project_id, name="ÉTAT financier")
    await create_document(client, "alice-token", project_id, name="Etat civil")

    response = await client.get(
        "/documents", params={"search": "état"}, headers=auth("alice-token")
    )
    assert [doc["document_id"] for doc in response.json()["data"]] == [wanted]


@pytest.mark.unit
async def test_filters_combine(client):
    project_id = await create_project(client)
    other_project = await create_project(client, name="Other")
    wanted = await create_document(client, "alice-token", project_id, category="legal")
    await create_document(client, "alice-token", project_id, category="tax")
    await create_document(client, "alice-token", other_project, category="legal")

    body = (
        await client.get(
            f"/documents?category=legal&project_id={project_id}", headers=auth("alice-token")
        )
    ).json()
    assert [doc["document_id"] for doc in body["data"]] == [wanted]
    assert body["data"][0]["project"] == {"project_id": project_id, "name": "Audit"}


@pytest.mark.unit
async def test_pagination_links_and_counts(client):
    project_id = await create_project(client)
    for index in range(3):
        await create_document(client, "alice-token", project_id, name=f"Doc {index}")

    first = (await client.get("/documents?page=1&limit=2", headers=auth("alice-token"))).json()
    assert first["count"] == 2
    assert first["total"] == 3
    assert first["pagination"] == {"next": {"page": 2, "limit": 2}}

    second = (await client.get("/documents?page=2&limit=2", headers=auth("alice-token"))).json()
    assert second["count"] == 1
    assert second["pagination"] == {"prev": {"page": 1, "limit": 2}}

    names = [doc["name"] for doc in first["data"] + second["data"]]
    assert sorted(names) == ["Doc 0", "Doc 1", "Doc 2"]


@pytest.mark.unit
async def test_invalid_page_params_fall_back_to_defaults(client):
    project_id = await create_project(client)
    await create_document(client, "alice-token", project_id)

    body = (await client.get("/documents?page=zero&limit=-3", headers=auth("alice-token"))).json()
    assert body["count"] == 1
    assert body["pagination"] == {}


@pytest.mark.unit
async def test_documents_of_deleted_project_count_but_are_not_returned(client):
    project_id = await create_project(client)
    await create_document(client, "alice-token", project_id)
    await create_document(client, "alice-token", project_id)
    await client.delete(f"/projects/{project_id}", headers=auth("admin-token"))

    body = (
        await client.get(f"/documents?project_id={project_id}", headers=auth("alice-token"))
    ).json()
    assert body["total"] == 2
    assert body["count"] == 0
    assert body["data"] == []


# ---------------------------------------------------------------------------
# Single document
# ---------------------------------------------------------------------------


@pytest.mark.unit
async def test_get_document_access(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    own = await client.get(f"/documents/{document_id}", headers=auth("alice-token"))
    assert own.status_code == 200
    assert own.json()["data"]["project"]["project_id"] == project_id

    other = await client.get(f"/documents/{document_id}", headers=auth("bob-token"))
    assert other.status_code == 403

    missing = await client.get("/documents/doc-missing", headers=auth("admin-token"))
    assert missing.status_code == 404


@pytest.mark.unit
async def test_update_document_metadata(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    response = await client.put(
        f"/documents/{document_id}",
        data={"name": "Renamed", "status": "archived"},
        headers=auth("alice-token"),
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"

    fetched = (await client.get(f"/documents/{document_id}", headers=auth("alice-token"))).json()
    assert fetched["data"]["name"] == "Renamed"
    assert fetched["data"]["status"] == "archived"


@pytest.mark.unit
async def test_update_with_new_file_replaces_stored_file(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    response = await client.put(
        f"/documents/{document_id}",
        files={"file": ("notes.txt", b"plain notes", "text/plain")},
        headers=auth("alice-token"),
    )
    assert response.status_code == 200
    assert response.json()["data"]["file_type"] == "text/plain"

    download = await client.get(f"/documents/{document_id}/download", headers=auth("alice-token"))
    assert download.content == b"plain notes"


@pytest.mark.unit
async def test_shared_user_cannot_update_or_share(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)
    await client.put(
        f"/documents/{document_id}/share", json={"user_ids": ["u-bob"]}, headers=auth("alice-token")
    )

    fetched = await client.get(f"/documents/{document_id}", headers=auth("bob-token"))
    assert fetched.status_code == 200
    update = await client.put(
        f"/documents/{document_id}", data={"name": "Mine now"}, headers=auth("bob-token")
    )
    assert update.status_code == 403
    share = await client.put(
        f"/documents/{document_id}/share", json={"user_ids": ["u-carol"]}, headers=auth("bob-token")
    )
    assert share.status_code == 403


@pytest.mark.unit
async def test_share_replaces_the_set(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    await client.put(
        f"/documents/{document_id}/share",
        json={"user_ids": ["u-bob", "u-carol"]},
        headers=auth("alice-token"),
    )
    response = await client.put(
        f"/documents/{document_id}/share",
        json={"user_ids": ["u-carol"]},
        headers=auth("alice-token"),
    )
    assert response.status_code == 200
    assert response.json()["data"]["shared_with"] == ["u-carol"]

    fetched = await client.get(f"/documents/{document_id}", headers=auth("bob-token"))
    assert fetched.status_code == 403


@pytest.mark.unit
async def test_delete_document(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    forbidden = await client.delete(f"/documents/{document_id}", headers=auth("bob-token"))
    assert forbidden.status_code == 403

    response = await client.delete(f"/documents/{document_id}", headers=auth("alice-token"))
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {},
        "message": "Document deleted successfully",
    }
    fetched = await client.get(f"/documents/{document_id}", headers=auth("alice-token"))
    assert fetched.status_code == 404


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


@pytest.mark.unit
async def test_download_is_open_to_authenticated_users_by_default(client):
    project_id = await create_project(client)
    document_id = await create_document(client, "alice-token", project_id)

    response = await client.get(f"/documents/{document_id}/download", headers=auth("bob-token"))
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 test"
    assert response.headers["content-type"] == "application/pdf"
    assert "report.pdf" in response.headers["content-disposition"]


@pytest.mark.unit
async def test_download_missing_document_returns_404(client):
    response = await client.get("/documents/doc-missing/download", headers=auth("alice-token"))
    assert response.status_code == 404
