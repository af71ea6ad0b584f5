"""Router test fixtures with a mocked Identity service."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from project_hub_service.app import create_app
from project_hub_service.config import clear_settings_cache
from project_hub_service.core.exceptions import Unauthorized
from project_hub_service.core.lifespan import lifespan
from project_hub_service.core.state import get_app_state, reset_app_state
from tests.helpers import USERS_BY_TOKEN, auth

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from httpx import Response

    from project_hub_service.domain import RequestContext


async def _resolve(token: str) -> RequestContext:
    if token not in USERS_BY_TOKEN:
        raise Unauthorized("Not authorized to access this route")
    return USERS_BY_TOKEN[token]


def _config(tmp_path: Path, *, guard_downloads: bool) -> str:
    return f"""\
service:
  name: "project-hub"
  version: "0.1.0"
server:
  host: "0.0.0.0"
  port: 8010
  log_level: "info"
logging:
  level: "WARNING"
  directory: "{tmp_path / 'logs'}"
database:
  path: "{tmp_path / 'test.db'}"
identity:
  base_url: "http://localhost:8001"
  resolve_path: "/auth/me"
  timeout_seconds: 10
storage:
  public_root: "{tmp_path / 'public'}"
  max_file_size: 1024
documents:
  guard_downloads: {"true" if guard_downloads else "false"}
request:
  max_body_size: 4096
"""


# ---------------------------------------------------------------------------
# App + client fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def guard_downloads() -> bool:
    """Override in a test module to turn on download gating."""
    return False


@pytest.fixture
async def app(tmp_path: Path, guard_downloads: bool) -> AsyncIterator[Any]:
    """Create a test app with a temp database and a mocked Identity service."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(_config(tmp_path, guard_downloads=guard_downloads))

    old_config = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(config_path)

    clear_settings_cache()
    reset_app_state()

    test_app = create_app()
    async with lifespan(test_app):
        state = get_app_state()

        mock_identity = AsyncMock()
        mock_identity.close = AsyncMock()
        mock_identity.resolve = AsyncMock(side_effect=_resolve)
        state.identity_client = mock_identity

        yield test_app

    reset_app_state()
    clear_settings_cache()
    if old_config is None:
        os.environ.pop("CONFIG_PATH", None)
    else:
        os.environ["CONFIG_PATH"] = old_config


@pytest.fixture
async def client(app: Any) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP client for the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------
async def create_project(
    client: AsyncClient, token: str = "manager-token", name: str = "Audit"
) -> str:
    """Create a project and return its id."""
    response = await client.post("/projects", json={"name": name}, headers=auth(token))
    assert response.status_code == 201, response.text
    return str(response.json()["data"]["project_id"])


async def upload_document(
    client: AsyncClient,
    token: str,
    project_id: str | None,
    *,
    filename: str = "report.pdf",
    content: bytes = b"%PDF-1.4 test",
    content_type: str = "application/pdf",
    **fields: str | list[str],
) -> Response:
    data: dict[str, str | list[str]] = dict(fields)
    if project_id is not None:
        data["project_id"] = project_id
    return await client.post(
        "/documents",
        data=data,
        files={"file": (filename, content, content_type)},
        headers=auth(token),
    )


async def create_document(client: AsyncClient, token: str, project_id: str, **fields: str) -> str:
    """Upload a document and return its id."""
    response = await upload_document(client, token, project_id, **fields)
    assert response.status_code == 201, response.text
    return str(response.json()["data"]["document_id"])


async def create_task(
    client: AsyncClient, token: str = "manager-token", **fields: Any
) -> dict[str, Any]:
    body: dict[str, Any] = {"title": "Prepare return", "amount": 1500, **fields}
    response = await client.post("/tasks", json=body, headers=auth(token))
    assert response.status_code == 201, response.text
    data: dict[str, Any] = response.json()["data"]
    return data


async def set_status(client: AsyncClient, task_id: str, status: str, token: str) -> Response:
    return await client.put(
        f"/tasks/{task_id}/status", json={"status": status}, headers=auth(token)
    )
