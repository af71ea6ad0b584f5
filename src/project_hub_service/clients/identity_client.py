"""Async HTTP client for the Identity service."""

from __future__ import annotations

from typing import Any

import httpx

from project_hub_service.core.exceptions import IdentityUnavailable, Unauthorized
from project_hub_service.domain import RequestContext
from project_hub_service.logging import get_logger


class IdentityClient:
    """
    Resolves bearer tokens to the calling user.

    The Identity service owns sessions and user records; this service only
    forwards the token to ``resolve_path`` and reads back the user's id, role,
    name and email.
    """

    def __init__(
        self,
        base_url: str,
        resolve_path: str,
        timeout_seconds: int,
    ) -> None:
        self._base_url = base_url
        self._resolve_path = resolve_path
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def resolve(self, token: str) -> RequestContext:
        """
        Resolve a bearer token via the Identity service.

        Raises:
            Unauthorized: the Identity service rejected the token (401/403)
            IdentityUnavailable: connection/timeout errors or an unexpected reply
        """
        logger = get_logger(__name__)

        try:
            response = await self._client.get(
                self._resolve_path,
                headers={"Authorization": f"Bearer {token}"},
            )
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            logger.warning(
                "Identity service connection failed",
                extra={"error": str(exc), "base_url": self._base_url},
            )
            raise IdentityUnavailable("Cannot connect to Identity service") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Identity service HTTP error",
                extra={"error": str(exc), "base_url": self._base_url},
            )
            raise IdentityUnavailable("Identity service request failed") from exc

        if response.status_code in (401, 403):
            raise Unauthorized("Not authorized to access this route")

        if response.status_code != 200:
            logger.warning(
                "Identity service unexpected status",
                extra={
                    "status_code": response.status_code,
                    "base_url": self._base_url,
                },
            )
            raise IdentityUnavailable("Identity service returned unexpected status")

        try:
            body: Any = response.json()
        except ValueError as exc:
            raise IdentityUnavailable("Identity service returned invalid JSON") from exc

        user = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(user, dict) or not user.get("id") or not user.get("role"):
            raise IdentityUnavailable("Identity service returned an incomplete user")

        return RequestContext(
            id=str(user["id"]),
            role=str(user["role"]),
            name=str(user.get("name", "")),
            email=str(user.get("email", "")),
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
