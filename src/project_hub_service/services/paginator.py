"""Offset pagination with next/prev navigation links."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class PageLink:
    page: int
    limit: int


@dataclass(frozen=True)
class PageWindow:
    """The slice of a result set for one page, plus navigation links."""

    page: int
    limit: int
    total: int
    skip: int
    next: PageLink | None
    prev: PageLink | None

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    def links(self) -> dict[str, Any]:
        """Navigation links as a JSON-ready dict; absent links are omitted."""
        links: dict[str, Any] = {}
        if self.next is not None:
            links["next"] = {"page": self.next.page, "limit": self.next.limit}
        if self.prev is not None:
            links["prev"] = {"page": self.prev.page, "limit": self.prev.limit}
        return links


def _positive_int(raw: str | int | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def parse_page_params(raw_page: str | None, raw_limit: str | None) -> tuple[int, int]:
    """Parse page/limit query values. Missing, non-integer or < 1 falls back to defaults."""
    return _positive_int(raw_page, DEFAULT_PAGE), _positive_int(raw_limit, DEFAULT_LIMIT)


def paginate(page: int, limit: int, total: int) -> PageWindow:
    """
    Compute the window for ``page`` given ``total`` matching records.

    ``total`` must be the count against the query predicate, taken before any
    post-fetch filtering, so links stay stable even when fewer rows come back.
    """
    page = _positive_int(page, DEFAULT_PAGE)
    limit = _positive_int(limit, DEFAULT_LIMIT)
    return PageWindow(
        page=page,
        limit=limit,
        total=total,
        skip=(page - 1) * limit,
        next=PageLink(page + 1, limit) if page * limit < total else None,
        prev=PageLink(page - 1, limit) if page > 1 else None,
    )
