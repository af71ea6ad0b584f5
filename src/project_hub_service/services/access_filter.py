"""Authorization-aware predicate construction for document listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from project_hub_service.services.predicates import (
    Eq,
    In,
    Matches,
    Member,
    Predicate,
    all_of,
    any_of,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from project_hub_service.domain import RequestContext


@dataclass(frozen=True)
class DocumentQuery:
    """Filters a caller may pass to the document listing. ``None`` means not given."""

    category: str | None = None
    project_id: str | None = None
    status: str | None = None
    file_type: str | None = None
    uploaded_by: str | None = None
    search: str | None = None


class AccessFilterBuilder:
    """
    Turns a requester and a ``DocumentQuery`` into one predicate.

    The visibility clause (creator or shared-with) and the search clause are
    both disjunctions. They are ANDed as two separate conjuncts so a search
    hit can never widen what a non-privileged requester is allowed to see.
    """

    def build(
        self,
        requester: RequestContext,
        query: DocumentQuery,
        active_project_ids: Iterable[str] | None,
    ) -> Predicate:
        """
        Build the listing predicate.

        ``active_project_ids`` are the ids of non-deleted projects. They are
        only consulted when the query names no project; pass ``None`` in that
        case only if the caller has an explicit project.
        """
        clauses: list[Predicate] = []

        if query.category:
            clauses.append(Eq("category", query.category))
        if query.file_type:
            clauses.append(Eq("file_type", query.file_type))
        if query.status:
            clauses.append(Eq("status", query.status))
        if query.uploaded_by:
            clauses.append(Eq("created_by", query.uploaded_by))

        if query.project_id:
            clauses.append(Eq("project_id", query.project_id))
        else:
            clauses.append(In("project_id", tuple(sorted(active_project_ids or ()))))

        if not requester.is_privileged:
            clauses.append(
                any_of(
                    Eq("created_by", requester.id),
                    Member("shared_with", requester.id),
                )
            )

        if query.search:
            clauses.append(
                any_of(
                    Matches("name", query.search),
                    Matches("description", query.search),
                )
            )

        return all_of(*clauses)
