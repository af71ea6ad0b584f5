"""Domain records passed between stores, services and routers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

PRIVILEGED_ROLES: frozenset[str] = frozenset({"admin", "manager"})


class IncentiveType(StrEnum):
    """Kinds of incentive a completed task can produce."""

    TASK = "Task"
    VERIFICATION = "Verification"


@dataclass(frozen=True)
class RequestContext:
    """The authenticated caller of the current request."""

    id: str
    role: str
    name: str
    email: str

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


@dataclass(frozen=True)
class Document:
    document_id: str
    name: str
    description: str | None
    category: str
    status: str
    project_id: str | None
    task_id: str | None
    created_by: str
    shared_with: frozenset[str]
    file_path: str
    file_type: str | None
    file_size: int | None
    tags: tuple[str, ...]
    deleted: bool
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["shared_with"] = sorted(self.shared_with)
        data["tags"] = list(self.tags)
        return data


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    created_by: str
    deleted: bool
    created_at: str
    document_ids: frozenset[str] = frozenset()
    task_ids: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "created_by": self.created_by,
            "deleted": self.deleted,
            "created_at": self.created_at,
            "document_ids": sorted(self.document_ids),
            "task_ids": sorted(self.task_ids),
        }


@dataclass(frozen=True)
class TagDocument:
    """A file attached to a task under a tag/document-type key."""

    file_name: str
    file_path: str
    document_type: str
    tag: str
    uploaded_at: str

    @property
    def key(self) -> str:
        return f"{self.tag}-{self.document_type}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Task:
    task_id: str
    title: str
    description: str | None
    status: str
    amount: float
    task_incentive_percentage: float
    verification_incentive_percentage: float
    assigned_to: str | None
    created_by: str
    project_id: str | None
    team: frozenset[str]
    incentive_awarded: bool
    deleted: bool
    created_at: str
    updated_at: str
    verifier_id: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    tag_documents: dict[str, TagDocument] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["team"] = sorted(self.team)
        data["tag_documents"] = {key: asdict(doc) for key, doc in self.tag_documents.items()}
        return data


@dataclass(frozen=True)
class Incentive:
    incentive_id: str
    user_id: str
    task_id: str | None
    project_id: str | None
    task_amount: float | None
    incentive_amount: float
    incentive_type: IncentiveType
    date: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["incentive_type"] = str(self.incentive_type)
        return data


@dataclass(frozen=True)
class Event:
    event_id: str
    title: str
    description: str
    start_date: str
    end_date: str
    status: str
    created_by: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def now_iso() -> str:
    """Return current UTC time as ISO 8601 string with Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
