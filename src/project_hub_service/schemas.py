"""Pydantic request/response models for the API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DocumentCategory = Literal["financial", "legal", "compliance", "tax", "general"]


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    model_config = ConfigDict(extra="forbid")
    status: Literal["ok"]
    uptime_seconds: float
    started_at: str
    total_documents: int
    tasks_by_status: dict[str, int]


class DocumentFields(BaseModel):
    """Metadata form fields sent alongside a document upload."""

    model_config = ConfigDict(extra="forbid")
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    category: DocumentCategory | None = None
    status: str | None = Field(default=None, min_length=1)
    project_id: str | None = Field(default=None, min_length=1)
    task_id: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: object) -> object:
        """Accept ``"a, b"`` as well as a list of tags, each of which may hold commas."""
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return [tag.strip() for item in value for tag in item.split(",") if tag.strip()]
        return value


class ShareDocumentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    user_ids: list[str]


class CreateProjectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = Field(min_length=1, max_length=100)


class CreateTaskRequest(BaseModel):
    """Body of POST /tasks."""

    model_config = ConfigDict(extra="forbid")
    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    amount: float = Field(default=0.0, ge=0)
    task_incentive_percentage: float = Field(default=4.0, ge=0, le=100)
    verification_incentive_percentage: float = Field(default=1.0, ge=0, le=100)
    assigned_to: str | None = Field(default=None, min_length=1)
    verifier_id: str | None = Field(default=None, min_length=1)
    project_id: str | None = Field(default=None, min_length=1)
    team: list[str] = Field(default_factory=list)


class CreateEventRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)


class UpdateEventRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    title: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    start_date: str | None = Field(default=None, min_length=1)
    end_date: str | None = Field(default=None, min_length=1)
