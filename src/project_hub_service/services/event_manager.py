"""Calendar events with date-derived status."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, time
from typing import TYPE_CHECKING, Any

from project_hub_service.core.exceptions import NotFound, ValidationFailed
from project_hub_service.domain import Event, now_iso
from project_hub_service.logging import get_logger
from project_hub_service.services.paginator import paginate

if TYPE_CHECKING:
    from project_hub_service.domain import RequestContext
    from project_hub_service.services.event_store import EventStore
    from project_hub_service.services.paginator import PageWindow

UPCOMING = "upcoming"
ONGOING = "ongoing"
COMPLETED = "completed"


def parse_event_date(raw: str, field_name: str) -> datetime:
    """Parse an ISO date or datetime. Naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationFailed(
            f"Invalid {field_name}: expected an ISO 8601 date",
            {"field": field_name},
        ) from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def event_status(start: datetime, end: datetime, now: datetime | None = None) -> str:
    """
    ``upcoming`` before the start, ``ongoing`` until the last moment of the
    end date's day, ``completed`` afterwards.
    """
    current = now if now is not None else datetime.now(UTC)
    end_of_day = datetime.combine(end.date(), time.max, tzinfo=end.tzinfo)
    if current < start:
        return UPCOMING
    if current <= end_of_day:
        return ONGOING
    return COMPLETED


class EventManager:
    """Event CRUD. Any authenticated user may read or change any event."""

    def __init__(self, store: EventStore) -> None:
        self._store = store
        self._logger = get_logger(__name__)

    def _to_event(self, row: dict[str, Any]) -> Event:
        start = parse_event_date(row["start_date"], "start_date")
        end = parse_event_date(row["end_date"], "end_date")
        return Event(status=event_status(start, end), **row)

    def _load(self, event_id: str) -> dict[str, Any]:
        row = self._store.get_event(event_id)
        if row is None:
            raise NotFound("Event not found")
        return row

    def create_event(
        self,
        requester: RequestContext,
        title: str,
        description: str,
        start_date: str,
        end_date: str,
    ) -> Event:
        start = parse_event_date(start_date, "start_date")
        end = parse_event_date(end_date, "end_date")
        if end < start:
            raise ValidationFailed("end_date must not be before start_date")

        timestamp = now_iso()
        row = {
            "event_id": f"evt-{uuid.uuid4()}",
            "title": title,
            "description": description,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "created_by": requester.id,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        self._store.insert_event(row)
        self._logger.info(
            "Event created", extra={"event_id": row["event_id"], "created_by": requester.id}
        )
        return self._to_event(row)

    def list_events(self, page: int, limit: int) -> tuple[list[Event], PageWindow]:
        """Return one page of events, earliest start first, and its window."""
        window = paginate(page, limit, self._store.count_events())
        rows = self._store.list_events(window.skip, window.limit)
        return [self._to_event(row) for row in rows], window

    def get_event(self, event_id: str) -> Event:
        return self._to_event(self._load(event_id))

    def update_event(self, event_id: str, changes: dict[str, Any]) -> Event:
        """Apply a partial update; the status follows from the resulting dates."""
        current = self._load(event_id)

        updates: dict[str, Any] = {}
        for key in ("title", "description"):
            if changes.get(key) is not None:
                updates[key] = changes[key]
        for key in ("start_date", "end_date"):
            if changes.get(key) is not None:
                updates[key] = parse_event_date(changes[key], key).isoformat()

        merged = {**current, **updates}
        start = parse_event_date(merged["start_date"], "start_date")
        end = parse_event_date(merged["end_date"], "end_date")
        if end < start:
            raise ValidationFailed("end_date must not be before start_date")

        if updates:
            updates["updated_at"] = now_iso()
            self._store.update_event(event_id, updates)
            self._logger.info(
                "Event updated", extra={"event_id": event_id, "fields": sorted(updates)}
            )
        return self._to_event({**current, **updates})

    def delete_event(self, event_id: str) -> None:
        if self._store.delete_event(event_id) == 0:
            raise NotFound("Event not found")
        self._logger.info("Event deleted", extra={"event_id": event_id})
