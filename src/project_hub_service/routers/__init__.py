"""API routers."""

from project_hub_service.routers import documents, events, health, incentives, projects, tasks

__all__ = ["documents", "events", "health", "incentives", "projects", "tasks"]
