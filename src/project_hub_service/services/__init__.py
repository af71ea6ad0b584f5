"""Service layer components."""

from project_hub_service.services.access_filter import AccessFilterBuilder, DocumentQuery
from project_hub_service.services.access_guard import DocumentAccessGuard
from project_hub_service.services.incentive_engine import TaskIncentiveEngine
from project_hub_service.services.paginator import paginate
from project_hub_service.services.task_status import TaskStatusStateMachine

__all__ = [
    "AccessFilterBuilder",
    "DocumentAccessGuard",
    "DocumentQuery",
    "TaskIncentiveEngine",
    "TaskStatusStateMachine",
    "paginate",
]
