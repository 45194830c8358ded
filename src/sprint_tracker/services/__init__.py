"""Services module for Sprint Tracker - Business logic layer."""

from .criterion_service import CriterionService
from .export_service import EXPORT_VERSION, ExportService
from .goal_service import GoalService
from .sprint_service import SprintService
from .storage_context import StorageContext, create_adapter, open_storage

__all__ = [
    "SprintService",
    "GoalService",
    "CriterionService",
    "ExportService",
    "EXPORT_VERSION",
    "StorageContext",
    "create_adapter",
    "open_storage",
]
