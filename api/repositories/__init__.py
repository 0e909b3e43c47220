"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services focused on
validation and response shaping. This separation provides:
- Single source of truth for database operations
- Easier testing (repositories can be mocked)
- Reusable queries across multiple services
"""

from repositories.inventory_repository import InventoryRepository
from repositories.location_repository import LocationRepository
from repositories.organization_repository import OrganizationRepository
from repositories.project_repository import ProjectRepository
from repositories.provider_repository import ProviderRepository
from repositories.request_repository import RequestRepository
from repositories.task_repository import TaskRepository
from repositories.user_repository import UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "InventoryRepository",
    "LocationRepository",
    "OrganizationRepository",
    "ProjectRepository",
    "ProviderRepository",
    "RequestRepository",
    "TaskRepository",
    "UserRepository",
    "log_slow_query",
]
