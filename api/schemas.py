"""Pydantic schemas for API request/response shaping.

Responses use camelCase keys (``projectManagerId``, ``hasNextPage``) while
Python code uses snake_case attribute names. Every schema can be built from
an ORM object (``from_attributes``) as long as the relationships it declares
were eagerly loaded by the repository.
"""

from datetime import datetime
from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.pagination import PageMeta

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Envelopes
# =============================================================================


class Envelope(ApiModel, Generic[T]):
    """``{data, message}`` wrapper returned by every service call."""

    data: T
    message: str


class PaginatedEnvelope(ApiModel, Generic[T]):
    """Envelope augmented with pagination metadata."""

    data: list[T]
    total: int
    page: int
    per_page: int
    last_page: int
    from_: int = Field(alias="from")
    to: int
    has_next_page: bool
    has_previous_page: bool
    paginated: bool = True
    message: str

    @classmethod
    def build(cls, items: list[T], meta: PageMeta, message: str) -> Self:
        return cls(
            data=items,
            total=meta.total,
            page=meta.page,
            per_page=meta.per_page,
            last_page=meta.last_page,
            from_=meta.from_,
            to=meta.to,
            has_next_page=meta.has_next_page,
            has_previous_page=meta.has_previous_page,
            message=message,
        )


class ErrorResponse(ApiModel):
    message: str
    code: int


class HealthResponse(ApiModel):
    status: str
    service: str


# =============================================================================
# Shared references
# =============================================================================


class NamedRef(ApiModel):
    id: str
    name: str


class UserSummary(ApiModel):
    id: str
    name: str
    email: str | None = None
    avatar: str | None = None


class LocationSchema(ApiModel):
    id: str
    name: str
    address: str | None = None
    city: str | None = None
    country: str | None = None


class OrganizationSchema(ApiModel):
    id: str
    name: str
    description: str | None = None


# =============================================================================
# Users
# =============================================================================


class UserResponse(ApiModel):
    id: str
    name: str
    email: str
    role: str
    avatar: str | None = None
    organization_id: str | None = None
    created_at: datetime | None = None


class RegisterRequest(ApiModel):
    """Registration payload. Field rules are enforced by users_service."""

    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    avatar: str | None = None
    organization_id: str | None = None


class LoginRequest(ApiModel):
    email: str
    password: str


class LoginResult(ApiModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# =============================================================================
# Tasks and KPIs
# =============================================================================


class TaskSummary(ApiModel):
    id: str
    title: str
    status: str
    priority: str
    due_date: datetime | None = None


class TaskSchema(ApiModel):
    id: str
    title: str
    description: str | None = None
    status: str
    priority: str
    due_date: datetime | None = None
    completed_at: datetime | None = None
    form_template: Any | None = None
    form_data: Any | None = None
    dependencies: Any | None = None
    created_at: datetime | None = None
    assigned_to_id: str | None = None
    project_id: str | None = None
    location_id: str | None = None
    request_id: str | None = None
    assigned_to: NamedRef | None = None
    location: NamedRef | None = None
    checklist: Any | None = None
    attachments: Any | None = None
    comments: Any | None = None
    equipment_required: Any | None = None


class TaskWithProject(TaskSchema):
    project: NamedRef | None = None


class KpiSchema(ApiModel):
    id: str
    name: str
    description: str | None = None
    value: float | None = None
    target: float | None = None
    unit: str | None = None
    trend: str | None = None
    category: str | None = None
    period: str | None = None
    date: datetime | None = None
    related_to_type: str | None = None
    related_to_id: str | None = None


# =============================================================================
# Projects
# =============================================================================


class ProjectBase(ApiModel):
    id: str
    name: str
    description: str | None = None
    objective: str | None = None
    scope: str | None = None
    geographical_area: str | None = None
    client: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: str
    budget: float | None = None
    progress: float | None = None
    contract: str | None = None
    funder: str | None = None
    government_entity: str | None = None
    risk_level: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    project_manager_id: str
    parent_project_id: str | None = None
    location_id: str | None = None


class ProjectListItem(ProjectBase):
    """Curated projection used by project listings."""

    project_manager: UserSummary | None = None
    tasks: list[TaskSchema] = []
    kpis: list[KpiSchema] = []


class ProjectWithRelations(ProjectBase):
    """Project returned after create/update."""

    project_manager: UserSummary | None = None
    location: LocationSchema | None = None
    parent_project: NamedRef | None = None


class DocumentSchema(ApiModel):
    id: str
    name: str
    url: str | None = None
    document_type: str | None = None
    uploaded_at: datetime | None = None


class TimelineEventSchema(ApiModel):
    id: str
    title: str
    description: str | None = None
    date: datetime | None = None


class BudgetDistributionSchema(ApiModel):
    id: str
    category: str
    amount: float
    percentage: float | None = None


class ContractSchema(ApiModel):
    id: str
    reference: str
    title: str | None = None
    amount: float | None = None
    status: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    project_id: str | None = None
    provider_id: str | None = None


class EvaluationSchema(ApiModel):
    id: str
    score: float | None = None
    comment: str | None = None
    evaluated_at: datetime | None = None
    evaluator_id: str | None = None


class ProjectRef(ApiModel):
    id: str
    name: str
    status: str


class RequestSchema(ApiModel):
    id: str
    title: str
    description: str | None = None
    status: str
    user_id: str
    organization_id: str
    project_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectDetail(ProjectWithRelations):
    """Full project graph."""

    supervisors: list[UserSummary] = []
    contractors: list[UserSummary] = []
    sub_projects: list[ProjectRef] = []
    tasks: list[TaskSchema] = []
    documents: list[DocumentSchema] = []
    requests: list[RequestSchema] = []
    kpis: list[KpiSchema] = []
    timeline: list[TimelineEventSchema] = []
    budget_distributions: list[BudgetDistributionSchema] = []
    contracts: list[ContractSchema] = []
    evaluations: list[EvaluationSchema] = []


# =============================================================================
# Requests
# =============================================================================


class RequestListItem(RequestSchema):
    user: UserSummary | None = None


class RequestDetail(RequestSchema):
    user: UserSummary | None = None
    organization: OrganizationSchema | None = None
    project: NamedRef | None = None
    tasks: list[TaskSummary] = []


class RequestCreate(ApiModel):
    """Request creation payload. Rules are enforced by request_service."""

    title: str | None = None
    description: str | None = None
    project_id: str | None = None


# =============================================================================
# Inventory
# =============================================================================


class InventoryItemSchema(ApiModel):
    id: str
    name: str
    description: str | None = None
    quantity: int
    unit: str | None = None
    category: str | None = None
    low_stock_threshold: int
    is_equipment: bool
    serial_number: str | None = None
    status: str | None = None
    location_id: str | None = None
    organization_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InventoryTransactionSchema(ApiModel):
    id: str
    item_id: str
    type: str
    quantity: int
    date: datetime | None = None
    note: str | None = None
    user_id: str | None = None


class InventoryTransactionListItem(InventoryTransactionSchema):
    item: NamedRef | None = None


class InventoryItemDetail(InventoryItemSchema):
    location: LocationSchema | None = None
    transactions: list[InventoryTransactionSchema] = []


class EquipmentDetail(InventoryItemDetail):
    tasks: list[TaskSummary] = []


class InventoryStats(ApiModel):
    total_items: int
    total_quantity: int
    low_stock_items: int
    out_of_stock_items: int
    equipment_count: int
    incoming_last_30_days: int
    outgoing_last_30_days: int


# =============================================================================
# Providers
# =============================================================================


class ProviderSchema(ApiModel):
    id: str
    name: str
    description: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None


class ProviderDetail(ProviderSchema):
    user: UserSummary | None = None
    organizations: list[OrganizationSchema] = []
    contracts: list[ContractSchema] = []


# =============================================================================
# Dashboard
# =============================================================================


class DashboardStats(ApiModel):
    total_projects: int
    projects_by_status: dict[str, int]
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    overdue_tasks: int
    pending_requests: int


class DashboardData(ApiModel):
    user: UserResponse
    stats: DashboardStats
    projects: list[ProjectBase]
    tasks: list[TaskWithProject]
    users: list[UserResponse]
    requests: list[RequestListItem]
