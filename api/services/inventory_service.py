"""Inventory service: stock listings, statistics and item details.

Stock levels:
- out of stock: quantity <= 0
- low stock: 0 < quantity <= low_stock_threshold
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models import InventoryItem, TransactionType, utcnow
from repositories.inventory_repository import InventoryRepository
from repositories.organization_repository import OrganizationRepository
from repositories.task_repository import TaskRepository
from schemas import (
    EquipmentDetail,
    Envelope,
    InventoryItemDetail,
    InventoryItemSchema,
    InventoryStats,
    InventoryTransactionListItem,
    InventoryTransactionSchema,
    LocationSchema,
    PaginatedEnvelope,
    TaskSummary,
)
from services.errors import ValidationError, service_boundary
from services.pagination import page_meta, resolve_page
from services.validation import require_choice, require_id

MOVEMENT_WINDOW = timedelta(days=30)
RECENT_TRANSACTIONS_LIMIT = 20


@dataclass(frozen=True, slots=True)
class InventoryFilters:
    search: str | None = None
    category: str | None = None
    page: Any = None
    page_size: Any = None


@dataclass(frozen=True, slots=True)
class TransactionFilters:
    type: str | None = None
    page: Any = None
    page_size: Any = None


async def _require_organization(db: AsyncSession, organization_id: str) -> str:
    organization_id = require_id(organization_id, "Organization ID is required")
    if not await OrganizationRepository(db).exists(organization_id):
        raise ValidationError("Organization not found", code=404)
    return organization_id


async def _item_detail(
    repo: InventoryRepository, item: InventoryItem
) -> InventoryItemDetail:
    transactions = await repo.recent_transactions(item.id, RECENT_TRANSACTIONS_LIMIT)
    return InventoryItemDetail(
        **InventoryItemSchema.model_validate(item).model_dump(),
        location=LocationSchema.model_validate(item.location) if item.location else None,
        transactions=[InventoryTransactionSchema.model_validate(t) for t in transactions],
    )


@service_boundary("inventory.list", "Failed to fetch inventory")
async def get_inventory_by_organization(
    db: AsyncSession, organization_id: str, filters: InventoryFilters | None = None
) -> PaginatedEnvelope[InventoryItemSchema]:
    organization_id = await _require_organization(db, organization_id)
    filters = filters or InventoryFilters()
    page = resolve_page(filters.page, filters.page_size)
    search = filters.search.strip() if filters.search else None
    category = filters.category.strip() if filters.category else None

    items, total = await InventoryRepository(db).find_items(
        organization_id,
        search=search or None,
        category=category or None,
        offset=page.offset,
        limit=page.per_page,
    )
    data = [InventoryItemSchema.model_validate(i) for i in items]
    return PaginatedEnvelope[InventoryItemSchema].build(
        data,
        page_meta(page, total, len(data)),
        "Inventory retrieved successfully",
    )


@service_boundary("inventory.stats", "Failed to compute inventory statistics")
async def get_inventory_stats_by_organization(
    db: AsyncSession, organization_id: str
) -> Envelope[InventoryStats]:
    organization_id = await _require_organization(db, organization_id)
    repo = InventoryRepository(db)

    stock = await repo.stock_summary(organization_id)
    movements = await repo.movement_summary(organization_id, utcnow() - MOVEMENT_WINDOW)

    return Envelope[InventoryStats](
        data=InventoryStats(
            total_items=stock.total_items,
            total_quantity=stock.total_quantity,
            low_stock_items=stock.low_stock_items,
            out_of_stock_items=stock.out_of_stock_items,
            equipment_count=stock.equipment_count,
            incoming_last_30_days=movements.incoming,
            outgoing_last_30_days=movements.outgoing,
        ),
        message="Inventory statistics retrieved successfully",
    )


@service_boundary("inventory.transactions", "Failed to fetch inventory transactions")
async def get_inventory_transactions_by_organization(
    db: AsyncSession, organization_id: str, filters: TransactionFilters | None = None
) -> PaginatedEnvelope[InventoryTransactionListItem]:
    organization_id = await _require_organization(db, organization_id)
    filters = filters or TransactionFilters()
    tx_type = (
        require_choice(filters.type, TransactionType, "transaction type")
        if filters.type
        else None
    )
    page = resolve_page(filters.page, filters.page_size)

    transactions, total = await InventoryRepository(db).find_transactions(
        organization_id, tx_type=tx_type, offset=page.offset, limit=page.per_page
    )
    data = [InventoryTransactionListItem.model_validate(t) for t in transactions]
    return PaginatedEnvelope[InventoryTransactionListItem].build(
        data,
        page_meta(page, total, len(data)),
        "Inventory transactions retrieved successfully",
    )


@service_boundary("inventory.item_details", "Failed to fetch item details")
async def get_item_details(
    db: AsyncSession, item_id: str
) -> Envelope[InventoryItemDetail]:
    item_id = require_id(item_id, "Item ID is required")
    repo = InventoryRepository(db)
    item = await repo.get_item(item_id)
    if item is None:
        raise ValidationError("Inventory item not found", code=404)

    return Envelope[InventoryItemDetail](
        data=await _item_detail(repo, item),
        message="Item details retrieved successfully",
    )


@service_boundary("inventory.equipment_details", "Failed to fetch equipment details")
async def get_equipment_with_details(
    db: AsyncSession, equipment_id: str
) -> Envelope[EquipmentDetail]:
    """Item details plus the open tasks that need this equipment."""
    equipment_id = require_id(equipment_id, "Equipment ID is required")
    repo = InventoryRepository(db)
    item = await repo.get_item(equipment_id)
    if item is None:
        raise ValidationError("Equipment not found", code=404)
    if not item.is_equipment:
        raise ValidationError("Inventory item is not equipment")

    detail = await _item_detail(repo, item)
    tasks = await TaskRepository(db).open_requiring_equipment(
        item.organization_id, item.id
    )
    return Envelope[EquipmentDetail](
        data=EquipmentDetail(
            **detail.model_dump(),
            tasks=[TaskSummary.model_validate(t) for t in tasks],
        ),
        message="Equipment details retrieved successfully",
    )
