"""Inventory endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from core.auth import UserId
from core.database import DbSession
from schemas import (
    EquipmentDetail,
    Envelope,
    ErrorResponse,
    InventoryItemDetail,
    InventoryItemSchema,
    InventoryStats,
    InventoryTransactionListItem,
    PaginatedEnvelope,
)
from services import inventory_service
from services.inventory_service import InventoryFilters, TransactionFilters

router = APIRouter(
    prefix="/api/inventory",
    tags=["inventory"],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

PageSizeParam = Annotated[str | None, Query(alias="pageSize")]


@router.get(
    "/organization/{organization_id}/inventory",
    response_model=PaginatedEnvelope[InventoryItemSchema],
)
async def list_inventory(
    organization_id: str,
    user_id: UserId,
    db: DbSession,
    search: str | None = None,
    category: str | None = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[InventoryItemSchema]:
    filters = InventoryFilters(
        search=search, category=category, page=page, page_size=page_size
    )
    return await inventory_service.get_inventory_by_organization(
        db, organization_id, filters
    )


@router.get(
    "/organization/{organization_id}/inventory/stats",
    response_model=Envelope[InventoryStats],
)
async def get_inventory_stats(
    organization_id: str, user_id: UserId, db: DbSession
) -> Envelope[InventoryStats]:
    return await inventory_service.get_inventory_stats_by_organization(
        db, organization_id
    )


@router.get(
    "/organization/{organization_id}/inventory/transactions",
    response_model=PaginatedEnvelope[InventoryTransactionListItem],
)
async def list_transactions(
    organization_id: str,
    user_id: UserId,
    db: DbSession,
    tx_type: Annotated[str | None, Query(alias="type")] = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[InventoryTransactionListItem]:
    filters = TransactionFilters(type=tx_type, page=page, page_size=page_size)
    return await inventory_service.get_inventory_transactions_by_organization(
        db, organization_id, filters
    )


@router.get("/{item_id}/details", response_model=Envelope[InventoryItemDetail])
async def get_item_details(
    item_id: str, user_id: UserId, db: DbSession
) -> Envelope[InventoryItemDetail]:
    return await inventory_service.get_item_details(db, item_id)


# Path spelling is relied on by existing clients
@router.get(
    "/{equipment_id}/details/equipement",
    response_model=Envelope[EquipmentDetail],
)
async def get_equipment_details(
    equipment_id: str, user_id: UserId, db: DbSession
) -> Envelope[EquipmentDetail]:
    return await inventory_service.get_equipment_with_details(db, equipment_id)
