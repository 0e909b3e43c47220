"""Inventory repository for items and stock transactions."""

from datetime import datetime
from typing import NamedTuple

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import InventoryItem, InventoryTransaction, TransactionType
from repositories.utils import count_rows, log_slow_query


class StockSummary(NamedTuple):
    total_items: int
    total_quantity: int
    low_stock_items: int
    out_of_stock_items: int
    equipment_count: int


class MovementSummary(NamedTuple):
    incoming: int
    outgoing: int


class InventoryRepository:
    """Repository for InventoryItem and InventoryTransaction operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("inventory.find_items")
    async def find_items(
        self,
        organization_id: str,
        *,
        search: str | None = None,
        category: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[InventoryItem], int]:
        stmt = select(InventoryItem).where(
            InventoryItem.organization_id == organization_id
        )
        if search:
            stmt = stmt.where(InventoryItem.name.ilike(f"%{search}%"))
        if category:
            stmt = stmt.where(InventoryItem.category == category)
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.order_by(InventoryItem.name, InventoryItem.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("inventory.stock_summary")
    async def stock_summary(self, organization_id: str) -> StockSummary:
        """Aggregate stock levels for an organization in one query."""
        quantity = InventoryItem.quantity
        result = await self.db.execute(
            select(
                func.count(InventoryItem.id),
                func.coalesce(func.sum(quantity), 0),
                func.sum(
                    case(
                        (
                            (quantity > 0)
                            & (quantity <= InventoryItem.low_stock_threshold),
                            1,
                        ),
                        else_=0,
                    )
                ),
                func.sum(case((quantity <= 0, 1), else_=0)),
                func.sum(case((InventoryItem.is_equipment.is_(True), 1), else_=0)),
            ).where(InventoryItem.organization_id == organization_id)
        )
        total, total_quantity, low, out, equipment = result.one()
        return StockSummary(
            total_items=total or 0,
            total_quantity=int(total_quantity or 0),
            low_stock_items=low or 0,
            out_of_stock_items=out or 0,
            equipment_count=equipment or 0,
        )

    @log_slow_query("inventory.movement_summary")
    async def movement_summary(
        self, organization_id: str, since: datetime
    ) -> MovementSummary:
        """Quantities moved IN and OUT since a point in time."""
        result = await self.db.execute(
            select(InventoryTransaction.type, func.sum(InventoryTransaction.quantity))
            .join(InventoryItem, InventoryTransaction.item_id == InventoryItem.id)
            .where(
                InventoryItem.organization_id == organization_id,
                InventoryTransaction.date >= since,
            )
            .group_by(InventoryTransaction.type)
        )
        totals = {tx_type: int(amount or 0) for tx_type, amount in result.all()}
        return MovementSummary(
            incoming=totals.get(TransactionType.IN.value, 0),
            outgoing=totals.get(TransactionType.OUT.value, 0),
        )

    @log_slow_query("inventory.find_transactions")
    async def find_transactions(
        self,
        organization_id: str,
        *,
        tx_type: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[InventoryTransaction], int]:
        stmt = (
            select(InventoryTransaction)
            .join(InventoryItem, InventoryTransaction.item_id == InventoryItem.id)
            .where(InventoryItem.organization_id == organization_id)
        )
        if tx_type:
            stmt = stmt.where(InventoryTransaction.type == tx_type)
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.options(selectinload(InventoryTransaction.item))
            .order_by(InventoryTransaction.date.desc(), InventoryTransaction.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("inventory.get_item")
    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Item with its location; transactions are fetched separately."""
        result = await self.db.execute(
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .options(selectinload(InventoryItem.location))
        )
        return result.scalar_one_or_none()

    @log_slow_query("inventory.recent_transactions")
    async def recent_transactions(
        self, item_id: str, limit: int = 20
    ) -> list[InventoryTransaction]:
        result = await self.db.execute(
            select(InventoryTransaction)
            .where(InventoryTransaction.item_id == item_id)
            .order_by(InventoryTransaction.date.desc(), InventoryTransaction.id)
            .limit(limit)
        )
        return list(result.scalars().all())
