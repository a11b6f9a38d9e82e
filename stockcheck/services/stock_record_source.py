from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from stockcheck.models.location import InventoryLocation
from stockcheck.models.stock import StockLevel


@dataclass(frozen=True)
class StockRecord:
    """Stock of one product at one location, exactly as stored."""

    location_id: int
    location_name: str
    location_type: str
    quantity_available: Decimal | int | float | None = None
    quantity_reserved: Decimal | int | float | None = None
    quantity_on_hand: Decimal | int | float | None = None


class StockRecordSource(Protocol):
    def fetch_stock_records(self, product_id: int, organization_id: int | None = None) -> list[StockRecord]:
        ...


class SqlAlchemyStockRecordSource:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def fetch_stock_records(self, product_id: int, organization_id: int | None = None) -> list[StockRecord]:
        stmt = (
            select(
                StockLevel.location_id,
                InventoryLocation.name,
                InventoryLocation.type,
                StockLevel.quantity_available,
                StockLevel.quantity_reserved,
                StockLevel.quantity_on_hand,
            )
            .join(InventoryLocation, InventoryLocation.id == StockLevel.location_id)
            .where(StockLevel.product_id == product_id)
        )
        if organization_id is not None:
            stmt = stmt.where(InventoryLocation.organization_id == organization_id)

        with self._session_factory() as db:
            rows = db.execute(stmt.order_by(StockLevel.id.asc())).all()

        return [
            StockRecord(
                location_id=int(location_id),
                location_name=name,
                location_type=location_type,
                quantity_available=available,
                quantity_reserved=reserved,
                quantity_on_hand=on_hand,
            )
            for location_id, name, location_type, available, reserved, on_hand in rows
        ]
