from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from stockcheck.db.base import Base


class StockLevel(Base):
    """
    Stock of one product at one location. Quantities are nullable and are not
    constrained to be non-negative; readers coalesce missing values to zero.
    """
    __tablename__ = "stock_levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    location_id: Mapped[int] = mapped_column(Integer, ForeignKey("inventory_locations.id"), nullable=False, index=True)

    quantity_available: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    quantity_reserved: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    quantity_on_hand: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_stock_levels_product_location"),
    )
