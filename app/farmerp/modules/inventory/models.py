from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.farmerp.models import Base, new_id


class InventoryCategory(Base):
    __tablename__ = "inventory_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    category_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    items: Mapped[list["InventoryItem"]] = relationship(back_populates="category")


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        Index("idx_inventory_items_name", "item_name"),
        Index("idx_inventory_items_active", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    sku: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("inventory_categories.id", ondelete="SET NULL"), nullable=True
    )
    unit_of_measure: Mapped[str] = mapped_column(String(32), nullable=False)

    min_stock: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    max_stock: Mapped[float | None] = mapped_column(Numeric(14, 2), nullable=True)
    current_stock: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    unit_cost: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_batch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    category: Mapped[InventoryCategory | None] = relationship(back_populates="items", lazy="selectin")
