from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.farmerp.models import Base, new_id

FLOCK_TYPES = ("layers", "broilers")
FLOCK_STATUSES = ("active", "completed", "closed")


class Flock(Base):
    __tablename__ = "flocks"
    __table_args__ = (
        Index("idx_flocks_status", "status"),
        Index("idx_flocks_entry_date", "entry_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    flock_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    flock_type: Mapped[str] = mapped_column(String(16), nullable=False)  # layers | broilers
    breed: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    initial_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Maintained outside the flock form (mortality/sales); the form only seeds it.
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    production: Mapped[list["DailyProduction"]] = relationship(
        back_populates="flock",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DailyProduction(Base):
    __tablename__ = "daily_production"
    __table_args__ = (
        Index("idx_daily_production_flock", "flock_id"),
        Index("idx_daily_production_date", "production_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    flock_id: Mapped[str] = mapped_column(ForeignKey("flocks.id", ondelete="CASCADE"), nullable=False)
    production_date: Mapped[date] = mapped_column(Date, nullable=False)

    eggs_jumbo: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_extra_large: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_large: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_medium: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_small: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_dirty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    eggs_broken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_eggs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    hen_count: Mapped[int] = mapped_column(Integer, nullable=False)
    laying_percentage: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    flock: Mapped[Flock] = relationship(back_populates="production")
