from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.farmerp.models import Base, new_id

ACCOUNT_TYPES = ("asset", "liability", "equity", "revenue", "expense", "cost")
NORMAL_BALANCES = ("debit", "credit")


class Account(Base):
    """Chart-of-accounts entry. current_balance is maintained by posting, not by this app."""

    __tablename__ = "chart_of_accounts"
    __table_args__ = (
        Index("idx_coa_type", "account_type"),
        Index("idx_coa_parent", "parent_account_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(String(16), nullable=False)
    account_subtype: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sat_code_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    parent_account_id: Mapped[str | None] = mapped_column(
        ForeignKey("chart_of_accounts.id", ondelete="SET NULL"), nullable=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_header: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    normal_balance: Mapped[str] = mapped_column(String(8), nullable=False)
    allows_entries: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    current_balance: Mapped[float] = mapped_column(Numeric(16, 2), nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    parent: Mapped["Account | None"] = relationship(remote_side=[id], lazy="selectin")
