"""
Row-level data service.

Views and stores read and write through this boundary instead of the ORM:
rows go in and come out as plain dicts, filters are column equality only,
and relational lookups are expressed as joined column paths
("category.category_name"). Every call runs in its own transaction.
"""
from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.farmerp.errors import DataServiceError, UnknownResourceError
from app.farmerp.models import Base, SystemModule, UserProfile
from app.farmerp.modules.accounting.models import Account
from app.farmerp.modules.inventory.models import InventoryCategory, InventoryItem
from app.farmerp.modules.production.models import DailyProduction, Flock

logger = logging.getLogger(__name__)

RESOURCES: dict[str, type[Base]] = {
    "system_modules": SystemModule,
    "user_profiles": UserProfile,
    "flocks": Flock,
    "daily_production": DailyProduction,
    "inventory_categories": InventoryCategory,
    "inventory_items": InventoryItem,
    "chart_of_accounts": Account,
}


@dataclass
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    count: int | None = None

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


class DataService:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _scope(self, resource: str, operation: str) -> Generator[Session, None, None]:
        s: Session = self._session_factory()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            logger.warning("Data service %s on %s failed: %s", operation, resource, e)
            raise DataServiceError(resource, operation, str(getattr(e, "orig", None) or e)) from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ---------- metadata ----------
    @staticmethod
    def model_for(resource: str) -> type[Base]:
        try:
            return RESOURCES[resource]
        except KeyError:
            raise UnknownResourceError(f"Unknown resource: {resource}") from None

    @staticmethod
    def _column_names(model: type[Base]) -> set[str]:
        return {c.key for c in model.__table__.columns}

    def _check_columns(self, resource: str, model: type[Base], names: Iterable[str]) -> None:
        known = self._column_names(model)
        unknown = sorted(n for n in names if n not in known)
        if unknown:
            raise UnknownResourceError(f"Unknown column(s) on {resource}: {', '.join(unknown)}")

    def _where(self, resource: str, model: type[Base], eq: Mapping[str, Any] | None) -> list:
        if not eq:
            return []
        self._check_columns(resource, model, eq.keys())
        return [getattr(model, k) == v for k, v in eq.items()]

    def _serialize(self, obj: Base, columns: tuple[str, ...]) -> dict[str, Any]:
        model = type(obj)
        row: dict[str, Any] = {}
        plain = [c for c in columns if "." not in c]
        if "*" in plain:
            plain = [c.key for c in model.__table__.columns]
        for name in plain:
            row[name] = _plain(getattr(obj, name))
        for path in (c for c in columns if "." in c):
            relation, _, column = path.partition(".")
            target = getattr(obj, relation)
            row[path] = _plain(getattr(target, column)) if target is not None else None
        return row

    def _check_select_columns(self, resource: str, model: type[Base], columns: tuple[str, ...]) -> None:
        self._check_columns(resource, model, [c for c in columns if c != "*" and "." not in c])
        relationships = model.__mapper__.relationships
        for path in (c for c in columns if "." in c):
            relation, _, column = path.partition(".")
            if relation not in relationships:
                raise UnknownResourceError(f"Unknown relation on {resource}: {relation}")
            target_model = relationships[relation].mapper.class_
            self._check_columns(resource, target_model, [column])

    # ---------- operations ----------
    def select(
        self,
        resource: str,
        *,
        columns: tuple[str, ...] = ("*",),
        eq: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        count: bool = False,
    ) -> QueryResult:
        model = self.model_for(resource)
        self._check_select_columns(resource, model, columns)
        where = self._where(resource, model, eq)
        if order_by:
            self._check_columns(resource, model, [order_by])

        with self._scope(resource, "select") as s:
            stmt = select(model).where(*where)
            if order_by:
                col = getattr(model, order_by)
                stmt = stmt.order_by(col.desc() if descending else col.asc())
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = [self._serialize(obj, columns) for obj in s.scalars(stmt).all()]

            total = None
            if count:
                total = s.scalar(select(func.count()).select_from(model).where(*where)) or 0

        logger.debug("select %s eq=%s -> %s rows", resource, dict(eq or {}), len(rows))
        return QueryResult(rows=rows, count=total)

    def get(self, resource: str, row_id: Any) -> dict[str, Any] | None:
        return self.select(resource, eq={"id": row_id}, limit=1).first()

    def insert(self, resource: str, values: Mapping[str, Any]) -> dict[str, Any]:
        model = self.model_for(resource)
        self._check_columns(resource, model, values.keys())
        with self._scope(resource, "insert") as s:
            obj = model(**dict(values))
            s.add(obj)
            s.flush()
            row = self._serialize(obj, ("*",))
        logger.info("insert %s id=%s", resource, row.get("id"))
        return row

    def update(self, resource: str, values: Mapping[str, Any], *, eq: Mapping[str, Any]) -> list[dict[str, Any]]:
        model = self.model_for(resource)
        self._check_columns(resource, model, values.keys())
        where = self._where(resource, model, eq)
        if not where:
            raise DataServiceError(resource, "update", "an eq filter is required")
        with self._scope(resource, "update") as s:
            objs = s.scalars(select(model).where(*where)).all()
            for obj in objs:
                for k, v in values.items():
                    setattr(obj, k, v)
                if "updated_at" in self._column_names(model) and "updated_at" not in values:
                    obj.updated_at = datetime.utcnow()
            s.flush()
            rows = [self._serialize(obj, ("*",)) for obj in objs]
        logger.info("update %s eq=%s -> %s rows", resource, dict(eq), len(rows))
        return rows

    def delete(self, resource: str, *, eq: Mapping[str, Any]) -> int:
        model = self.model_for(resource)
        where = self._where(resource, model, eq)
        if not where:
            raise DataServiceError(resource, "delete", "an eq filter is required")
        with self._scope(resource, "delete") as s:
            result = s.execute(sa_delete(model).where(*where))
            deleted = result.rowcount or 0
        logger.info("delete %s eq=%s -> %s rows", resource, dict(eq), deleted)
        return deleted
