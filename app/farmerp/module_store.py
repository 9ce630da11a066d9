"""
Module visibility store.

Holds the feature-module descriptors last fetched from `system_modules` and the
enabled subset the sidebar renders. `is_module_enabled` answers from that cached
subset, so it reflects the last fetch rather than the live table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.farmerp.data_service import DataService
from app.farmerp.errors import UnknownModuleError
from app.farmerp.icons import Icon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleDescriptor:
    key: str
    name: str
    enabled: bool
    icon: Icon = Icon.CIRCLE
    sort_order: int = 0
    description: str | None = None
    requires: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ModuleDescriptor":
        return cls(
            key=row["module_key"],
            name=row["module_name"],
            enabled=bool(row["is_enabled"]),
            icon=Icon.from_name(row.get("icon")),
            sort_order=row.get("sort_order") or 0,
            description=row.get("description"),
            requires=tuple(row.get("requires_modules") or ()),
        )


class ModuleStore:
    def __init__(self, data: DataService) -> None:
        self._data = data
        self.modules: list[ModuleDescriptor] = []
        self.enabled_modules: list[ModuleDescriptor] = []
        self.loading = False

    def fetch_modules(self) -> list[ModuleDescriptor]:
        self.loading = True
        try:
            result = self._data.select("system_modules", order_by="sort_order")
            modules = [ModuleDescriptor.from_row(r) for r in result.rows]
            # Swap both lists together so readers never see a half-updated pair.
            self.modules, self.enabled_modules = modules, [m for m in modules if m.enabled]
        finally:
            self.loading = False
        return self.enabled_modules

    def toggle_module(self, key: str, enabled: bool) -> None:
        updated = self._data.update("system_modules", {"is_enabled": bool(enabled)}, eq={"module_key": key})
        if not updated:
            raise UnknownModuleError(f"Unknown module: {key}")
        logger.info("Module %s %s", key, "enabled" if enabled else "disabled")
        self.fetch_modules()

    def is_module_enabled(self, key: str) -> bool:
        return any(m.key == key for m in self.enabled_modules)

    def get(self, key: str) -> ModuleDescriptor | None:
        return next((m for m in self.modules if m.key == key), None)

    def missing_requirements(self, key: str) -> list[str]:
        """Declared requirements of `key` that are not enabled. Informational; nothing enforces them."""
        module = self.get(key)
        if module is None:
            return []
        return [req for req in module.requires if not self.is_module_enabled(req)]
