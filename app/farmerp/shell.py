"""
Application shell: which view a selected module key maps to, and the sidebar.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import abort, g

from app.farmerp.db import data_service
from app.farmerp.icons import ICON_GLYPHS
from app.farmerp.module_store import ModuleDescriptor, ModuleStore

DEFAULT_MODULE = "dashboard"

# Module key -> endpoint of the view that renders it.
VIEW_ENDPOINTS: dict[str, str] = {
    "dashboard": "dashboard.index",
    "production": "production.flocks_list",
    "inventory": "inventory.items_list",
    "accounting": "accounting.accounts_list",
    "settings": "settings.modules_list",
}


@dataclass(frozen=True)
class ResolvedView:
    module: ModuleDescriptor
    endpoint: str | None  # None → module is enabled but has no view yet

    @property
    def is_placeholder(self) -> bool:
        return self.endpoint is None


def resolve_view(selected_key: str | None, store: ModuleStore) -> ResolvedView | None:
    """
    Map a selected module key to a view. Disabled or unknown keys resolve to None.
    """
    key = (selected_key or DEFAULT_MODULE).strip()
    if not store.is_module_enabled(key):
        return None
    module = store.get(key)
    if module is None:
        return None
    return ResolvedView(module=module, endpoint=VIEW_ENDPOINTS.get(key))


def current_modules() -> ModuleStore:
    """Request-scoped module store, fetched on first use."""
    store: ModuleStore | None = getattr(g, "module_store", None)
    if store is None:
        store = ModuleStore(data_service())
        store.fetch_modules()
        g.module_store = store
    return store


def sidebar_context() -> dict:
    ctx = getattr(g, "session_ctx", None)
    if ctx is None or not ctx.is_authenticated:
        return {"sidebar_modules": [], "current_profile": None}
    store = current_modules()
    return {
        "sidebar_modules": [(m, ICON_GLYPHS[m.icon]) for m in store.enabled_modules],
        "current_profile": ctx.profile,
        "view_endpoints": VIEW_ENDPOINTS,
    }


def require_module(module_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """404 when the module is disabled. Apply beneath require_login/require_permission."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            if not current_modules().is_module_enabled(module_key):
                abort(404)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
