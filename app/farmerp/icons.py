"""
Sidebar icons.

Module descriptors store an icon *name*; only the names below are rendered,
anything else falls back to `Icon.CIRCLE`.
"""
from __future__ import annotations

import re
from enum import Enum


class Icon(str, Enum):
    LAYOUT_DASHBOARD = "layout-dashboard"
    EGG = "egg"
    PACKAGE = "package"
    CALCULATOR = "calculator"
    SHOPPING_CART = "shopping-cart"
    TRUCK = "truck"
    USERS = "users"
    BAR_CHART = "bar-chart"
    SETTINGS = "settings"
    CIRCLE = "circle"

    @classmethod
    def from_name(cls, name: str | None) -> "Icon":
        """Accepts "LayoutDashboard", "layout-dashboard" or "layout_dashboard"."""
        if not name:
            return cls.CIRCLE
        slug = re.sub(r"(?<!^)(?=[A-Z])", "-", name.strip()).replace("_", "-").lower()
        slug = re.sub(r"-+", "-", slug)
        try:
            return cls(slug)
        except ValueError:
            return cls.CIRCLE

    @property
    def css_class(self) -> str:
        return f"icon icon-{self.value}"


# Text glyphs used by the server-rendered sidebar.
ICON_GLYPHS: dict[Icon, str] = {
    Icon.LAYOUT_DASHBOARD: "▦",
    Icon.EGG: "◯",
    Icon.PACKAGE: "▣",
    Icon.CALCULATOR: "∑",
    Icon.SHOPPING_CART: "⊕",
    Icon.TRUCK: "⇶",
    Icon.USERS: "☺",
    Icon.BAR_CHART: "▥",
    Icon.SETTINGS: "⚙",
    Icon.CIRCLE: "●",
}
