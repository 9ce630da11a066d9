import pytest

from app.farmerp.icons import ICON_GLYPHS, Icon


@pytest.mark.parametrize(
    "name, expected",
    [
        ("LayoutDashboard", Icon.LAYOUT_DASHBOARD),
        ("layout-dashboard", Icon.LAYOUT_DASHBOARD),
        ("ShoppingCart", Icon.SHOPPING_CART),
        ("BarChart", Icon.BAR_CHART),
        ("Egg", Icon.EGG),
        ("settings", Icon.SETTINGS),
    ],
)
def test_from_name(name, expected):
    assert Icon.from_name(name) is expected


@pytest.mark.parametrize("name", [None, "", "Tractor", "unknown-icon"])
def test_unknown_names_fall_back_to_circle(name):
    assert Icon.from_name(name) is Icon.CIRCLE


def test_every_icon_has_a_glyph():
    assert set(ICON_GLYPHS) == set(Icon)
    assert Icon.EGG.css_class == "icon icon-egg"
