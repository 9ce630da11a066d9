from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.farmerp.db import data_service, query_cache
from app.farmerp.errors import DataServiceError
from app.farmerp.modules.inventory.service import (
    create_item,
    delete_item,
    list_categories,
    list_items,
    search_items,
    stock_status,
    update_item,
    validate_item_payload,
)
from app.farmerp.rbac import require_login, require_permission, user_has_permission
from app.farmerp.shell import require_module

bp = Blueprint("inventory", __name__)


def _render_form(item: dict | None, form: dict, errors: dict[str, str], status: int = 200):
    categories = list_categories(data_service(), query_cache())
    return render_template("inventory/item_form.html", item=item, form=form, errors=errors, categories=categories), status


@bp.get("/inventory/items")
@require_login
@require_module("inventory")
def items_list():
    search = (request.args.get("q") or "").strip()
    items = search_items(list_items(data_service(), query_cache()), search)
    rows = [(item, stock_status(item["current_stock"], item["min_stock"])) for item in items]
    return render_template(
        "inventory/items_list.html",
        rows=rows,
        search=search,
        can_edit=user_has_permission(g.session_ctx, "inventory.edit"),
    )


@bp.get("/inventory/items/new")
@require_permission("inventory.edit")
@require_module("inventory")
def items_new_get():
    return _render_form(None, {}, {})


@bp.post("/inventory/items/new")
@require_permission("inventory.edit")
@require_module("inventory")
def items_new_post():
    form = request.form.to_dict()
    payload, errors = validate_item_payload(form)
    if errors:
        return _render_form(None, form, errors, 400)
    try:
        item = create_item(data_service(), query_cache(), payload)
    except DataServiceError as e:
        flash(f"Could not save item: {e}", "danger")
        return _render_form(None, form, {}, 400)
    flash(f"Item {item['sku']} created.", "success")
    return redirect(url_for("inventory.items_list"))


@bp.get("/inventory/items/<item_id>/edit")
@require_permission("inventory.edit")
@require_module("inventory")
def items_edit_get(item_id: str):
    item = data_service().get("inventory_items", item_id)
    if not item:
        abort(404)
    form = {k: ("" if v is None else v) for k, v in item.items()}
    return _render_form(item, form, {})


@bp.post("/inventory/items/<item_id>/edit")
@require_permission("inventory.edit")
@require_module("inventory")
def items_edit_post(item_id: str):
    item = data_service().get("inventory_items", item_id)
    if not item:
        abort(404)
    form = request.form.to_dict()
    payload, errors = validate_item_payload(form)
    if errors:
        return _render_form(item, form, errors, 400)
    try:
        update_item(data_service(), query_cache(), item_id, payload)
    except DataServiceError as e:
        flash(f"Could not save item: {e}", "danger")
        return _render_form(item, form, {}, 400)
    flash("Item updated.", "success")
    return redirect(url_for("inventory.items_list"))


@bp.post("/inventory/items/<item_id>/delete")
@require_permission("inventory.delete")
@require_module("inventory")
def items_delete(item_id: str):
    if not delete_item(data_service(), query_cache(), item_id):
        abort(404)
    flash("Item deleted.", "success")
    return redirect(url_for("inventory.items_list"))
