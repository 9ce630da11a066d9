from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.farmerp.errors import UnknownModuleError
from app.farmerp.rbac import require_permission
from app.farmerp.shell import current_modules
from app.farmerp.utils import parse_bool

bp = Blueprint("settings", __name__)


# Gated on the permission alone so an admin can always re-enable a disabled module.
@bp.get("/settings/modules")
@require_permission("modules.toggle")
def modules_list():
    store = current_modules()
    rows = [(m, store.missing_requirements(m.key)) for m in store.modules]
    return render_template("settings/modules.html", rows=rows)


@bp.post("/settings/modules/<module_key>/toggle")
@require_permission("modules.toggle")
def modules_toggle(module_key: str):
    enabled = parse_bool(request.form.get("enabled"))
    store = current_modules()
    try:
        store.toggle_module(module_key, enabled)
    except UnknownModuleError:
        abort(404)
    module = store.get(module_key)
    name = module.name if module else module_key
    flash(f"{name} {'enabled' if enabled else 'disabled'}.", "success")
    return redirect(url_for("settings.modules_list"))
