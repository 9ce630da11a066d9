from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.farmerp.db import data_service, query_cache
from app.farmerp.errors import DataServiceError
from app.farmerp.modules.production.service import (
    DEFAULT_BREED,
    EGG_CLASSES,
    FLOCK_STATUS_LABELS,
    FLOCK_TYPE_LABELS,
    create_flock,
    delete_flock,
    list_flocks,
    list_production,
    record_daily_production,
    search_flocks,
    update_flock,
    validate_flock_payload,
    validate_production_payload,
)
from app.farmerp.rbac import require_login, require_permission, user_has_permission
from app.farmerp.shell import require_module

bp = Blueprint("production", __name__)


def _user_id() -> str | None:
    ctx = getattr(g, "session_ctx", None)
    return ctx.user.id if ctx and ctx.user else None


def _get_flock_or_404(flock_id: str) -> dict:
    flock = data_service().get("flocks", flock_id)
    if not flock:
        abort(404)
    return flock


def _render_form(flock: dict | None, form: dict, errors: dict[str, str], status: int = 200):
    return (
        render_template(
            "production/flock_form.html",
            flock=flock,
            form=form,
            errors=errors,
            flock_types=FLOCK_TYPE_LABELS,
            flock_statuses=FLOCK_STATUS_LABELS,
        ),
        status,
    )


# ---------- List ----------
@bp.get("/production/flocks")
@require_login
@require_module("production")
def flocks_list():
    search = (request.args.get("q") or "").strip()
    flocks = search_flocks(list_flocks(data_service(), query_cache()), search)
    return render_template(
        "production/flocks_list.html",
        flocks=flocks,
        search=search,
        type_labels=FLOCK_TYPE_LABELS,
        status_labels=FLOCK_STATUS_LABELS,
        can_delete=user_has_permission(g.session_ctx, "flocks.delete"),
    )


# ---------- New ----------
@bp.get("/production/flocks/new")
@require_permission("flocks.edit")
@require_module("production")
def flocks_new_get():
    return _render_form(None, {"breed": DEFAULT_BREED, "flock_type": "layers"}, {})


@bp.post("/production/flocks/new")
@require_permission("flocks.edit")
@require_module("production")
def flocks_new_post():
    form = request.form.to_dict()
    payload, errors = validate_flock_payload(form)
    if errors:
        return _render_form(None, form, errors, 400)
    try:
        flock = create_flock(data_service(), query_cache(), payload, _user_id())
    except DataServiceError as e:
        flash(f"Could not save flock: {e}", "danger")
        return _render_form(None, form, {}, 400)
    flash(f"Flock {flock['flock_number']} created.", "success")
    return redirect(url_for("production.flocks_list"))


# ---------- Detail ----------
def _render_detail(flock: dict, form: dict, errors: dict, status: int = 200):
    records = list_production(data_service(), query_cache(), flock["id"])
    return (
        render_template(
            "production/flock_detail.html",
            flock=flock,
            records=records,
            egg_classes=EGG_CLASSES,
            type_labels=FLOCK_TYPE_LABELS,
            status_labels=FLOCK_STATUS_LABELS,
            form=form,
            errors=errors,
        ),
        status,
    )


@bp.get("/production/flocks/<flock_id>")
@require_login
@require_module("production")
def flocks_detail(flock_id: str):
    return _render_detail(_get_flock_or_404(flock_id), {}, {})


# ---------- Edit ----------
@bp.get("/production/flocks/<flock_id>/edit")
@require_permission("flocks.edit")
@require_module("production")
def flocks_edit_get(flock_id: str):
    flock = _get_flock_or_404(flock_id)
    form = {k: ("" if v is None else v) for k, v in flock.items()}
    return _render_form(flock, form, {})


@bp.post("/production/flocks/<flock_id>/edit")
@require_permission("flocks.edit")
@require_module("production")
def flocks_edit_post(flock_id: str):
    flock = _get_flock_or_404(flock_id)
    form = request.form.to_dict()
    payload, errors = validate_flock_payload(form)
    if errors:
        return _render_form(flock, form, errors, 400)
    try:
        update_flock(data_service(), query_cache(), flock_id, payload)
    except DataServiceError as e:
        flash(f"Could not save flock: {e}", "danger")
        return _render_form(flock, form, {}, 400)
    flash("Flock updated.", "success")
    return redirect(url_for("production.flocks_detail", flock_id=flock_id))


# ---------- Delete ----------
@bp.post("/production/flocks/<flock_id>/delete")
@require_permission("flocks.delete")
@require_module("production")
def flocks_delete(flock_id: str):
    if not delete_flock(data_service(), query_cache(), flock_id):
        abort(404)
    flash("Flock deleted.", "success")
    return redirect(url_for("production.flocks_list"))


# ---------- Daily production ----------
@bp.post("/production/flocks/<flock_id>/production")
@require_permission("production.record")
@require_module("production")
def production_record(flock_id: str):
    flock = _get_flock_or_404(flock_id)
    form = request.form.to_dict()
    payload, errors = validate_production_payload(form)
    if errors:
        return _render_detail(flock, form, errors, 400)
    try:
        record_daily_production(data_service(), query_cache(), flock_id, payload, _user_id())
    except DataServiceError as e:
        flash(f"Could not record production: {e}", "danger")
        return _render_detail(flock, form, {}, 400)
    flash("Production recorded.", "success")
    return redirect(url_for("production.flocks_detail", flock_id=flock_id))
