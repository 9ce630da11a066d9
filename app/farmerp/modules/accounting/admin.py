from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.farmerp.db import data_service, query_cache
from app.farmerp.errors import DataServiceError
from app.farmerp.modules.accounting.service import (
    ACCOUNT_TYPE_LABELS,
    NORMAL_BALANCE_LABELS,
    create_account,
    deactivate_account,
    format_balance,
    list_accounts,
    search_accounts,
    update_account,
    validate_account_payload,
)
from app.farmerp.rbac import require_login, require_permission, user_has_permission
from app.farmerp.shell import require_module

bp = Blueprint("accounting", __name__)


def _render_form(account: dict | None, form: dict, errors: dict[str, str], status: int = 200):
    parents = [a for a in list_accounts(data_service(), query_cache()) if a["is_header"]]
    return (
        render_template(
            "accounting/account_form.html",
            account=account,
            form=form,
            errors=errors,
            parents=parents,
            type_labels=ACCOUNT_TYPE_LABELS,
            balance_labels=NORMAL_BALANCE_LABELS,
        ),
        status,
    )


@bp.get("/accounting/accounts")
@require_login
@require_module("accounting")
def accounts_list():
    search = (request.args.get("q") or "").strip()
    accounts = search_accounts(list_accounts(data_service(), query_cache()), search)
    return render_template(
        "accounting/accounts_list.html",
        accounts=accounts,
        search=search,
        type_labels=ACCOUNT_TYPE_LABELS,
        balance_labels=NORMAL_BALANCE_LABELS,
        format_balance=format_balance,
        can_edit=user_has_permission(g.session_ctx, "accounts.edit"),
    )


@bp.get("/accounting/accounts/new")
@require_permission("accounts.edit")
@require_module("accounting")
def accounts_new_get():
    return _render_form(None, {"level": 1}, {})


@bp.post("/accounting/accounts/new")
@require_permission("accounts.edit")
@require_module("accounting")
def accounts_new_post():
    form = request.form.to_dict()
    payload, errors = validate_account_payload(form)
    if errors:
        return _render_form(None, form, errors, 400)
    try:
        account = create_account(data_service(), query_cache(), payload)
    except DataServiceError as e:
        flash(f"Could not save account: {e}", "danger")
        return _render_form(None, form, {}, 400)
    flash(f"Account {account['account_code']} created.", "success")
    return redirect(url_for("accounting.accounts_list"))


@bp.get("/accounting/accounts/<account_id>/edit")
@require_permission("accounts.edit")
@require_module("accounting")
def accounts_edit_get(account_id: str):
    account = data_service().get("chart_of_accounts", account_id)
    if not account:
        abort(404)
    form = {k: ("" if v is None else v) for k, v in account.items()}
    return _render_form(account, form, {})


@bp.post("/accounting/accounts/<account_id>/edit")
@require_permission("accounts.edit")
@require_module("accounting")
def accounts_edit_post(account_id: str):
    account = data_service().get("chart_of_accounts", account_id)
    if not account:
        abort(404)
    form = request.form.to_dict()
    payload, errors = validate_account_payload(form)
    if errors:
        return _render_form(account, form, errors, 400)
    # The balance is maintained by postings; the edit form never overwrites it.
    payload.pop("current_balance", None)
    try:
        update_account(data_service(), query_cache(), account_id, payload)
    except DataServiceError as e:
        flash(f"Could not save account: {e}", "danger")
        return _render_form(account, form, {}, 400)
    flash("Account updated.", "success")
    return redirect(url_for("accounting.accounts_list"))


@bp.post("/accounting/accounts/<account_id>/deactivate")
@require_permission("accounts.edit")
@require_module("accounting")
def accounts_deactivate(account_id: str):
    if not deactivate_account(data_service(), query_cache(), account_id):
        abort(404)
    flash("Account deactivated.", "success")
    return redirect(url_for("accounting.accounts_list"))
