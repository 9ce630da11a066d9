from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.farmerp.modules.accounting.models import ACCOUNT_TYPES, NORMAL_BALANCES
from app.farmerp.search import filter_rows
from app.farmerp.utils import clean_str, parse_bool, parse_int, parse_number

if TYPE_CHECKING:
    from app.farmerp.data_service import DataService
    from app.farmerp.query_cache import QueryCache

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = ("chart_of_accounts", "active")
SEARCH_FIELDS = ("account_name", "account_code")

ACCOUNT_TYPE_LABELS = {
    "asset": "Asset",
    "liability": "Liability",
    "equity": "Equity",
    "revenue": "Revenue",
    "expense": "Expense",
    "cost": "Cost",
}
NORMAL_BALANCE_LABELS = {"debit": "Debit", "credit": "Credit"}

# Debit-normal account types; everything else is credit-normal.
DEBIT_TYPES = frozenset({"asset", "expense", "cost"})


def default_normal_balance(account_type: str) -> str:
    return "debit" if account_type in DEBIT_TYPES else "credit"


def account_type_label(account_type: str) -> str:
    return ACCOUNT_TYPE_LABELS.get(account_type, account_type)


def format_balance(amount: float | int | None) -> str:
    return f"{(amount or 0):,.2f}"


def validate_account_payload(form: dict) -> tuple[dict[str, Any], dict[str, str]]:
    errors: dict[str, str] = {}
    payload: dict[str, Any] = {}

    for name in ("account_code", "account_name"):
        value = clean_str(form.get(name))
        if not value:
            errors[name] = "Required."
        payload[name] = value

    account_type = clean_str(form.get("account_type"))
    if account_type not in ACCOUNT_TYPES:
        errors["account_type"] = f"Must be one of: {', '.join(ACCOUNT_TYPES)}."
    payload["account_type"] = account_type

    normal_balance = clean_str(form.get("normal_balance"))
    if normal_balance is None and account_type in ACCOUNT_TYPES:
        normal_balance = default_normal_balance(account_type)
    if normal_balance not in NORMAL_BALANCES:
        errors["normal_balance"] = "Must be debit or credit."
    payload["normal_balance"] = normal_balance

    try:
        level = parse_int(form.get("level"))
    except ValueError:
        level = None
        errors["level"] = "Must be a whole number."
    if level is None:
        level = 1
    if level < 1:
        errors["level"] = "Must be at least 1."
    payload["level"] = level

    try:
        balance = parse_number(form.get("current_balance"))
    except ValueError:
        errors["current_balance"] = "Must be a number."
    else:
        if balance is not None:
            payload["current_balance"] = balance

    payload["account_subtype"] = clean_str(form.get("account_subtype"))
    payload["parent_account_id"] = clean_str(form.get("parent_account_id"))
    payload["description"] = clean_str(form.get("description"))
    payload["is_header"] = parse_bool(form.get("is_header"))
    # Header accounts only group children; they never take postings.
    payload["allows_entries"] = not payload["is_header"]
    return payload, errors


def list_accounts(data: "DataService", cache: "QueryCache") -> list[dict]:
    return cache.get_or_fetch(
        ACCOUNTS_KEY,
        lambda: data.select("chart_of_accounts", eq={"is_active": True}, order_by="account_code").rows,
    )


def search_accounts(rows: list[dict], term: str | None) -> list[dict]:
    return filter_rows(rows, term, SEARCH_FIELDS)


def create_account(data: "DataService", cache: "QueryCache", payload: dict) -> dict:
    row = data.insert("chart_of_accounts", payload)
    cache.invalidate("chart_of_accounts")
    logger.info("Account created id=%s code=%s", row["id"], row["account_code"])
    return row


def update_account(data: "DataService", cache: "QueryCache", account_id: str, payload: dict) -> dict | None:
    rows = data.update("chart_of_accounts", payload, eq={"id": account_id})
    cache.invalidate("chart_of_accounts")
    return rows[0] if rows else None


def deactivate_account(data: "DataService", cache: "QueryCache", account_id: str) -> bool:
    rows = data.update("chart_of_accounts", {"is_active": False}, eq={"id": account_id})
    cache.invalidate("chart_of_accounts")
    return bool(rows)
