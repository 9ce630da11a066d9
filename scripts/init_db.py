import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.farmerp.models import SystemModule, User, UserProfile  # noqa: E402
from app.farmerp.modules.accounting.models import Account  # noqa: E402
from app.farmerp.modules.inventory.models import InventoryCategory  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402

# key, name, icon, sort_order, enabled, requires
SYSTEM_MODULES = [
    ("dashboard", "Dashboard", "LayoutDashboard", 10, True, []),
    ("production", "Production", "Egg", 20, True, []),
    ("inventory", "Inventory", "Package", 30, True, []),
    ("accounting", "Accounting", "Calculator", 40, True, []),
    ("sales", "Sales", "ShoppingCart", 50, False, ["inventory", "accounting"]),
    ("purchasing", "Purchasing", "Truck", 60, False, ["inventory", "accounting"]),
    ("hr", "Human Resources", "Users", 70, False, []),
    ("reports", "Reports", "BarChart", 80, False, ["production", "inventory"]),
    ("settings", "Settings", "Settings", 90, True, []),
]

INVENTORY_CATEGORIES = [
    ("Feed", "Complete rations and raw feed ingredients"),
    ("Medication", "Vaccines, antibiotics and vitamins"),
    ("Packaging", "Egg trays, boxes and labels"),
    ("Supplies", "Cleaning and general farm supplies"),
]

# code, name, type, parent code, level, is_header
CHART_OF_ACCOUNTS = [
    ("1000", "Assets", "asset", None, 1, True),
    ("1100", "Cash and banks", "asset", "1000", 2, False),
    ("1200", "Accounts receivable", "asset", "1000", 2, False),
    ("1300", "Inventory", "asset", "1000", 2, False),
    ("2000", "Liabilities", "liability", None, 1, True),
    ("2100", "Accounts payable", "liability", "2000", 2, False),
    ("3000", "Equity", "equity", None, 1, True),
    ("3100", "Share capital", "equity", "3000", 2, False),
    ("4000", "Revenue", "revenue", None, 1, True),
    ("4100", "Egg sales", "revenue", "4000", 2, False),
    ("5000", "Cost of sales", "cost", None, 1, True),
    ("5100", "Feed consumed", "cost", "5000", 2, False),
    ("6000", "Operating expenses", "expense", None, 1, True),
    ("6100", "Wages", "expense", "6000", 2, False),
]


def _normal_balance(account_type: str) -> str:
    return "debit" if account_type in ("asset", "expense", "cost") else "credit"


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed modules, categories, chart of accounts and the admin identity idempotently.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@farmerp.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///farmerp.db").strip()

    # Direct engine/session so release can seed without building the Flask app.
    with script_session(db_url) as s:
        for key, name, icon, sort_order, enabled, requires in SYSTEM_MODULES:
            m = s.query(SystemModule).filter(SystemModule.module_key == key).one_or_none()
            if not m:
                s.add(
                    SystemModule(
                        module_key=key,
                        module_name=name,
                        icon=icon,
                        sort_order=sort_order,
                        is_enabled=enabled,
                        requires_modules=requires,
                        config={},
                    )
                )

        for name, description in INVENTORY_CATEGORIES:
            c = s.query(InventoryCategory).filter(InventoryCategory.category_name == name).one_or_none()
            if not c:
                s.add(InventoryCategory(category_name=name, description=description))

        by_code: dict[str, Account] = {a.account_code: a for a in s.query(Account).all()}
        for code, name, account_type, parent_code, level, is_header in CHART_OF_ACCOUNTS:
            if code in by_code:
                continue
            parent = by_code.get(parent_code) if parent_code else None
            account = Account(
                account_code=code,
                account_name=name,
                account_type=account_type,
                normal_balance=_normal_balance(account_type),
                level=level,
                is_header=is_header,
                allows_entries=not is_header,
                parent=parent,
            )
            s.add(account)
            by_code[code] = account

        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(email=admin_email, password_hash=generate_password_hash(admin_password), is_active=True)
            s.add(user)
            s.flush()
        profile = s.get(UserProfile, user.id)
        if not profile:
            s.add(UserProfile(id=user.id, full_name="Administrator", role="admin"))
        elif profile.role != "admin":
            profile.role = "admin"

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
