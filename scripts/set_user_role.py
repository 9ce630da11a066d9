#!/usr/bin/env python3
"""Set the role on a user's profile (admin, manager or operator).

Usage:
  python scripts/set_user_role.py --email someone@example.com --role manager
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.farmerp.models import ROLES, User, UserProfile  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="Email of the identity to update")
    parser.add_argument("--role", required=True, choices=ROLES)
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///farmerp.db").strip()
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email.ilike(args.email)).one_or_none()
        if not user:
            print(f"User not found: {args.email}")
            return
        profile = s.get(UserProfile, user.id)
        if not profile:
            print(f"User has no profile: {args.email}")
            return
        if profile.role == args.role:
            print(f"User already has role {args.role}: {args.email}")
            return
        profile.role = args.role
    print(f"Role {args.role} set for {args.email}")


if __name__ == "__main__":
    main()
