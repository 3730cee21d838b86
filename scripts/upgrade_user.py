#!/usr/bin/env python3
"""
Manually put a user on a plan without going through Stripe (support, testing).

Run from project root with DATABASE_URL set:
  python scripts/upgrade_user.py --email someone@example.com --plan pro
  python scripts/upgrade_user.py --email someone@example.com --plan starter --days 90
  python scripts/upgrade_user.py --email someone@example.com --plan free
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv(project_root / ".env")
load_dotenv(project_root / ".env.local")

_database_url = os.getenv("DATABASE_URL")
if _database_url and _database_url.startswith("postgres://"):
    os.environ["DATABASE_URL"] = "postgresql://" + _database_url[10:]

from progressly.core.plan_limits import PlanTier, UnknownPlanError
from progressly.db.session import SessionLocal
from progressly.services.accounts import upgrade_user


def main() -> None:
    parser = argparse.ArgumentParser(description="Manually set a user's plan")
    parser.add_argument("--email", type=str, required=True, help="User email")
    parser.add_argument("--plan", type=str, required=True, choices=[t.value for t in PlanTier], help="Plan tier")
    parser.add_argument("--days", type=int, default=30, help="Days of paid access (ignored for free)")
    args = parser.parse_args()

    if not os.getenv("DATABASE_URL"):
        print("ERROR: DATABASE_URL not set. Add it to .env or export it.")
        sys.exit(1)

    db = SessionLocal()
    try:
        result = upgrade_user(db, args.email, args.plan, days=args.days)
    except UnknownPlanError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        db.close()

    if not result.success:
        print(f"ERROR: {result.error}")
        sys.exit(1)
    print(f"{args.email} is now on the {args.plan} plan.")


if __name__ == "__main__":
    main()
