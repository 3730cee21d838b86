#!/usr/bin/env python3
"""
Permanently delete accounts that were deactivated 7 or more days ago.
Meant to run once a day from a scheduler (cron, Render cron job).

Run from project root with DATABASE_URL set:
  python scripts/purge_deactivated_users.py
"""

from __future__ import annotations

import logging
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

from progressly.db.session import SessionLocal
from progressly.services.accounts import purge_expired_accounts

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def main() -> None:
    if not os.getenv("DATABASE_URL"):
        print("ERROR: DATABASE_URL not set. Add it to .env or export it.")
        sys.exit(1)

    db = SessionLocal()
    try:
        deleted = purge_expired_accounts(db)
    finally:
        db.close()
    print(f"Purged {deleted} deactivated account(s).")


if __name__ == "__main__":
    main()
