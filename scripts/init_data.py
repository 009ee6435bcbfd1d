#!/usr/bin/env python3
"""
Create the empty user/registration/counter documents and the first super admin.

Usage:
  STORAGE_BACKEND=gcs python scripts/init_data.py --admin-email ops@example.com --admin-password '...'

Safe to run repeatedly: existing documents and admins are left untouched.
"""
import argparse
import logging
import os
import sys

from fame.core.config import settings
from fame.core.observability import setup_logging
from fame.crud import crud_user
from fame.storage import StorageError, build_store

logger = logging.getLogger("init_data")


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--admin-email", default=settings.DEFAULT_ADMIN_EMAIL)
    ap.add_argument("--admin-password", default=os.getenv("DEFAULT_ADMIN_PASSWORD", ""))
    ap.add_argument("--skip-admin", action="store_true", help="Only create the empty documents")
    args = ap.parse_args()

    setup_logging()
    store = build_store(settings)
    print(f"Initializing {store.backend_name} storage ...")
    try:
        crud_user.initialize_data_structure(store)
        if args.skip_admin:
            print("Done (no admin created).")
            return 0
        if not args.admin_password:
            print("--admin-password (or DEFAULT_ADMIN_PASSWORD) is required", file=sys.stderr)
            return 2
        admin = crud_user.ensure_default_admin(store, args.admin_email, args.admin_password)
    except StorageError as exc:
        logger.error("Initialization failed: %s", exc)
        return 1
    if admin is None:
        print("A super admin already exists; nothing to do.")
    else:
        print(f"Created super admin {admin['email']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
