#!/usr/bin/env python
"""Seed script for the global permission catalogue.

Inserts every known permission code that is not yet present. Safe to run
repeatedly, e.g. after each deployment.

Usage:
    python backend/scripts/seed_permissions.py

Environment Variables:
    DATABASE_URL: Database connection string
"""

import sys

from docflow.access.catalogue import seed_permission_catalogue
from docflow.config import get_settings
from docflow.database import get_db_session
from docflow.observability.logging_config import configure_logging


def main() -> int:
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    with get_db_session() as session:
        inserted = seed_permission_catalogue(session)

    if inserted:
        print(f"Inserted {len(inserted)} permission codes:")
        for code in inserted:
            print(f"  {code}")
    else:
        print("Permission catalogue already complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
