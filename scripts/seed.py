"""
Seed a PlanIt database with demo entities and events around Charlotte, NC.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from planit.config import get_settings
from planit.db import UserRecord
from planit.db_postgres import PostgresDbClient
from planit.seed import seed_demo_data

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed PlanIt demo data")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--admin-id",
        type=str,
        required=True,
        help="Auth user id that will own the demo entities",
    )
    parser.add_argument(
        "--admin-email",
        type=str,
        default="demo@planit.local",
        help="Email stored on the admin profile row",
    )
    parser.add_argument(
        "--admin-username",
        type=str,
        default=None,
        help="Username stored on the admin profile row",
    )
    parser.add_argument(
        "--install-spatial",
        action="store_true",
        help="Create the PostGIS radius functions before seeding",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    database_url = args.database_url or get_settings().database_url
    if not database_url:
        logger.error("No database URL; pass --database-url or set DATABASE_URL")
        return 1

    db = PostgresDbClient(database_url)
    if args.install_spatial:
        db.install_spatial_functions()

    admin = UserRecord(
        id=args.admin_id, email=args.admin_email, username=args.admin_username
    )
    counts = seed_demo_data(db, admin)
    logger.info("Done: %s", counts)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
