"""Create one login per roster member plus the administrator account.

Usage::

    python -m core.seed [--roster PATH_OR_URL] [--db PATH]

Logins follow the demo convention ``user_<id>`` / ``pass_<id>``; only bcrypt
hashes are stored. Nothing is inserted when the users table already has rows.
"""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, Optional

from core.auth import hash_password
from core.config import Settings
from core.data import Row, read_roster
from core.errors import DuplicateUsername
from core.filters import to_number
from core.store import CredentialStore

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"


def roster_member_id(row: Row) -> Optional[int]:
    value = to_number(row.get("id"))
    if value is None or not float(value).is_integer():
        return None
    return int(value)


def seed_users(
    store: CredentialStore,
    roster_rows: Iterable[Row],
    *,
    admin_password: str = "admin456",
    rounds: int = 10,
) -> int:
    """Seed credentials into an empty users table. Returns the number of inserts."""
    existing = store.count_users()
    if existing:
        logger.info("Database already has %d users. Skipping seeding.", existing)
        return 0

    created = 0
    for row in roster_rows:
        member_id = roster_member_id(row)
        if member_id is None:
            logger.warning("Skipping roster row without a numeric id: %r", row.get("id"))
            continue
        try:
            store.add_user(f"user_{member_id}", hash_password(f"pass_{member_id}", rounds), "user", member_id)
        except DuplicateUsername:
            continue
        created += 1
        if created % 100 == 0:
            logger.info("Created %d users...", created)

    try:
        store.add_user(ADMIN_USERNAME, hash_password(admin_password, rounds), "admin", None)
        created += 1
    except DuplicateUsername:
        pass

    logger.info("User seeding completed: %d accounts created", created)
    return created


def main(argv: Optional[list] = None) -> int:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Seed gym dashboard login accounts from the membership roster.")
    parser.add_argument("--roster", default=settings.membership_source, help="Roster CSV path or URL")
    parser.add_argument("--db", default=str(settings.db_path), help="SQLite database path")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    store = CredentialStore(args.db)
    store.init_schema()
    rows = read_roster(args.roster, timeout=settings.fetch_timeout)
    logger.info("Found %d members in %s", len(rows), args.roster)
    seed_users(store, rows, admin_password=settings.admin_password, rounds=settings.bcrypt_rounds)
    logger.info("Total users: %d", store.count_users())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
