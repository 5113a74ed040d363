"""Management CLI for maintenance jobs.

Usage:
    python -m chemsphere.cli check-expiration     # Email the expiration digest now
    python -m chemsphere.cli deactivate-inactive  # Run the inactive account sweep
    python -m chemsphere.cli create-tables        # Create all tables (dev only; use alembic otherwise)
"""

import asyncio
import logging
import sys

from chemsphere.config import settings
from chemsphere.database import Base, async_session, engine
from chemsphere.services.accounts import deactivate_inactive_users
from chemsphere.services.expiration import check_expiration

import chemsphere.models  # noqa: F401  register tables on Base.metadata

logger = logging.getLogger("chemsphere.cli")


async def run_check_expiration() -> int:
    async with async_session() as db:
        result = await check_expiration(db)
    print(f"  {result.processed} chemical(s) nearing expiration")
    print(f"  {result.admin_count} admin(s) notified, {result.emails_sent} email(s) sent")
    return 0


async def run_deactivate_inactive() -> int:
    async with async_session() as db:
        try:
            result = await deactivate_inactive_users(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    print(f"  {result.checked} inactive user(s), {result.deactivated} deactivated")
    for username in result.users_deactivated:
        print(f"    - {username}")
    return 0


async def run_create_tables() -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"  Created {len(Base.metadata.tables)} table(s)")
    return 0


COMMANDS = {
    "check-expiration": run_check_expiration,
    "deactivate-inactive": run_deactivate_inactive,
    "create-tables": run_create_tables,
}


async def _run(command) -> int:
    try:
        return await command()
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cmd = argv[0] if argv else ""
    command = COMMANDS.get(cmd)
    if command is None:
        print(f"Usage: python -m chemsphere.cli [{'|'.join(COMMANDS)}]")
        return 2

    try:
        return asyncio.run(_run(command))
    except Exception:
        logger.exception("Command %s failed", cmd)
        return 1


if __name__ == "__main__":
    sys.exit(main())
