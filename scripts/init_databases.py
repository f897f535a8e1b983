#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the Attest schema and seed roles, permissions, the master
organization and the first super admin.

Usage:
    python scripts/init_databases.py
    python scripts/init_databases.py --schema-only
    python scripts/init_databases.py --admin-email admin@example.com --admin-password secret

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


async def init_postgres() -> bool:
    """Create all tables."""
    from sqlalchemy import text

    import services.assessment_workflow.models  # noqa: F401
    from shared.database.postgres import Base, PostgresClient

    logger.info("Initializing PostgreSQL...")

    try:
        engine = PostgresClient.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

            result = await conn.execute(text("SELECT version()"))
            version = result.scalar()
            logger.info(f"PostgreSQL connected: {version[:50]}...")

        logger.info("PostgreSQL initialized successfully")
        return True

    except Exception as e:
        logger.error(f"PostgreSQL initialization failed: {e}")
        return False


async def seed_data(admin_email: str | None, admin_password: str | None) -> bool:
    """Seed roles, permissions, the master organization and the super admin."""
    from services.assessment_workflow.seed import seed_master_organization, seed_roles
    from shared.database.postgres import postgres_session

    logger.info("Seeding access control data...")

    try:
        async with postgres_session() as session:
            await seed_roles(session)
            await seed_master_organization(session, admin_email, admin_password)

        logger.info("Data seeding completed")
        return True

    except Exception as e:
        logger.error(f"Data seeding failed: {e}")
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from shared.database.postgres import PostgresClient

    logger.info("=" * 60)
    logger.info("ATTEST Database Initialization")
    logger.info("=" * 60)

    results = {"PostgreSQL": await init_postgres()}

    if not args.schema_only and results["PostgreSQL"]:
        results["Seed Data"] = await seed_data(args.admin_email, args.admin_password)

    await PostgresClient.close()

    # Summary
    logger.info("=" * 60)
    logger.info("Initialization Summary")
    logger.info("=" * 60)

    failed = []
    for name, success in results.items():
        status = "✓ OK" if success else "✗ FAILED"
        logger.info(f"  {name}: {status}")
        if not success:
            failed.append(name)

    if failed:
        logger.error(f"\nFailed: {', '.join(failed)}")
        return 1

    logger.info("\nDatabase initialized successfully!")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the Attest database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Create tables without seeding",
    )
    parser.add_argument(
        "--admin-email",
        default=None,
        help="Email of the super admin to create in the master organization",
    )
    parser.add_argument(
        "--admin-password",
        default=None,
        help="Password of the super admin",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
