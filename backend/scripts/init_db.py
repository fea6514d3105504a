#!/usr/bin/env python3
"""
Automatic database initialization script.
Runs migrations and optionally imports the rent data on first startup.
"""

import os
import sys
import time
import logging
import subprocess
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text, inspect
from sqlalchemy.exc import OperationalError
from rent_insights.core.database import engine, SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).parent.parent
REQUIRED_TABLES = ['districts', 'units', 'import_runs']


def wait_for_db(max_retries=30):
    """Wait for database to be ready."""
    logger.info("Waiting for database to be ready...")

    for i in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("✓ Database is ready")
            return True
        except OperationalError as e:
            if i < max_retries - 1:
                logger.info(f"Database not ready yet, waiting... ({i+1}/{max_retries})")
                time.sleep(2)
            else:
                logger.error(f"Database not ready after {max_retries} attempts: {e}")
                return False

    return False


def check_tables_exist():
    """Check if database tables exist."""
    tables = inspect(engine).get_table_names()
    missing_tables = [t for t in REQUIRED_TABLES if t not in tables]

    if missing_tables:
        logger.info(f"Missing tables: {missing_tables}")
        return False

    logger.info(f"✓ All required tables exist ({len(tables)} total)")
    return True


def run_migrations():
    """Run Alembic migrations."""
    logger.info("Running database migrations...")

    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=BACKEND_DIR,
        capture_output=True,
        text=True,
        timeout=60
    )

    if result.returncode == 0:
        logger.info("✓ Migrations completed successfully")
        logger.debug(result.stdout)
        return True

    logger.error(f"Migration failed: {result.stderr}")
    return False


def has_rent_data():
    """Check if rent data exists."""
    from rent_insights.models import Unit

    db = SessionLocal()
    try:
        count = db.query(Unit).count()
        if count > 0:
            logger.info(f"✓ Rent data exists ({count:,} records)")
            return True
        logger.info("⚠ No rent data found")
        return False
    finally:
        db.close()


def import_rent_data():
    """Import districts and rent data if the database is empty."""
    if has_rent_data():
        logger.info("Rent data already loaded, skipping import")
        return True

    logger.info("Starting rent data import...")
    result = subprocess.run(
        [sys.executable, "scripts/import_data.py"],
        cwd=BACKEND_DIR,
        timeout=1800,
    )

    if result.returncode == 0:
        logger.info("✓ Rent data import completed")
        return True

    logger.error("Rent data import failed")
    return False


def main():
    """Main initialization function."""
    logger.info("=" * 60)
    logger.info("DATABASE INITIALIZATION")
    logger.info("=" * 60)

    # Step 1: Wait for database
    if not wait_for_db():
        logger.error("Failed to connect to database")
        sys.exit(1)

    # Step 2: Run migrations (idempotent)
    if not check_tables_exist():
        logger.info("Tables missing, running migrations...")
    if not run_migrations():
        logger.error("Migration failed")
        sys.exit(1)

    # Step 3: Import data (only if AUTO_IMPORT_DATA is set)
    if os.getenv("AUTO_IMPORT_DATA", "false").lower() == "true":
        logger.info("AUTO_IMPORT_DATA is enabled, checking rent data...")
        if not import_rent_data():
            sys.exit(1)
    else:
        logger.info("AUTO_IMPORT_DATA is disabled, skipping import")
        logger.info("To import data manually, run:")
        logger.info("  python scripts/import_data.py")

    logger.info("=" * 60)
    logger.info("DATABASE INITIALIZATION COMPLETE")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
