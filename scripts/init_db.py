#!/usr/bin/env python
"""
Script untuk inisialisasi database CheckMate Auth.
Membuat semua tabel dari metadata model.
Usage: python scripts/init_db.py
"""

import asyncio
import sys
import logging

from checkmate_auth.core.config import settings
from checkmate_auth.db.session import create_tables, init_db, close_db

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main() -> None:
    """Main function."""
    logger.info(f"Initializing database for {settings.APP_NAME} ({settings.ENVIRONMENT})")
    try:
        await init_db()
        await create_tables()
        logger.info("Database initialization complete")
    finally:
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)
