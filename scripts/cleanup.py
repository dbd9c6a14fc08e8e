#!/usr/bin/env python
"""
Maintenance job: bersihkan data auth yang sudah tidak berguna.

- Revoked tokens yang sudah lewat expiry
- Session idle ditandai inactive, session expired dihapus
- WebAuthn challenges yang sudah kedaluwarsa

Usage: python scripts/cleanup.py  (cocok dijalankan via cron)
"""

import asyncio
import sys
import logging

from checkmate_auth.db.session import get_db_context, close_db
from checkmate_auth.services.revocation import RevocationService
from checkmate_auth.services.session import SessionService
from checkmate_auth.services.webauthn import WebAuthnService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run_cleanup() -> dict:
    """Jalankan semua purge dalam satu transaksi."""
    async with get_db_context() as db:
        sessions = SessionService(db)
        return {
            "revoked_tokens_purged": await RevocationService(db).purge_expired(),
            "sessions_deactivated": await sessions.cleanup_inactive(),
            "sessions_purged": await sessions.purge_expired(),
            "challenges_purged": await WebAuthnService(db).purge_expired_challenges(),
        }


async def main() -> None:
    try:
        stats = await run_cleanup()
        for key, value in stats.items():
            logger.info(f"{key}: {value}")
    finally:
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        logger.error(f"Cleanup failed: {e}")
        sys.exit(1)
