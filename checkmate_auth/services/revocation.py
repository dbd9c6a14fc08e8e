"""
Revocation service untuk CheckMate Auth.
Denylist token yang dicek sebelum pemeriksaan lain pada setiap request terautentikasi.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite

from checkmate_auth.core.security import security
from checkmate_auth.core.constants import RevocationReason
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.token import RevokedToken
from checkmate_auth.services.token import TokenService

logger = logging.getLogger(__name__)


class RevocationService:
    """
    Service class untuk token revocation list.
    Entry disimpan sebagai digest dan kedaluwarsa bersama token aslinya.
    """

    def __init__(self, db: AsyncSession, token_service: Optional[TokenService] = None):
        """
        Initialize revocation service.

        Args:
            db: Database session
            token_service: Dipakai untuk membaca expiry token
        """
        self.db = db
        self.token_service = token_service or TokenService()

    def _insert(self):
        if self.db.bind.dialect.name == "postgresql":
            return postgresql.insert(RevokedToken)
        return sqlite.insert(RevokedToken)

    async def revoke(
        self,
        token: str,
        user_id: UUID,
        reason: RevocationReason,
        expiry: Optional[datetime] = None
    ) -> None:
        """
        Masukkan token ke revocation list. Insert duplikat diabaikan.

        Args:
            token: Token plaintext
            user_id: Pemilik token
            reason: Alasan revocation
            expiry: Expiry entry (default: expiry token itu sendiri)
        """
        if expiry is None:
            expiry = self.token_service.expiry_of(token)
        await self.revoke_digest(security.hash_token(token), user_id, reason, expiry)

    async def revoke_digest(
        self,
        token_hash: str,
        user_id: UUID,
        reason: RevocationReason,
        expiry: datetime
    ) -> None:
        """
        Revoke token yang hanya diketahui digest-nya (misalnya token session lain).

        Args:
            token_hash: SHA-256 digest token
            user_id: Pemilik token
            reason: Alasan revocation
            expiry: Kapan entry boleh di-purge
        """
        stmt = self._insert().values(
            rt_token_hash=token_hash,
            rt_user_id=user_id,
            rt_reason=RevocationReason(reason).value,
            rt_expires_at=expiry,
            created_at=utcnow()
        ).on_conflict_do_nothing(index_elements=["rt_token_hash"])

        await self.db.execute(stmt)
        await self.db.commit()

    async def is_revoked(self, token: str) -> bool:
        """
        Membership test pada revocation list.

        Args:
            token: Token plaintext

        Returns:
            True jika token sudah di-revoke
        """
        result = await self.db.execute(
            select(RevokedToken.rt_id).where(
                RevokedToken.rt_token_hash == security.hash_token(token)
            )
        )
        return result.first() is not None

    async def purge_expired(self) -> int:
        """
        Hapus entry yang expiry-nya sudah lewat.

        Returns:
            Jumlah entry yang dihapus
        """
        result = await self.db.execute(
            delete(RevokedToken)
            .where(RevokedToken.rt_expires_at <= utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount:
            logger.info(f"Purged {result.rowcount} expired revocation entries")
        return result.rowcount
