"""
Audit service untuk CheckMate Auth.
Mencatat event keamanan secara fire-and-forget: kegagalan audit tidak pernah
menggagalkan atau menahan operasi utama.
"""

import asyncio
import logging
from typing import Optional, Dict, Any, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from checkmate_auth.core.constants import AuditAction, EntityType
from checkmate_auth.models.audit import AuditLog

logger = logging.getLogger("checkmate.audit")


class AuditService:
    """
    Service class untuk audit logging.

    Setiap event selalu ditulis ke logger `checkmate.audit`. Jika session
    factory tersedia, event juga ditulis ke tabel `audit_logs` lewat session
    sendiri di background task, terpisah dari transaksi request.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        """
        Initialize audit service.

        Args:
            session_factory: Factory untuk session database audit (optional)
        """
        self.session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    def log(
        self,
        action: AuditAction,
        user_id: Optional[UUID] = None,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Catat audit event tanpa menunggu hasilnya.

        Args:
            action: Action yang dilakukan
            user_id: User terkait
            entity_type: Tipe entity yang terkena
            entity_id: ID entity yang terkena
            ip_address: IP address
            user_agent: User agent
            metadata: Detail tambahan
        """
        action_value = AuditAction(action).value
        logger.info(
            f"{action_value} user={user_id} entity={entity_type.value if entity_type else None}:"
            f"{entity_id} ip={ip_address} metadata={metadata or {}}"
        )

        if self.session_factory is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        entry = AuditLog(
            al_user_id=user_id,
            al_action=action_value,
            al_entity_type=entity_type.value if entity_type else None,
            al_entity_id=str(entity_id) if entity_id is not None else None,
            al_ip_address=ip_address,
            al_user_agent=user_agent,
            al_metadata=metadata or {}
        )
        task = loop.create_task(self._write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: AuditLog) -> None:
        try:
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception as e:
            logger.warning(f"Failed to persist audit event {entry.al_action}: {e}")

    async def drain(self) -> None:
        """Tunggu semua penulisan audit yang masih berjalan (dipakai saat shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
