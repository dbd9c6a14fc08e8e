"""
WebAuthn service untuk CheckMate Auth.
Ceremony registrasi dan autentikasi biometrik (FIDO2) dengan challenge
sekali pakai dan pengecekan signature counter.

Credential id selalu bytes di dalam service; base64url hanya dipakai
di boundary wire (response dari browser dan options yang dikirim balik).
"""

from typing import Optional, List, Dict, Any, Tuple
from uuid import UUID
import binascii
import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from webauthn import (
    generate_registration_options,
    verify_registration_response,
    generate_authentication_options,
    verify_authentication_response,
    options_to_json
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import WebAuthnException
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorAttachment,
    AuthenticatorSelectionCriteria,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement
)

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import AuditAction, ChallengePurpose, EntityType
from checkmate_auth.core.exceptions import (
    ChallengeExpiredOrInvalid,
    ConflictError,
    CredentialNotFound,
    ReplayDetected,
    VerificationFailed
)
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.user import User
from checkmate_auth.models.webauthn import WebAuthnCredential, WebAuthnChallenge
from checkmate_auth.services.audit import AuditService
from checkmate_auth.utils.validators import normalize_email

logger = logging.getLogger(__name__)

KNOWN_TRANSPORTS = {t.value for t in AuthenticatorTransport}


def _transports(values: Optional[List[str]]) -> List[AuthenticatorTransport]:
    return [AuthenticatorTransport(v) for v in (values or []) if v in KNOWN_TRANSPORTS]


def _presented_challenge(response: Dict[str, Any]) -> Optional[str]:
    """Ambil nilai challenge dari clientDataJSON tanpa verifikasi."""
    try:
        client_data = json.loads(base64url_to_bytes(response["response"]["clientDataJSON"]))
        return client_data["challenge"]
    except (KeyError, TypeError, ValueError, binascii.Error):
        return None


class WebAuthnService:
    """
    Service class untuk WebAuthn ceremonies.

    Challenge dihapus tepat satu kali saat verifikasi, sebelum response
    diverifikasi, sehingga challenge tidak bisa dicoba ulang baik
    ceremony berhasil maupun gagal.
    """

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        audit_service: Optional[AuditService] = None
    ):
        """
        Initialize WebAuthn service.

        Args:
            db: Database session
            config: Settings override (RP id, origin, TTL)
            audit_service: Audit logger
        """
        self.db = db
        self.config = config or default_settings
        self.audit_service = audit_service or AuditService()

    # Challenges

    async def _store_challenge(self, user: User, challenge: bytes, purpose: ChallengePurpose) -> None:
        self.db.add(WebAuthnChallenge(
            wch_user_id=user.u_id,
            wch_challenge=bytes_to_base64url(challenge),
            wch_purpose=purpose.value,
            wch_expires_at=utcnow() + self.config.webauthn_challenge_timedelta
        ))
        await self.db.commit()

    async def _consume_challenge(
        self,
        user: User,
        response: Dict[str, Any],
        purpose: ChallengePurpose
    ) -> bytes:
        """
        Hapus challenge yang dirujuk response dan kembalikan bytes-nya.

        Raises:
            ChallengeExpiredOrInvalid: Challenge tidak ada, sudah dipakai, atau kedaluwarsa
        """
        value = _presented_challenge(response)
        if value is None:
            raise ChallengeExpiredOrInvalid()

        result = await self.db.execute(
            select(WebAuthnChallenge).where(
                WebAuthnChallenge.wch_user_id == user.u_id,
                WebAuthnChallenge.wch_challenge == value,
                WebAuthnChallenge.wch_purpose == purpose.value
            )
        )
        challenge = result.scalar_one_or_none()
        if challenge is None:
            raise ChallengeExpiredOrInvalid()

        deleted = await self.db.execute(
            delete(WebAuthnChallenge)
            .where(WebAuthnChallenge.wch_id == challenge.wch_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        # rowcount 0 berarti request lain sudah mengkonsumsi challenge ini
        if deleted.rowcount != 1 or challenge.is_expired():
            raise ChallengeExpiredOrInvalid()
        return base64url_to_bytes(challenge.wch_challenge)

    async def purge_expired_challenges(self) -> int:
        result = await self.db.execute(
            delete(WebAuthnChallenge)
            .where(WebAuthnChallenge.wch_expires_at <= utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    # Credentials

    async def list_credentials(self, user: User) -> List[WebAuthnCredential]:
        result = await self.db.execute(
            select(WebAuthnCredential)
            .where(
                WebAuthnCredential.wc_user_id == user.u_id,
                WebAuthnCredential.wc_is_active.is_(True)
            )
            .order_by(WebAuthnCredential.created_at)
        )
        return list(result.scalars().all())

    async def _get_owned(self, user: User, credential_row_id: UUID) -> WebAuthnCredential:
        result = await self.db.execute(
            select(WebAuthnCredential).where(
                WebAuthnCredential.wc_id == credential_row_id,
                WebAuthnCredential.wc_user_id == user.u_id,
                WebAuthnCredential.wc_is_active.is_(True)
            )
        )
        credential = result.scalar_one_or_none()
        if credential is None:
            raise CredentialNotFound("Credential not found")
        return credential

    async def rename_credential(self, user: User, credential_row_id: UUID, name: str) -> WebAuthnCredential:
        credential = await self._get_owned(user, credential_row_id)
        credential.wc_name = name.strip()
        await self.db.commit()
        return credential

    async def delete_credential(self, user: User, credential_row_id: UUID) -> None:
        credential = await self._get_owned(user, credential_row_id)
        await self.db.delete(credential)
        await self.db.commit()

        self.audit_service.log(
            AuditAction.WEBAUTHN_REMOVED,
            user_id=user.u_id,
            entity_type=EntityType.CREDENTIAL,
            entity_id=credential_row_id
        )

    # Registration

    async def begin_registration(self, user: User) -> Dict[str, Any]:
        """
        Buat registration options dan simpan challenge baru.

        Args:
            user: User yang mendaftarkan credential

        Returns:
            Options dalam bentuk JSON-ready dict untuk `navigator.credentials.create()`
        """
        existing = await self.list_credentials(user)

        options = generate_registration_options(
            rp_id=self.config.WEBAUTHN_RP_ID,
            rp_name=self.config.WEBAUTHN_RP_NAME,
            user_id=user.u_id.bytes,
            user_name=user.u_email,
            user_display_name=user.u_name,
            timeout=self.config.WEBAUTHN_TIMEOUT_MS,
            attestation=AttestationConveyancePreference.NONE,
            authenticator_selection=AuthenticatorSelectionCriteria(
                authenticator_attachment=AuthenticatorAttachment.PLATFORM,
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED
            ),
            exclude_credentials=[
                PublicKeyCredentialDescriptor(
                    id=credential.wc_credential_id,
                    transports=_transports(credential.wc_transports)
                )
                for credential in existing
            ]
        )

        await self.db.execute(
            delete(WebAuthnChallenge)
            .where(
                WebAuthnChallenge.wch_user_id == user.u_id,
                WebAuthnChallenge.wch_purpose == ChallengePurpose.REGISTRATION.value
            )
            .execution_options(synchronize_session=False)
        )
        await self._store_challenge(user, options.challenge, ChallengePurpose.REGISTRATION)

        return json.loads(options_to_json(options))

    async def finish_registration(
        self,
        user: User,
        response: Dict[str, Any],
        label: Optional[str] = None
    ) -> WebAuthnCredential:
        """
        Verifikasi attestation dan simpan credential baru.

        Args:
            user: User yang mendaftarkan credential
            response: PublicKeyCredential dari browser (JSON)
            label: Nama credential

        Returns:
            Credential yang tersimpan

        Raises:
            ChallengeExpiredOrInvalid: Challenge tidak valid
            VerificationFailed: Attestation tidak lolos verifikasi
            ConflictError: Credential sudah terdaftar
        """
        expected_challenge = await self._consume_challenge(user, response, ChallengePurpose.REGISTRATION)

        try:
            verification = verify_registration_response(
                credential=response,
                expected_challenge=expected_challenge,
                expected_rp_id=self.config.WEBAUTHN_RP_ID,
                expected_origin=self.config.WEBAUTHN_ORIGIN,
                require_user_verification=False
            )
        except WebAuthnException as e:
            logger.warning(f"WebAuthn registration failed for user {user.u_id}: {e}")
            raise VerificationFailed()

        duplicate = await self.db.execute(
            select(WebAuthnCredential.wc_id).where(
                WebAuthnCredential.wc_credential_id == verification.credential_id
            )
        )
        if duplicate.first() is not None:
            raise ConflictError("Credential is already registered")

        transports = response.get("response", {}).get("transports") or []
        credential = WebAuthnCredential(
            wc_user_id=user.u_id,
            wc_credential_id=verification.credential_id,
            wc_public_key=verification.credential_public_key,
            wc_sign_count=verification.sign_count,
            # Authenticator tanpa counter selalu melaporkan 0
            wc_counter_exempt=verification.sign_count == 0,
            wc_transports=[t for t in transports if t in KNOWN_TRANSPORTS],
            wc_name=(label or "").strip() or "Biometric Device",
            wc_aaguid=str(verification.aaguid) if verification.aaguid else None
        )
        self.db.add(credential)
        await self.db.commit()

        self.audit_service.log(
            AuditAction.WEBAUTHN_REGISTERED,
            user_id=user.u_id,
            entity_type=EntityType.CREDENTIAL,
            entity_id=credential.wc_id,
            metadata={"name": credential.wc_name}
        )
        return credential

    # Authentication

    async def _active_user(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.u_email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        if user is None or not user.u_is_active:
            return None
        return user

    async def begin_authentication(self, email: str) -> Dict[str, Any]:
        """
        Buat authentication options untuk user.

        Email yang tidak terdaftar dan user tanpa credential menghasilkan
        error yang sama.

        Args:
            email: Email user

        Returns:
            Options dalam bentuk JSON-ready dict untuk `navigator.credentials.get()`

        Raises:
            CredentialNotFound: Tidak ada credential untuk email ini
        """
        user = await self._active_user(email)
        credentials = await self.list_credentials(user) if user else []
        if not credentials:
            raise CredentialNotFound()

        options = generate_authentication_options(
            rp_id=self.config.WEBAUTHN_RP_ID,
            timeout=self.config.WEBAUTHN_TIMEOUT_MS,
            allow_credentials=[
                PublicKeyCredentialDescriptor(
                    id=credential.wc_credential_id,
                    transports=_transports(credential.wc_transports)
                )
                for credential in credentials
            ],
            user_verification=UserVerificationRequirement.PREFERRED
        )
        await self._store_challenge(user, options.challenge, ChallengePurpose.AUTHENTICATION)

        return json.loads(options_to_json(options))

    async def finish_authentication(
        self,
        email: str,
        response: Dict[str, Any]
    ) -> Tuple[User, WebAuthnCredential]:
        """
        Verifikasi assertion dan cek signature counter.

        Args:
            email: Email user
            response: PublicKeyCredential dari browser (JSON)

        Returns:
            Tuple (user, credential)

        Raises:
            CredentialNotFound: Credential tidak dikenal untuk user ini
            ChallengeExpiredOrInvalid: Challenge tidak valid
            VerificationFailed: Signature tidak valid
            ReplayDetected: Counter tidak naik
        """
        user = await self._active_user(email)
        if user is None:
            raise CredentialNotFound()

        try:
            credential_id = base64url_to_bytes(response.get("rawId") or response["id"])
        except (KeyError, TypeError, ValueError, binascii.Error):
            raise CredentialNotFound()

        result = await self.db.execute(
            select(WebAuthnCredential).where(
                WebAuthnCredential.wc_user_id == user.u_id,
                WebAuthnCredential.wc_credential_id == credential_id,
                WebAuthnCredential.wc_is_active.is_(True)
            )
        )
        credential = result.scalar_one_or_none()
        if credential is None:
            raise CredentialNotFound()

        expected_challenge = await self._consume_challenge(user, response, ChallengePurpose.AUTHENTICATION)

        try:
            # Counter dicek di bawah supaya aturan exempt berlaku seragam
            verification = verify_authentication_response(
                credential=response,
                expected_challenge=expected_challenge,
                expected_rp_id=self.config.WEBAUTHN_RP_ID,
                expected_origin=self.config.WEBAUTHN_ORIGIN,
                credential_public_key=credential.wc_public_key,
                credential_current_sign_count=0,
                require_user_verification=False
            )
        except WebAuthnException as e:
            logger.warning(f"WebAuthn assertion failed for credential {credential.wc_id}: {e}")
            raise VerificationFailed()

        stored = credential.wc_sign_count
        presented = verification.new_sign_count

        if not (credential.wc_counter_exempt and presented == 0):
            if presented <= stored:
                logger.warning(
                    f"Signature counter replay on credential {credential.wc_id}: "
                    f"stored={stored} presented={presented}"
                )
                self.audit_service.log(
                    AuditAction.WEBAUTHN_REPLAY_DETECTED,
                    user_id=user.u_id,
                    entity_type=EntityType.CREDENTIAL,
                    entity_id=credential.wc_id,
                    metadata={"stored_counter": stored, "presented_counter": presented}
                )
                raise ReplayDetected(stored_counter=stored, presented_counter=presented)
            # Authenticator ternyata punya counter; mulai sekarang wajib naik
            credential.wc_counter_exempt = False

        credential.record_use(presented)
        await self.db.commit()

        return user, credential
