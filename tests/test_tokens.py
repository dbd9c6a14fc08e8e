"""
Tests for token issuing and the revocation list.
"""

from datetime import datetime, timedelta, timezone
import uuid

import pytest
from jose import jwt

from checkmate_auth.core.config import settings
from checkmate_auth.core.constants import RevocationReason
from checkmate_auth.core.exceptions import InvalidToken, InvalidRefreshToken, TokenExpired
from checkmate_auth.core.security import security
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.token import RevokedToken
from checkmate_auth.models.user import User
from checkmate_auth.services.revocation import RevocationService
from checkmate_auth.services.token import TokenService


@pytest.fixture
def token_user() -> User:
    return User(u_id=uuid.uuid4(), u_email="intern@example.com", u_name="Intern", u_role="intern")


@pytest.mark.unit
@pytest.mark.security
class TestTokenService:
    """Test JWT issuing and decoding."""

    def test_access_token_claims(self, token_user):
        token_service = TokenService()
        payload = token_service.decode_access_token(token_service.issue_access_token(token_user))

        assert payload["sub"] == str(token_user.u_id)
        assert payload["role"] == "intern"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_refresh_token_claims(self, token_user):
        token_service = TokenService()
        payload = token_service.decode_refresh_token(token_service.issue_refresh_token(token_user))

        assert payload["sub"] == str(token_user.u_id)
        assert payload["type"] == "refresh"
        assert "role" not in payload

    def test_tokens_are_unique(self, token_user):
        token_service = TokenService()

        assert token_service.issue_access_token(token_user) != token_service.issue_access_token(token_user)

    def test_refresh_token_rejected_as_access_token(self, token_user):
        token_service = TokenService()
        refresh_token = token_service.issue_refresh_token(token_user)

        with pytest.raises(InvalidToken):
            token_service.decode_access_token(refresh_token)

    def test_access_token_rejected_as_refresh_token(self, token_user):
        token_service = TokenService()
        access_token = token_service.issue_access_token(token_user)

        with pytest.raises(InvalidRefreshToken):
            token_service.decode_refresh_token(access_token)

    def test_wrong_type_claim_with_right_key(self, token_user):
        # Ditandatangani dengan key access tapi mengaku refresh
        forged = jwt.encode(
            {"sub": str(token_user.u_id), "type": "refresh", "exp": utcnow() + timedelta(minutes=5)},
            settings.JWT_SECRET_KEY,
            algorithm=settings.ALGORITHM
        )

        with pytest.raises(InvalidToken):
            TokenService().decode_access_token(forged)

    def test_expired_access_token(self, token_user):
        expired_config = settings.model_copy(update={"ACCESS_TOKEN_EXPIRE_MINUTES": -1})
        token = TokenService(expired_config).issue_access_token(token_user)

        with pytest.raises(TokenExpired):
            TokenService().decode_access_token(token)

    def test_expired_refresh_token(self, token_user):
        expired_config = settings.model_copy(update={"REFRESH_TOKEN_EXPIRE_DAYS": -1})
        token = TokenService(expired_config).issue_refresh_token(token_user)

        with pytest.raises(InvalidRefreshToken):
            TokenService().decode_refresh_token(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidToken):
            TokenService().decode_access_token("not-a-jwt")
        with pytest.raises(InvalidToken):
            TokenService.expiry_of("not-a-jwt")

    def test_expiry_of(self, token_user):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        token = TokenService().issue_access_token(token_user)
        expiry = TokenService.expiry_of(token)

        assert expiry.tzinfo is not None
        assert expiry >= before + settings.access_token_expire_timedelta


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.security
class TestRevocationService:
    """Test the token revocation list."""

    async def test_revoke_and_check(self, db_session, test_user):
        revocation = RevocationService(db_session)
        token = TokenService().issue_access_token(test_user)

        assert await revocation.is_revoked(token) is False

        await revocation.revoke(token, test_user.u_id, RevocationReason.LOGOUT)

        assert await revocation.is_revoked(token) is True
        assert await revocation.is_revoked(TokenService().issue_access_token(test_user)) is False

    async def test_stores_digest_not_token(self, db_session, test_user):
        token = TokenService().issue_access_token(test_user)
        await RevocationService(db_session).revoke(token, test_user.u_id, RevocationReason.LOGOUT)

        entry = (await db_session.execute(RevokedToken.__table__.select())).one()
        assert entry.rt_token_hash == security.hash_token(token)
        assert entry.rt_expires_at == TokenService.expiry_of(token)

    async def test_duplicate_revoke_is_noop(self, db_session, test_user):
        revocation = RevocationService(db_session)
        token = TokenService().issue_access_token(test_user)

        await revocation.revoke(token, test_user.u_id, RevocationReason.LOGOUT)
        await revocation.revoke(token, test_user.u_id, RevocationReason.ADMIN_ACTION)

        result = await db_session.execute(RevokedToken.__table__.select())
        assert len(result.all()) == 1

    async def test_purge_expired(self, db_session, test_user):
        revocation = RevocationService(db_session)
        live = TokenService().issue_access_token(test_user)

        await revocation.revoke(live, test_user.u_id, RevocationReason.LOGOUT)
        await revocation.revoke_digest(
            security.hash_token("old-token"),
            test_user.u_id,
            RevocationReason.LOGOUT,
            utcnow() - timedelta(minutes=1)
        )

        assert await revocation.purge_expired() == 1
        assert await revocation.is_revoked(live) is True
        assert await revocation.is_revoked("old-token") is False
