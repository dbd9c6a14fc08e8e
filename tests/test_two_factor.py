"""
Tests for email OTP and backup codes.
"""

import asyncio
from datetime import timedelta

import pytest

from checkmate_auth.core.config import settings
from checkmate_auth.core.exceptions import (
    ChallengeExpired,
    ConflictError,
    InvalidCode,
    InvalidCredentials,
    TooManyAttempts,
    ValidationError
)
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.user import User
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.session import SessionService
from checkmate_auth.services.two_factor import TwoFactorService
from checkmate_auth.services.user import UserService

from conftest import USER_PASSWORD


def wrong_code(code: str) -> str:
    return str((int(code) + 1) % 10 ** len(code)).zfill(len(code))


@pytest.mark.asyncio
@pytest.mark.unit
class TestTwoFactorService:
    """Test TwoFactorService directly."""

    async def test_status_without_setting(self, db_session, test_user):
        status = await TwoFactorService(db_session).status(test_user)

        assert status["enabled"] is False
        assert status["remaining_backup_codes"] == 0

    async def test_enable(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        codes = await two_factor.enable(test_user)

        assert len(codes) == settings.BACKUP_CODES_COUNT
        assert await two_factor.is_enabled(test_user) is True

        status = await two_factor.status(test_user)
        assert status["enabled"] is True
        assert status["remaining_backup_codes"] == settings.BACKUP_CODES_COUNT

    async def test_enable_twice(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)

        with pytest.raises(ConflictError):
            await two_factor.enable(test_user)

    async def test_otp_single_use(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)
        code = await two_factor.issue_otp(test_user)

        assert len(code) == settings.OTP_LENGTH
        assert await two_factor.verify_otp(test_user, code) is True

        with pytest.raises(ChallengeExpired):
            await two_factor.verify_otp(test_user, code)

    async def test_new_otp_replaces_old(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)
        first = await two_factor.issue_otp(test_user)
        second = await two_factor.issue_otp(test_user)

        if first != second:
            assert await two_factor.verify_otp(test_user, first) is False
        assert await two_factor.verify_otp(test_user, second) is True

    async def test_otp_expired(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)
        code = await two_factor.issue_otp(test_user)

        setting = await two_factor.get_setting(test_user)
        setting.tfa_otp_expires_at = utcnow() - timedelta(seconds=1)
        await db_session.commit()

        with pytest.raises(ChallengeExpired):
            await two_factor.verify_otp(test_user, code)

    async def test_otp_attempt_cap(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)
        code = await two_factor.issue_otp(test_user)

        for _ in range(settings.OTP_MAX_ATTEMPTS):
            assert await two_factor.verify_otp(test_user, wrong_code(code)) is False
        assert await two_factor.remaining_otp_attempts(test_user) == 0

        # Kode yang benar pun ditolak setelah batas tercapai
        with pytest.raises(TooManyAttempts):
            await two_factor.verify_otp(test_user, code)

    async def test_backup_code_single_use(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        codes = await two_factor.enable(test_user)

        assert await two_factor.verify_backup_code(test_user, codes[0]) is True
        assert await two_factor.verify_backup_code(test_user, codes[0]) is False
        assert await two_factor.remaining_backup_codes(test_user) == settings.BACKUP_CODES_COUNT - 1

    async def test_backup_code_normalized(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        codes = await two_factor.enable(test_user)

        assert await two_factor.verify_backup_code(test_user, codes[1].replace("-", "").lower()) is True

    async def test_regenerate_invalidates_old_codes(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        old_codes = await two_factor.enable(test_user)
        new_codes = await two_factor.regenerate_backup_codes(test_user)

        assert set(old_codes).isdisjoint(new_codes)
        assert await two_factor.verify_backup_code(test_user, old_codes[0]) is False
        assert await two_factor.verify_backup_code(test_user, new_codes[0]) is True

    async def test_disable_requires_password(self, db_session, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)

        with pytest.raises(InvalidCredentials):
            await two_factor.disable(test_user, "WrongPassword1!")

        await two_factor.disable(test_user, USER_PASSWORD)

        assert await two_factor.is_enabled(test_user) is False
        assert await two_factor.remaining_backup_codes(test_user) == 0
        with pytest.raises(ValidationError):
            await two_factor.disable(test_user, USER_PASSWORD)


@pytest.mark.asyncio
@pytest.mark.integration
class TestTwoFactorLogin:
    """Test the password + 2FA login flow through AuthService."""

    async def _start_login(self, auth_service, email_service, user):
        result = await auth_service.login(user.u_email, USER_PASSWORD)
        assert result["requires_2fa"] is True
        assert result["otp_delivered"] is True
        return email_service.otp_codes[user.u_email]

    async def test_login_requires_2fa_without_session(self, db_session, auth_service, email_service, test_user):
        await TwoFactorService(db_session).enable(test_user)
        result = await auth_service.login(test_user.u_email, USER_PASSWORD)

        assert "access_token" not in result
        assert await SessionService(db_session).list_active(test_user.u_id) == []

        sent = email_service.sent[-1]
        assert sent["to"] == test_user.u_email
        assert email_service.otp_codes[test_user.u_email] in sent["text"]

    async def test_otp_login_creates_exactly_one_session(self, db_session, auth_service, email_service, test_user):
        await TwoFactorService(db_session).enable(test_user)
        code = await self._start_login(auth_service, email_service, test_user)

        tokens = await auth_service.complete_two_factor_login(test_user.u_email, code=code)

        assert tokens["access_token"] and tokens["refresh_token"]
        assert "remaining_backup_codes" not in tokens
        sessions = await SessionService(db_session).list_active(test_user.u_id)
        assert [s.us_id for s in sessions] == [tokens["session_id"]]

    async def test_wrong_otp_reports_remaining_attempts(self, db_session, auth_service, email_service, test_user):
        await TwoFactorService(db_session).enable(test_user)
        code = await self._start_login(auth_service, email_service, test_user)

        with pytest.raises(InvalidCode) as exc_info:
            await auth_service.complete_two_factor_login(test_user.u_email, code=wrong_code(code))

        assert exc_info.value.details["remaining_attempts"] == settings.OTP_MAX_ATTEMPTS - 1

    async def test_otp_past_expiry_rejected(self, db_session, auth_service, email_service, test_user):
        two_factor = TwoFactorService(db_session)
        await two_factor.enable(test_user)
        code = await self._start_login(auth_service, email_service, test_user)

        setting = await two_factor.get_setting(test_user)
        setting.tfa_otp_expires_at = utcnow() - timedelta(seconds=1)
        await db_session.commit()

        with pytest.raises(ChallengeExpired):
            await auth_service.complete_two_factor_login(test_user.u_email, code=code)

    async def test_backup_code_login(self, db_session, auth_service, email_service, test_user):
        codes = await TwoFactorService(db_session).enable(test_user)
        await self._start_login(auth_service, email_service, test_user)

        tokens = await auth_service.complete_two_factor_login(test_user.u_email, backup_code=codes[0])

        assert tokens["remaining_backup_codes"] == settings.BACKUP_CODES_COUNT - 1

    async def test_backup_code_reuse_rejected(self, db_session, auth_service, email_service, test_user):
        codes = await TwoFactorService(db_session).enable(test_user)

        await self._start_login(auth_service, email_service, test_user)
        await auth_service.complete_two_factor_login(test_user.u_email, backup_code=codes[0])

        await self._start_login(auth_service, email_service, test_user)
        with pytest.raises(InvalidCode) as exc_info:
            await auth_service.complete_two_factor_login(test_user.u_email, backup_code=codes[0])

        assert exc_info.value.details["remaining_backup_codes"] == settings.BACKUP_CODES_COUNT - 1

    async def test_backup_code_requires_password_step(self, db_session, auth_service, test_user):
        codes = await TwoFactorService(db_session).enable(test_user)

        with pytest.raises(ChallengeExpired):
            await auth_service.complete_two_factor_login(test_user.u_email, backup_code=codes[0])

        # Code tidak ikut terpakai
        assert await TwoFactorService(db_session).remaining_backup_codes(test_user) == settings.BACKUP_CODES_COUNT

    async def test_2fa_not_enabled(self, auth_service, test_user):
        with pytest.raises(ChallengeExpired):
            await auth_service.complete_two_factor_login(test_user.u_email, code="123456")

    async def test_code_or_backup_code_required(self, auth_service, test_user):
        with pytest.raises(ValidationError):
            await auth_service.complete_two_factor_login(test_user.u_email)


@pytest.mark.asyncio
@pytest.mark.security
class TestConcurrentRedemption:
    """Satu OTP yang dikirim dua kali bersamaan hanya bisa ditukar sekali."""

    async def _prepare(self, file_session_factory, auth_service_for) -> tuple:
        async with file_session_factory() as session:
            user = await UserService(session).create_user(
                email="race@example.com",
                name="Race",
                password=USER_PASSWORD
            )
            await TwoFactorService(session).enable(user)
            result = await auth_service_for(session).login(user.u_email, USER_PASSWORD)
            assert result["requires_2fa"] is True
            return user.u_id

    async def test_verify_otp_single_winner(self, file_session_factory, email_service, audit_service):
        def auth_service_for(session):
            return AuthService(session, audit_service=audit_service, email_service=email_service)

        user_id = await self._prepare(file_session_factory, auth_service_for)
        code = email_service.otp_codes["race@example.com"]

        async def redeem():
            async with file_session_factory() as session:
                owner = await session.get(User, user_id)
                try:
                    return await TwoFactorService(session).verify_otp(owner, code)
                except ChallengeExpired:
                    return False

        results = await asyncio.gather(redeem(), redeem())

        assert sorted(results) == [False, True]

    async def test_parallel_two_factor_logins_open_one_session(
        self, file_session_factory, email_service, audit_service
    ):
        def auth_service_for(session):
            return AuthService(session, audit_service=audit_service, email_service=email_service)

        user_id = await self._prepare(file_session_factory, auth_service_for)
        code = email_service.otp_codes["race@example.com"]

        async def complete():
            async with file_session_factory() as session:
                try:
                    return await auth_service_for(session).complete_two_factor_login("race@example.com", code=code)
                except ChallengeExpired:
                    return None

        results = await asyncio.gather(complete(), complete(), complete())

        assert len([r for r in results if r is not None]) == 1
        async with file_session_factory() as session:
            assert len(await SessionService(session).list_active(user_id)) == 1
