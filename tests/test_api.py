"""
HTTP tests for the v1 API: status codes, error bodies, and headers.
"""

import pytest
from starlette.requests import Request

from checkmate_auth.api.dependencies.database import get_redis
from checkmate_auth.api.dependencies.rate_limit import RateLimitDependency
from checkmate_auth.core.config import settings
from checkmate_auth.core.exceptions import RateLimitError
from checkmate_auth.main import app
from checkmate_auth.schemas.response import ErrorResponse

from conftest import USER_PASSWORD, SoftAuthenticator

API = settings.API_V1_STR


async def login(client, email: str, password: str):
    return await client.post(f"{API}/auth/login", json={"email": email, "password": password})


@pytest.mark.asyncio
@pytest.mark.integration
class TestAuthEndpoints:
    """Test /auth endpoints."""

    async def test_login_success(self, async_client, test_user):
        response = await login(async_client, test_user.u_email, USER_PASSWORD)

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"] and data["refresh_token"]
        assert data["user"]["email"] == test_user.u_email
        assert response.headers["X-Request-ID"]

    async def test_login_wrong_password(self, async_client, test_user):
        response = await login(async_client, test_user.u_email, "WrongPassword1!")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        error = response.json()["error"]
        assert error["kind"] == "InvalidCredentials"
        assert error["details"]["remaining_attempts"] == settings.MAX_LOGIN_ATTEMPTS - 1
        assert error["request_id"] == response.headers["X-Request-ID"]

    async def test_login_lockout(self, async_client, test_user):
        for _ in range(settings.MAX_LOGIN_ATTEMPTS):
            await login(async_client, test_user.u_email, "WrongPassword1!")

        response = await login(async_client, test_user.u_email, USER_PASSWORD)

        assert response.status_code == 423
        error = response.json()["error"]
        assert error["kind"] == "AccountLocked"
        assert int(response.headers["Retry-After"]) == error["details"]["retry_after"]

    async def test_login_validation_error(self, async_client):
        response = await async_client.post(f"{API}/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "ValidationError"
        fields = {e["field"] for e in error["details"]["validation_errors"]}
        assert {"body -> email", "body -> password"} <= fields

    async def test_me(self, async_client, test_user, auth_headers):
        response = await async_client.get(f"{API}/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == test_user.u_email

    async def test_me_without_token(self, async_client):
        response = await async_client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "InvalidToken"

    async def test_me_with_garbage_token(self, async_client):
        response = await async_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "InvalidToken"

    async def test_logout_revokes_token(self, async_client, auth_headers):
        response = await async_client.post(f"{API}/auth/logout", headers=auth_headers)
        assert response.status_code == 200

        response = await async_client.get(f"{API}/auth/me", headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "TokenRevoked"

    async def test_two_factor_login(self, async_client, email_service, test_user, auth_headers):
        response = await async_client.post(f"{API}/2fa/enable", headers=auth_headers)
        assert response.status_code == 200
        assert len(response.json()["backup_codes"]) == settings.BACKUP_CODES_COUNT

        response = await login(async_client, test_user.u_email, USER_PASSWORD)
        assert response.status_code == 200
        assert response.json()["requires_2fa"] is True
        assert "access_token" not in response.json()

        response = await async_client.post(
            f"{API}/auth/login/2fa",
            json={"email": test_user.u_email, "code": email_service.otp_codes[test_user.u_email]}
        )
        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_two_factor_login_needs_one_code(self, async_client, test_user):
        response = await async_client.post(f"{API}/auth/login/2fa", json={"email": test_user.u_email})

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "ValidationError"


@pytest.mark.asyncio
@pytest.mark.integration
class TestSessionEndpoints:
    """Test /sessions endpoints."""

    async def test_list_sessions_marks_current(self, async_client, auth_service, test_user, user_tokens, auth_headers):
        await auth_service.login(test_user.u_email, USER_PASSWORD)

        response = await async_client.get(f"{API}/sessions", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        current = [s for s in data["sessions"] if s["is_current"]]
        assert [s["id"] for s in current] == [str(user_tokens["session_id"])]

    async def test_refresh(self, async_client, user_tokens):
        response = await async_client.post(
            f"{API}/sessions/refresh",
            json={"refresh_token": user_tokens["refresh_token"]}
        )

        assert response.status_code == 200
        new_token = response.json()["access_token"]

        response = await async_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert response.status_code == 200

    async def test_refresh_with_access_token(self, async_client, user_tokens):
        response = await async_client.post(
            f"{API}/sessions/refresh",
            json={"refresh_token": user_tokens["access_token"]}
        )

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "InvalidRefreshToken"

    async def test_terminate_unknown_session(self, async_client, auth_headers):
        response = await async_client.delete(
            f"{API}/sessions/00000000-0000-0000-0000-000000000000",
            headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "SessionNotFound"

    async def test_admin_routes_forbidden_for_intern(self, async_client, auth_headers):
        response = await async_client.get(f"{API}/sessions/all", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "Unauthorized"

    async def test_admin_force_logout(self, async_client, test_user, auth_headers, admin_auth_headers):
        response = await async_client.post(
            f"{API}/sessions/force-logout/{test_user.u_id}",
            headers=admin_auth_headers
        )

        assert response.status_code == 200
        assert response.json()["details"]["terminated"] == 1

        response = await async_client.get(f"{API}/auth/me", headers=auth_headers)
        assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
class TestUserEndpoints:
    """Test /users endpoints."""

    async def test_intern_cannot_create_user(self, async_client, auth_headers):
        response = await async_client.post(
            f"{API}/users",
            json={"email": "new@example.com", "name": "New", "password": "StrongPassword123!"},
            headers=auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "Unauthorized"

    async def test_admin_creates_user(self, async_client, admin_auth_headers):
        response = await async_client.post(
            f"{API}/users",
            json={"email": "new@example.com", "name": "New Intern", "password": "StrongPassword123!"},
            headers=admin_auth_headers
        )

        assert response.status_code == 201
        assert response.json()["u_email"] == "new@example.com"

        response = await login(async_client, "new@example.com", "StrongPassword123!")
        assert response.status_code == 200

    async def test_duplicate_email(self, async_client, test_user, admin_auth_headers):
        response = await async_client.post(
            f"{API}/users",
            json={"email": test_user.u_email, "name": "Again", "password": "StrongPassword123!"},
            headers=admin_auth_headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "Conflict"


@pytest.mark.asyncio
@pytest.mark.integration
class TestTwoFactorEndpoints:
    """Test /2fa endpoints."""

    async def test_status_and_regenerate(self, async_client, auth_headers):
        response = await async_client.get(f"{API}/2fa/status", headers=auth_headers)
        assert response.json()["enabled"] is False

        await async_client.post(f"{API}/2fa/enable", headers=auth_headers)
        response = await async_client.post(f"{API}/2fa/backup-codes", headers=auth_headers)
        assert response.status_code == 200

        response = await async_client.get(f"{API}/2fa/status", headers=auth_headers)
        data = response.json()
        assert data["enabled"] is True
        assert data["remaining_backup_codes"] == settings.BACKUP_CODES_COUNT

    async def test_disable_with_wrong_password(self, async_client, auth_headers):
        await async_client.post(f"{API}/2fa/enable", headers=auth_headers)

        response = await async_client.post(
            f"{API}/2fa/disable",
            json={"password": "WrongPassword1!"},
            headers=auth_headers
        )

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "InvalidCredentials"


@pytest.mark.asyncio
@pytest.mark.integration
class TestWebAuthnEndpoints:
    """Test the WebAuthn ceremonies over HTTP."""

    async def test_register_and_login(self, async_client, test_user, auth_headers):
        authenticator = SoftAuthenticator(sign_count=1)

        options = (await async_client.post(f"{API}/webauthn/register/options", headers=auth_headers)).json()
        response = await async_client.post(
            f"{API}/webauthn/register/verify",
            json={"response": authenticator.register(options), "label": "Laptop"},
            headers=auth_headers
        )
        assert response.status_code == 201
        assert response.json()["credential_id"] == authenticator.credential_id_b64

        options = (await async_client.post(
            f"{API}/webauthn/auth/options",
            json={"email": test_user.u_email}
        )).json()
        assertion = authenticator.assert_(options)
        response = await async_client.post(
            f"{API}/webauthn/auth/verify",
            json={"email": test_user.u_email, "response": assertion}
        )
        assert response.status_code == 200
        assert response.json()["access_token"]

        credentials = (await async_client.get(f"{API}/webauthn/credentials", headers=auth_headers)).json()
        assert credentials[0]["usage_count"] == 1

    async def test_replayed_assertion(self, async_client, test_user, auth_headers):
        authenticator = SoftAuthenticator(sign_count=1)
        options = (await async_client.post(f"{API}/webauthn/register/options", headers=auth_headers)).json()
        await async_client.post(
            f"{API}/webauthn/register/verify",
            json={"response": authenticator.register(options)},
            headers=auth_headers
        )

        options = (await async_client.post(
            f"{API}/webauthn/auth/options",
            json={"email": test_user.u_email}
        )).json()
        response = await async_client.post(
            f"{API}/webauthn/auth/verify",
            json={"email": test_user.u_email, "response": authenticator.assert_(options, sign_count=1)}
        )

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["kind"] == "ReplayDetected"
        assert error["details"] == {"stored_counter": 1, "presented_counter": 1}

    async def test_options_without_credentials(self, async_client, test_user):
        response = await async_client.post(f"{API}/webauthn/auth/options", json={"email": test_user.u_email})

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "CredentialNotFound"

    async def test_registration_requires_auth(self, async_client):
        response = await async_client.post(f"{API}/webauthn/register/options")

        assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
class TestHealthEndpoints:
    """Test health and fallback handlers."""

    async def test_health(self, async_client):
        response = await async_client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_readiness(self, async_client):
        response = await async_client.get(f"{API}/health/ready")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert checks["database"]["connected"] is True
        assert checks["redis"]["connected"] is True

    async def test_unknown_route(self, async_client):
        response = await async_client.get(f"{API}/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "HTTPError"

    async def test_request_id_is_echoed(self, async_client):
        response = await async_client.get(f"{API}/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


def make_request(client_ip: str = "10.0.0.1") -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [],
        "query_string": b"",
        "client": (client_ip, 5000)
    })


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.security
class TestRateLimitDependency:
    """Test the Redis sliding-window limiter."""

    async def test_limit_exceeded(self, redis_client):
        limiter = RateLimitDependency(max_requests=2, window_seconds=60, namespace="test")

        await limiter(make_request(), redis_client)
        request = make_request()
        await limiter(request, redis_client)
        assert request.state.rate_limit_headers["X-RateLimit-Remaining"] == "0"

        with pytest.raises(RateLimitError) as exc_info:
            await limiter(make_request(), redis_client)

        assert 1 <= exc_info.value.details["retry_after"] <= 60

    async def test_limit_is_per_client(self, redis_client):
        limiter = RateLimitDependency(max_requests=1, window_seconds=60, namespace="test")

        await limiter(make_request("10.0.0.1"), redis_client)
        await limiter(make_request("10.0.0.2"), redis_client)

        with pytest.raises(RateLimitError):
            await limiter(make_request("10.0.0.1"), redis_client)


@pytest.mark.asyncio
@pytest.mark.integration
class TestApplicationWiring:
    """Test the documented error schema and app-level clients."""

    async def test_error_responses_documented(self):
        operation = app.openapi()["paths"][f"{API}/auth/login"]["post"]

        for code in ("401", "423", "429"):
            schema = operation["responses"][code]["content"]["application/json"]["schema"]
            assert schema["$ref"].endswith("/ErrorResponse")

    async def test_error_body_matches_schema(self, async_client, test_user):
        response = await login(async_client, test_user.u_email, "WrongPassword1!")

        body = ErrorResponse.model_validate(response.json())
        assert body.error.kind == "InvalidCredentials"
        assert body.error.request_id == response.headers["X-Request-ID"]

    async def test_redis_dependency_uses_app_client(self):
        request = Request({"type": "http", "app": app, "headers": [], "query_string": b""})

        dependency = get_redis(request)
        assert await dependency.__anext__() is app.state.redis
        await dependency.aclose()
