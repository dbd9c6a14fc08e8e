"""
Pytest configuration and fixtures for CheckMate Auth tests.
"""

import os

# Settings dibaca saat import, jadi environment harus siap lebih dulu
os.environ.setdefault("JWT_SECRET_KEY", "test-access-signing-key-0123456789abcdef")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-signing-key-fedcba9876543210")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000")
os.environ.setdefault("ENVIRONMENT", "test")

import hashlib
import json
import struct
from typing import AsyncGenerator, Dict, Any, Optional

import cbor2
import fakeredis.aioredis
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from webauthn.helpers import bytes_to_base64url

from checkmate_auth.api.dependencies.database import get_db, get_redis
from checkmate_auth.api.dependencies.services import get_audit_service, get_email_service
from checkmate_auth.core.config import settings
from checkmate_auth.core.constants import UserRole
from checkmate_auth.db.session import create_engine, create_session_factory, create_tables
from checkmate_auth.main import app
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.email import EmailService
from checkmate_auth.services.user import UserService


USER_PASSWORD = "InternPassword123!"
ADMIN_PASSWORD = "AdminPassword123!"


class RecordingEmailService(EmailService):
    """EmailService yang merender template tapi tidak menyentuh SMTP."""

    def __init__(self):
        super().__init__()
        self.sent = []
        self.otp_codes: Dict[str, str] = {}

    async def send_email(self, to_email, subject, html_body, text_body=None) -> bool:
        self.sent.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})
        return True

    async def send_otp_email(self, email: str, name: str, code: str) -> bool:
        self.otp_codes[email] = code
        return await super().send_otp_email(email, name, code)


class SoftAuthenticator:
    """
    Authenticator WebAuthn di memori (ES256, attestation "none").

    Menghasilkan response dengan bentuk JSON yang sama seperti
    `navigator.credentials.create()` / `.get()` di browser.
    """

    def __init__(
        self,
        rp_id: str = settings.WEBAUTHN_RP_ID,
        origin: str = settings.WEBAUTHN_ORIGIN,
        sign_count: int = 0,
        counter_step: int = 1
    ):
        self.rp_id = rp_id
        self.origin = origin
        self.sign_count = sign_count
        self.counter_step = counter_step
        self.private_key = ec.generate_private_key(ec.SECP256R1())
        self.credential_id = os.urandom(32)

    @property
    def credential_id_b64(self) -> str:
        return bytes_to_base64url(self.credential_id)

    def _cose_public_key(self) -> bytes:
        numbers = self.private_key.public_key().public_numbers()
        return cbor2.dumps({
            1: 2,    # kty: EC2
            3: -7,   # alg: ES256
            -1: 1,   # crv: P-256
            -2: numbers.x.to_bytes(32, "big"),
            -3: numbers.y.to_bytes(32, "big"),
        })

    def _client_data(self, ceremony: str, challenge: str) -> bytes:
        return json.dumps({
            "type": ceremony,
            "challenge": challenge,
            "origin": self.origin,
            "crossOrigin": False
        }).encode()

    def _rp_id_hash(self) -> bytes:
        return hashlib.sha256(self.rp_id.encode()).digest()

    def register(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Response attestation untuk registration options."""
        client_data = self._client_data("webauthn.create", options["challenge"])
        auth_data = (
            self._rp_id_hash()
            + bytes([0x41])  # UP | AT
            + struct.pack(">I", self.sign_count)
            + bytes(16)  # AAGUID
            + struct.pack(">H", len(self.credential_id))
            + self.credential_id
            + self._cose_public_key()
        )
        attestation_object = cbor2.dumps({"fmt": "none", "attStmt": {}, "authData": auth_data})

        return {
            "id": self.credential_id_b64,
            "rawId": self.credential_id_b64,
            "type": "public-key",
            "response": {
                "clientDataJSON": bytes_to_base64url(client_data),
                "attestationObject": bytes_to_base64url(attestation_object),
                "transports": ["internal"]
            },
            "clientExtensionResults": {}
        }

    def assert_(self, options: Dict[str, Any], sign_count: Optional[int] = None) -> Dict[str, Any]:
        """
        Response assertion untuk authentication options.

        Counter naik sebesar `counter_step` kecuali `sign_count` diberikan.
        """
        if sign_count is None:
            self.sign_count += self.counter_step
            sign_count = self.sign_count

        client_data = self._client_data("webauthn.get", options["challenge"])
        auth_data = self._rp_id_hash() + bytes([0x05]) + struct.pack(">I", sign_count)  # UP | UV
        signature = self.private_key.sign(
            auth_data + hashlib.sha256(client_data).digest(),
            ec.ECDSA(hashes.SHA256())
        )

        return {
            "id": self.credential_id_b64,
            "rawId": self.credential_id_b64,
            "type": "public-key",
            "response": {
                "authenticatorData": bytes_to_base64url(auth_data),
                "clientDataJSON": bytes_to_base64url(client_data),
                "signature": bytes_to_base64url(signature)
            },
            "clientExtensionResults": {}
        }


@pytest_asyncio.fixture
async def engine():
    """Database SQLite in-memory baru untuk setiap test."""
    engine = create_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with create_session_factory(engine)() as session:
        yield session


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """SQLite berbasis file; setiap session memakai koneksi sendiri."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'checkmate.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def file_session_factory(file_engine):
    return create_session_factory(file_engine)


@pytest_asyncio.fixture
async def redis_client():
    """Create a fake Redis client for testing."""
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def audit_service() -> AuditService:
    # Hanya logger; tidak menulis ke database
    return AuditService()


@pytest.fixture
def auth_service(db_session: AsyncSession, audit_service, email_service) -> AuthService:
    return AuthService(db_session, audit_service=audit_service, email_service=email_service)


@pytest.fixture
def override_dependencies(db_session: AsyncSession, redis_client, audit_service, email_service):
    """Override FastAPI dependencies for testing."""
    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_audit_service] = lambda: audit_service
    app.dependency_overrides[get_email_service] = lambda: email_service

    yield

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(override_dependencies) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test intern user."""
    return await UserService(db_session).create_user(
        email="intern@example.com",
        name="Test Intern",
        password=USER_PASSWORD
    )


@pytest_asyncio.fixture
async def test_admin_user(db_session: AsyncSession) -> User:
    """Create a test admin user."""
    return await UserService(db_session).create_user(
        email="admin@example.com",
        name="Test Admin",
        password=ADMIN_PASSWORD,
        role=UserRole.ADMIN
    )


@pytest_asyncio.fixture
async def user_tokens(auth_service: AuthService, test_user: User) -> Dict[str, Any]:
    """Login test user lewat password; mengembalikan token response."""
    return await auth_service.login(test_user.u_email, USER_PASSWORD)


@pytest.fixture
def auth_headers(user_tokens: Dict[str, Any]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {user_tokens['access_token']}"}


@pytest_asyncio.fixture
async def admin_auth_headers(auth_service: AuthService, test_admin_user: User) -> Dict[str, str]:
    tokens = await auth_service.login(test_admin_user.u_email, ADMIN_PASSWORD)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def authenticator() -> SoftAuthenticator:
    return SoftAuthenticator()
