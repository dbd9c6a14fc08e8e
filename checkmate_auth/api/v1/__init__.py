"""
API v1 module.
Berisi semua endpoints untuk API versi 1.
"""

from checkmate_auth.api.v1.auth import router as auth_router
from checkmate_auth.api.v1.health import router as health_router
from checkmate_auth.api.v1.sessions import router as sessions_router
from checkmate_auth.api.v1.two_factor import router as two_factor_router
from checkmate_auth.api.v1.users import router as users_router
from checkmate_auth.api.v1.webauthn import router as webauthn_router

__all__ = [
    "auth_router",
    "health_router",
    "sessions_router",
    "two_factor_router",
    "users_router",
    "webauthn_router"
]
