"""
API dependencies module.
Berisi reusable dependencies untuk FastAPI endpoints.
"""

from checkmate_auth.api.dependencies.auth import (
    AuthContext,
    get_auth_context,
    get_client_info,
    get_current_user,
    require_role,
    require_admin
)
from checkmate_auth.api.dependencies.database import get_db, get_redis, create_redis_client
from checkmate_auth.api.dependencies.rate_limit import RateLimitDependency, login_rate_limit
from checkmate_auth.api.dependencies.services import (
    get_audit_service,
    get_email_service,
    get_auth_service,
    get_two_factor_service,
    get_webauthn_service,
    get_user_service
)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_client_info",
    "get_current_user",
    "require_role",
    "require_admin",
    "get_db",
    "get_redis",
    "create_redis_client",
    "RateLimitDependency",
    "login_rate_limit",
    "get_audit_service",
    "get_email_service",
    "get_auth_service",
    "get_two_factor_service",
    "get_webauthn_service",
    "get_user_service"
]
