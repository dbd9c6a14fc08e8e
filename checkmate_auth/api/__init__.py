"""
API module untuk CheckMate Auth.
Berisi endpoints dan dependencies untuk API.
"""

from checkmate_auth.api.v1 import auth, health, sessions, two_factor, users, webauthn

__all__ = ["auth", "health", "sessions", "two_factor", "users", "webauthn"]
