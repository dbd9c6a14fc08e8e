"""
Utils module untuk CheckMate Auth.
"""

from checkmate_auth.utils.validators import (
    is_valid_email,
    normalize_email,
    clean_ip_address,
    parse_user_agent
)

__all__ = [
    "is_valid_email",
    "normalize_email",
    "clean_ip_address",
    "parse_user_agent"
]
