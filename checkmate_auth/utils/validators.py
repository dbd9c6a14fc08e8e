"""
Validator utilities untuk CheckMate Auth.
Normalisasi input login dan parsing metadata device dari request.
"""

import ipaddress
from typing import Optional, Dict

from email_validator import validate_email as validate_email_lib, EmailNotValidError


def is_valid_email(email: str) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        True if email is valid, False otherwise
    """
    if not email or not isinstance(email, str):
        return False

    try:
        validate_email_lib(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def normalize_email(email: str) -> str:
    """
    Normalize email address (lowercase, tanpa whitespace).

    Args:
        email: Email address to normalize

    Returns:
        Normalized email address
    """
    if not email:
        return email
    return email.lower().strip()


def clean_ip_address(ip: Optional[str]) -> Optional[str]:
    """IP yang tidak valid (misal "testclient") disimpan sebagai None."""
    if not ip or not isinstance(ip, str):
        return None
    try:
        return str(ipaddress.ip_address(ip))
    except ValueError:
        return None


def parse_user_agent(user_agent: Optional[str]) -> Dict[str, str]:
    """
    Ringkas user agent menjadi browser, os, dan tipe device.

    Args:
        user_agent: Header User-Agent

    Returns:
        Dict dengan key browser, os, device
    """
    info = {"browser": "Unknown", "os": "Unknown", "device": "Desktop"}
    if not user_agent:
        return info

    # Edge dan Chrome sama-sama mengandung "Chrome"; Chrome dan Safari sama-sama "Safari"
    if "Edg" in user_agent:
        info["browser"] = "Edge"
    elif "Firefox" in user_agent:
        info["browser"] = "Firefox"
    elif "Chrome" in user_agent:
        info["browser"] = "Chrome"
    elif "Safari" in user_agent:
        info["browser"] = "Safari"

    if "Windows" in user_agent:
        info["os"] = "Windows"
    elif "Android" in user_agent:
        info["os"] = "Android"
    elif "iPhone" in user_agent or "iPad" in user_agent or "iOS" in user_agent:
        info["os"] = "iOS"
    elif "Mac" in user_agent:
        info["os"] = "macOS"
    elif "Linux" in user_agent:
        info["os"] = "Linux"

    if "iPad" in user_agent or "Tablet" in user_agent:
        info["device"] = "Tablet"
    elif "Mobile" in user_agent or "Android" in user_agent:
        info["device"] = "Mobile"

    return info
