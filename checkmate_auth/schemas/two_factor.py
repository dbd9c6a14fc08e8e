"""
Two-factor schemas untuk CheckMate Auth.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field


class TwoFactorStatusResponse(BaseModel):
    enabled: bool
    method: str
    enabled_at: Optional[datetime] = None
    last_used: Optional[datetime] = None
    total_used: int = 0
    remaining_backup_codes: int = 0


class BackupCodesResponse(BaseModel):
    """
    Backup codes plaintext. Hanya dikirim sekali, saat dibuat.
    """
    message: str = Field(..., description="Response message")
    backup_codes: List[str] = Field(..., description="Backup codes (XXXX-XXXX)")


class TwoFactorDisableRequest(BaseModel):
    password: str = Field(..., min_length=1, description="Password saat ini untuk konfirmasi")
