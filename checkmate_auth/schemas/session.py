"""
Session schemas untuk CheckMate Auth.
"""

from datetime import datetime
from typing import Optional, Dict, List

from pydantic import BaseModel, Field


class SessionResponse(BaseModel):
    """
    Session response schema. Token tidak pernah ikut dikirim.
    """
    id: str = Field(..., description="Session ID")
    user_id: str = Field(..., description="Owner")
    ip_address: Optional[str] = Field(None, description="Origin IP")
    user_agent: Optional[str] = Field(None, description="User agent")
    device_info: Dict[str, str] = Field(default_factory=dict, description="browser, os, device")
    is_active: bool = Field(..., description="Whether session is active")
    is_current: bool = Field(False, description="Session milik request ini")
    created_at: Optional[datetime] = Field(None, description="Login time")
    last_activity: Optional[datetime] = Field(None, description="Last activity")
    expires_at: datetime = Field(..., description="Session expiry")
    logout_reason: Optional[str] = Field(None, description="Termination reason")


class SessionListResponse(BaseModel):
    sessions: List[SessionResponse]
    total: int
