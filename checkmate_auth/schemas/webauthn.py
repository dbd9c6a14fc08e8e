"""
WebAuthn schemas untuk CheckMate Auth.

Response dari browser diterima apa adanya (PublicKeyCredential dalam
bentuk JSON dengan field base64url); verifikasinya dilakukan di service.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List, Annotated

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator


class RegistrationVerifyRequest(BaseModel):
    """
    Hasil `navigator.credentials.create()` beserta label credential.
    """
    response: Dict[str, Any] = Field(
        ...,
        description="PublicKeyCredential JSON (id, rawId, response, type)"
    )
    label: Optional[Annotated[str, Field(max_length=100)]] = Field(
        None,
        description="Nama credential, misal 'Laptop kantor'"
    )


class AuthenticationOptionsRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class AuthenticationVerifyRequest(BaseModel):
    """
    Hasil `navigator.credentials.get()`.
    """
    email: EmailStr = Field(..., description="User email address")
    response: Dict[str, Any] = Field(
        ...,
        description="PublicKeyCredential JSON (id, rawId, response, type)"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class CredentialRenameRequest(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]


class CredentialResponse(BaseModel):
    """
    Credential response schema. Credential id dalam bentuk base64url.
    """
    id: str = Field(..., description="Row ID")
    credential_id: str = Field(..., description="Credential id (base64url)")
    name: str = Field(..., description="Label")
    transports: List[str] = Field(default_factory=list, description="Transport hints")
    usage_count: int = Field(0, description="Successful authentications")
    last_used_at: Optional[datetime] = Field(None, description="Last used")
    created_at: Optional[datetime] = Field(None, description="Registered at")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "credential_id": "Y3JlZGVudGlhbC1pZA",
            "name": "MacBook Touch ID",
            "transports": ["internal"],
            "usage_count": 12,
            "last_used_at": "2024-01-15T09:00:00Z",
            "created_at": "2024-01-01T00:00:00Z"
        }
    })
