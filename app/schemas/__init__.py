"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccessTokenResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RecoveryQuestionResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPairResponse,
    VerifyRecoveryRequest,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AccessTokenResponse",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "RecoveryQuestionResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenPairResponse",
    "VerifyRecoveryRequest",
]
