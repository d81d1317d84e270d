"""Request/response schemas for auth endpoints (camelCase on the wire)."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request fields (and, in the routes, the body itself) are optional so that absent
# or empty values reach the service and are reported as missing fields (400) or a
# missing token (401) rather than schema errors (422).


class RegisterRequest(CamelModel):
    """New account with its recovery challenge."""

    username: str | None = Field(default=None, max_length=255, examples=["jose"])
    password: str | None = Field(default=None, examples=["123"])
    recovery_question: str | None = Field(
        default=None, max_length=255, examples=["¿Cuál es tu ciudad natal?"]
    )
    recovery_answer: str | None = Field(default=None, examples=["Oaxaca"])


class LoginRequest(CamelModel):
    """Credentials for login."""

    username: str | None = Field(default=None, examples=["jose"])
    password: str | None = Field(default=None, examples=["123"])


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = Field(default=None, description="Refresh token from login")


class VerifyRecoveryRequest(CamelModel):
    username: str | None = Field(default=None, examples=["jose"])
    recovery_answer: str | None = Field(default=None, examples=["Oaxaca"])


class ResetPasswordRequest(CamelModel):
    username: str | None = Field(default=None, examples=["jose"])
    new_password: str | None = Field(default=None, examples=["nueva456"])


class TokenPairResponse(CamelModel):
    """Access and refresh tokens returned after successful login."""

    access_token: str = Field(..., description="Short-lived JWT access token")
    refresh_token: str = Field(..., description="Longer-lived JWT refresh token")


class AccessTokenResponse(CamelModel):
    access_token: str = Field(..., description="New JWT access token")


class RecoveryQuestionResponse(CamelModel):
    recovery_question: str


class MessageResponse(BaseModel):
    """Plain acknowledgment."""

    message: str


class ErrorResponse(BaseModel):
    """Error body produced by HTTPException."""

    detail: str
