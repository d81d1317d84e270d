"""Auth routes: registration, login, token refresh and password recovery."""

from typing import Annotated, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import SecretHasher, TokenConfig, TokenIssuer
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
from app.services.auth import AuthError, AuthService, InvalidToken, MissingToken
from app.services.user_store import SqlAlchemyUserStore

router = APIRouter()


def _responses(*codes: int) -> dict[int | str, dict[str, object]]:
    """OpenAPI entries for the error codes a route can return."""
    descriptions = {
        400: "Missing required fields",
        401: "Unauthorized",
        404: "User not found",
        409: "User already exists",
        500: "Internal server error",
    }
    return {code: {"model": ErrorResponse, "description": descriptions[code]} for code in codes}


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    """Dependency: AuthService bound to this request's DB session."""
    return AuthService(
        store=SqlAlchemyUserStore(db),
        hasher=SecretHasher(rounds=settings.BCRYPT_ROUNDS),
        tokens=TokenIssuer(TokenConfig.from_settings(settings)),
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def _raise_http(e: AuthError) -> NoReturn:
    headers = None
    if isinstance(e, (MissingToken, InvalidToken)):
        headers = {"WWW-Authenticate": "Bearer"}
    raise HTTPException(status_code=e.status_code, detail=e.message, headers=headers) from e


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    summary="Register a new user",
    responses=_responses(400, 409, 500),
)
def register(
    service: AuthServiceDep,
    body: Annotated[RegisterRequest | None, Body()] = None,
) -> MessageResponse:
    """Create an account with a recovery question and answer. Does not log in."""
    body = body or RegisterRequest()
    try:
        service.register(
            body.username, body.password, body.recovery_question, body.recovery_answer
        )
    except AuthError as e:
        _raise_http(e)
    return MessageResponse(message="User registered successfully.")


@router.post(
    "/login",
    response_model=TokenPairResponse,
    summary="Log in",
    responses=_responses(400, 401, 500),
)
def login(
    service: AuthServiceDep,
    body: Annotated[LoginRequest | None, Body()] = None,
) -> TokenPairResponse:
    """
    Authenticate with username and password; returns an access token and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    body = body or LoginRequest()
    try:
        issued = service.login(body.username, body.password)
    except AuthError as e:
        _raise_http(e)
    return TokenPairResponse(access_token=issued.access_token, refresh_token=issued.refresh_token)


@router.post(
    "/refresh-token",
    response_model=AccessTokenResponse,
    summary="Get a new access token from a refresh token",
    responses=_responses(401),
)
def refresh_token(
    service: AuthServiceDep,
    body: Annotated[RefreshTokenRequest | None, Body()] = None,
) -> AccessTokenResponse:
    body = body or RefreshTokenRequest()
    try:
        access_token = service.refresh_token(body.refresh_token)
    except AuthError as e:
        _raise_http(e)
    return AccessTokenResponse(access_token=access_token)


@router.get(
    "/recovery-questions",
    response_model=list[str],
    summary="List common recovery questions",
)
def get_common_recovery_questions(service: AuthServiceDep) -> list[str]:
    return service.get_common_recovery_questions()


@router.get(
    "/recovery-question/{username}",
    response_model=RecoveryQuestionResponse,
    summary="Get a user's recovery question",
    responses=_responses(404, 500),
)
def get_recovery_question(username: str, service: AuthServiceDep) -> RecoveryQuestionResponse:
    try:
        question = service.get_recovery_question(username)
    except AuthError as e:
        _raise_http(e)
    return RecoveryQuestionResponse(recovery_question=question)


@router.post(
    "/verify-recovery",
    response_model=MessageResponse,
    summary="Verify a recovery answer",
    responses=_responses(400, 401, 404, 500),
)
def verify_recovery(
    service: AuthServiceDep,
    body: Annotated[VerifyRecoveryRequest | None, Body()] = None,
) -> MessageResponse:
    """Check the answer to the user's recovery question (case-insensitive)."""
    body = body or VerifyRecoveryRequest()
    try:
        service.verify_recovery_answer(body.username, body.recovery_answer)
    except AuthError as e:
        _raise_http(e)
    return MessageResponse(message="Correct answer. You may reset your password.")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset a user's password",
    responses=_responses(400, 404, 500),
)
def reset_password(
    service: AuthServiceDep,
    body: Annotated[ResetPasswordRequest | None, Body()] = None,
) -> MessageResponse:
    body = body or ResetPasswordRequest()
    try:
        service.reset_password(body.username, body.new_password)
    except AuthError as e:
        _raise_http(e)
    return MessageResponse(message="Password updated successfully.")
