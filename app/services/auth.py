"""
Auth service: registration, login, token refresh and password recovery.

Composes the user store, the secret hasher and the token issuer. Every
business-rule violation is raised as an AuthError subclass carrying the HTTP
status the API layer should answer with. Unexpected store, hashing or signing
failures are logged in full and re-raised as InternalFailure with a generic
message.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import jwt
from sqlalchemy.exc import SQLAlchemyError

from app.core.security import SecretHasher, TokenIssuer, dummy_digest
from app.models.user import User
from app.services.user_store import UsernameTakenError, UserStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMMON_RECOVERY_QUESTIONS: tuple[str, ...] = (
    "¿Cuál es el nombre de tu primera mascota?",
    "¿Cuál es tu ciudad natal?",
    "¿Cuál es el nombre de tu escuela primaria?",
    "¿Cuál es tu comida favorita?",
    "¿Cuál es el nombre de tu mejor amigo de la infancia?",
)


class AuthError(Exception):
    """Base for auth outcomes that are reported to the caller."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingFields(AuthError):
    status_code = 400
    default_message = "Missing required fields."


class UserAlreadyExists(AuthError):
    status_code = 409
    default_message = "User already exists."


class InvalidCredentials(AuthError):
    """Unknown username or wrong password; the two are deliberately indistinguishable."""

    status_code = 401
    default_message = "Invalid username or password."


class UserNotFound(AuthError):
    status_code = 404
    default_message = "User not found."


class IncorrectAnswer(AuthError):
    status_code = 401
    default_message = "Incorrect recovery answer."


class MissingToken(AuthError):
    status_code = 401
    default_message = "Refresh token required."


class InvalidToken(AuthError):
    """Malformed, expired, badly signed or wrong issuer/audience; never says which."""

    status_code = 401
    default_message = "Invalid or expired refresh token."


class InternalFailure(AuthError):
    status_code = 500
    default_message = "Internal server error."


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


def normalize_username(username: str) -> str:
    """Usernames are case-insensitive; the stored key is lowercase."""
    return username.lower()


def _require(*values: str | None) -> None:
    if not all(values):
        raise MissingFields()


class AuthService:
    """Stateless orchestrator; build one per request around a store."""

    def __init__(self, store: UserStore, hasher: SecretHasher, tokens: TokenIssuer) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def _guard(self, operation: str, fn: Callable[[], T]) -> T:
        """Run a store, hashing or signing step; map unexpected failures to InternalFailure."""
        try:
            return fn()
        except SQLAlchemyError:
            logger.exception("Credential store failure during %s", operation)
            rollback = getattr(self.store, "rollback", None)
            if callable(rollback):
                rollback()
            raise InternalFailure()
        except (ValueError, TypeError, jwt.PyJWTError):
            logger.exception("Hashing or signing failure during %s", operation)
            raise InternalFailure()

    def _find(self, operation: str, username: str) -> User | None:
        key = normalize_username(username)
        return self._guard(operation, lambda: self.store.get_by_username(key))

    def register(
        self,
        username: str | None,
        password: str | None,
        recovery_question: str | None,
        recovery_answer: str | None,
    ) -> None:
        """Create a user. Does not log the user in."""
        _require(username, password, recovery_question, recovery_answer)
        key = normalize_username(username)
        if self._find("register", key) is not None:
            raise UserAlreadyExists()

        user = User(
            username=key,
            password_hash=self._guard("register", lambda: self.hasher.hash(password)),
            recovery_question=recovery_question,
            recovery_answer_hash=self._guard(
                "register", lambda: self.hasher.hash(recovery_answer.lower())
            ),
        )
        try:
            self._guard("register", lambda: self.store.add(user))
        except UsernameTakenError:
            # Lost a race with a concurrent registration; the unique index decided.
            raise UserAlreadyExists() from None
        logger.info("User registered: username=%s", key)

    def login(self, username: str | None, password: str | None) -> IssuedTokens:
        """Check credentials and issue an access token plus a longer-lived refresh token."""
        _require(username, password)
        user = self._find("login", username)
        if user is None:
            # Same bcrypt cost as a real check so timing does not reveal unknown usernames.
            self.hasher.verify(password, dummy_digest(self.hasher.rounds))
            matched = False
        else:
            matched = self.hasher.verify(password, user.password_hash)
        if not matched:
            logger.warning("Failed login attempt: username=%s", normalize_username(username))
            raise InvalidCredentials()

        issued = self._guard(
            "login",
            lambda: IssuedTokens(
                access_token=self.tokens.issue_access(user.id, user.username),
                refresh_token=self.tokens.issue_refresh(user.id, user.username),
            ),
        )
        logger.info("Tokens issued: user_id=%s", user.id)
        return issued

    def refresh_token(self, refresh_token: str | None) -> str:
        """Mint a new access token from a valid refresh token. No revocation check exists."""
        if not refresh_token:
            raise MissingToken()
        try:
            claims = self.tokens.verify(refresh_token)
        except jwt.PyJWTError as e:
            logger.warning("Refresh token rejected: %s", type(e).__name__)
            raise InvalidToken() from None
        return self._guard(
            "refresh_token", lambda: self.tokens.issue_access(claims.sub, claims.username)
        )

    def get_common_recovery_questions(self) -> list[str]:
        return list(COMMON_RECOVERY_QUESTIONS)

    def get_recovery_question(self, username: str) -> str:
        """Return the stored recovery question. Unauthenticated by product decision."""
        user = self._find("get_recovery_question", username) if username else None
        if user is None:
            raise UserNotFound()
        return user.recovery_question

    def verify_recovery_answer(self, username: str | None, recovery_answer: str | None) -> None:
        """
        Check the recovery answer (case-insensitive).

        Success only signals that the caller may proceed to reset_password;
        nothing is issued or stored that binds the two calls.
        """
        _require(username, recovery_answer)
        user = self._find("verify_recovery_answer", username)
        if user is None:
            raise UserNotFound()
        if not self.hasher.verify(recovery_answer.lower(), user.recovery_answer_hash):
            logger.warning("Incorrect recovery answer: username=%s", user.username)
            raise IncorrectAnswer()

    def reset_password(self, username: str | None, new_password: str | None) -> None:
        _require(username, new_password)
        user = self._find("reset_password", username)
        if user is None:
            raise UserNotFound()
        user.password_hash = self._guard("reset_password", lambda: self.hasher.hash(new_password))
        self._guard("reset_password", lambda: self.store.save(user))
        logger.info("Password reset: username=%s", user.username)
