"""Credential store: persist and look up user records by normalized username."""

from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User


class UsernameTakenError(Exception):
    """Raised when a write collides with an existing username (unique index)."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username already taken: {username}")


class UserStore(Protocol):
    """Keyed user-record store. Usernames passed in are already normalized."""

    def get_by_username(self, username: str) -> User | None: ...

    def add(self, user: User) -> User: ...

    def save(self, user: User) -> User: ...


class SqlAlchemyUserStore:
    """UserStore backed by a SQLAlchemy session (one session per request)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_username(self, username: str) -> User | None:
        return self.session.query(User).filter(User.username == username).first()

    def add(self, user: User) -> User:
        """Insert a new user. Raises UsernameTakenError if the unique index rejects it."""
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise UsernameTakenError(user.username) from e
        self.session.refresh(user)
        return user

    def save(self, user: User) -> User:
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def rollback(self) -> None:
        self.session.rollback()
