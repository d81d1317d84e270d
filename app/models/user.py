"""ORM model for registered users (credentials and recovery challenge)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication and password recovery.

    username is stored lowercase; the unique index is the authority on
    uniqueness. password_hash and recovery_answer_hash are bcrypt digests,
    never plaintext.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    recovery_question = Column(String(255), nullable=False)
    recovery_answer_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
