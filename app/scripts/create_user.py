"""
Register a user from the command line (e.g. seed accounts). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD QUESTION ANSWER
Example:
  python -m app.scripts.create_user jose 'a-secure-password' '¿Cuál es tu ciudad natal?' Oaxaca
Use --list-questions to print the common recovery questions.
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import SecretHasher, TokenConfig, TokenIssuer
from app.services.auth import COMMON_RECOVERY_QUESTIONS, AuthError, AuthService
from app.services.user_store import SqlAlchemyUserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Register a Sentinel Auth user.")
    parser.add_argument("--list-questions", action="store_true", help="Print common recovery questions and exit")
    parser.add_argument("username", nargs="?", help="Username (stored lowercase)")
    parser.add_argument("password", nargs="?", help="Password")
    parser.add_argument("question", nargs="?", help="Recovery question")
    parser.add_argument("answer", nargs="?", help="Recovery answer (case-insensitive)")
    args = parser.parse_args(argv)

    if args.list_questions:
        for question in COMMON_RECOVERY_QUESTIONS:
            print(question)
        return 0

    settings = get_settings()
    db = SessionLocal()
    try:
        service = AuthService(
            store=SqlAlchemyUserStore(db),
            hasher=SecretHasher(rounds=settings.BCRYPT_ROUNDS),
            tokens=TokenIssuer(TokenConfig.from_settings(settings)),
        )
        service.register(args.username, args.password, args.question, args.answer)
    except AuthError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{args.username.lower()}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
