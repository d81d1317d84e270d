"""HTTP tests for the /api/auth routes using TestClient and an in-memory SQLite store."""

import unittest
from collections.abc import Generator
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from pydantic import SecretStr
from sqlalchemy.orm import Session

from app.api.v1.auth import get_auth_service
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.main import app
from tests.helpers import QUESTION, memory_sessionmaker

TEST_SETTINGS = Settings(
    JWT_SECRET=SecretStr("api-test-secret"),
    JWT_EXPIRE_MINUTES=15,
    JWT_REFRESH_EXPIRE_MINUTES=60,
    BCRYPT_ROUNDS=4,
)

REGISTER_BODY = {
    "username": "jose",
    "password": "123",
    "recoveryQuestion": QUESTION,
    "recoveryAnswer": "Oaxaca",
}


class AuthApiTestCase(unittest.TestCase):
    """TestClient with DB and settings dependencies overridden."""

    def setUp(self) -> None:
        factory = memory_sessionmaker()

        def override_get_db() -> Generator[Session, None, None]:
            db = factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

    def register(self, **overrides: str) -> int:
        body = {**REGISTER_BODY, **overrides}
        return self.client.post("/api/auth/register", json=body).status_code

    def login(self, username: str = "jose", password: str = "123"):
        return self.client.post("/api/auth/login", json={"username": username, "password": password})


class TestRegisterRoute(AuthApiTestCase):
    def test_created(self) -> None:
        response = self.client.post("/api/auth/register", json=REGISTER_BODY)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"message": "User registered successfully."})

    def test_conflict_case_insensitive(self) -> None:
        self.assertEqual(self.register(username="Jose"), 201)
        response = self.client.post("/api/auth/register", json=REGISTER_BODY)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "User already exists.")

    def test_missing_field(self) -> None:
        body = {k: v for k, v in REGISTER_BODY.items() if k != "recoveryAnswer"}
        response = self.client.post("/api/auth/register", json=body)
        self.assertEqual(response.status_code, 400)

    def test_empty_field(self) -> None:
        self.assertEqual(self.register(password=""), 400)


class TestLoginRoute(AuthApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_returns_token_pair(self) -> None:
        response = self.login("JOSE", "123")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(set(data), {"accessToken", "refreshToken"})
        self.assertNotEqual(data["accessToken"], data["refreshToken"])

    def test_response_has_no_hashes(self) -> None:
        body = self.login().text
        self.assertNotIn("$2b$", body)
        self.assertNotIn("passwordHash", body)

    def test_unknown_user_and_wrong_password_identical(self) -> None:
        unknown = self.login("maria", "123")
        wrong = self.login("jose", "nope")
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.json(), wrong.json())

    def test_missing_password(self) -> None:
        response = self.client.post("/api/auth/login", json={"username": "jose"})
        self.assertEqual(response.status_code, 400)


class TestRefreshTokenRoute(AuthApiTestCase):
    def test_new_access_token(self) -> None:
        self.register()
        tokens = self.login().json()
        response = self.client.post(
            "/api/auth/refresh-token", json={"refreshToken": tokens["refreshToken"]}
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(set(data), {"accessToken"})
        self.assertNotEqual(data["accessToken"], tokens["accessToken"])

    def test_missing_token(self) -> None:
        response = self.client.post("/api/auth/refresh-token", json={})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_invalid_token(self) -> None:
        response = self.client.post("/api/auth/refresh-token", json={"refreshToken": "x.y.z"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid or expired refresh token.")


class TestRecoveryRoutes(AuthApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_common_questions(self) -> None:
        response = self.client.get("/api/auth/recovery-questions")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 5)
        self.assertIn(QUESTION, response.json())

    def test_question_by_username(self) -> None:
        response = self.client.get("/api/auth/recovery-question/JOSE")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"recoveryQuestion": QUESTION})

    def test_question_unknown_user(self) -> None:
        self.assertEqual(self.client.get("/api/auth/recovery-question/maria").status_code, 404)

    def test_verify_recovery(self) -> None:
        ok = self.client.post(
            "/api/auth/verify-recovery", json={"username": "jose", "recoveryAnswer": "oaxaca"}
        )
        self.assertEqual(ok.status_code, 200)
        wrong = self.client.post(
            "/api/auth/verify-recovery", json={"username": "jose", "recoveryAnswer": "puebla"}
        )
        self.assertEqual(wrong.status_code, 401)
        unknown = self.client.post(
            "/api/auth/verify-recovery", json={"username": "maria", "recoveryAnswer": "oaxaca"}
        )
        self.assertEqual(unknown.status_code, 404)
        missing = self.client.post("/api/auth/verify-recovery", json={"username": "jose"})
        self.assertEqual(missing.status_code, 400)

    def test_reset_password_flow(self) -> None:
        response = self.client.post(
            "/api/auth/reset-password", json={"username": "jose", "newPassword": "nueva456"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.login("jose", "123").status_code, 401)
        self.assertEqual(self.login("jose", "nueva456").status_code, 200)

    def test_reset_password_errors(self) -> None:
        unknown = self.client.post(
            "/api/auth/reset-password", json={"username": "maria", "newPassword": "x"}
        )
        self.assertEqual(unknown.status_code, 404)
        missing = self.client.post("/api/auth/reset-password", json={"username": "jose"})
        self.assertEqual(missing.status_code, 400)


class TestRootAndHealth(AuthApiTestCase):
    def test_root(self) -> None:
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("message", response.json())

    def test_health_reports_database(self) -> None:
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "connected")
        self.assertEqual(response.json()["status"], "ok")


class TestBodylessRequests(AuthApiTestCase):
    """An absent JSON body is treated like an empty object."""

    def test_missing_fields_routes(self) -> None:
        for path in (
            "/api/auth/register",
            "/api/auth/login",
            "/api/auth/verify-recovery",
            "/api/auth/reset-password",
        ):
            with self.subTest(path=path):
                response = self.client.post(path)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"detail": "Missing required fields."})

    def test_refresh_token_without_body(self) -> None:
        response = self.client.post("/api/auth/refresh-token")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"detail": "Refresh token required."})


class TestUnexpectedErrors(AuthApiTestCase):
    def test_generic_json_500(self) -> None:
        service = MagicMock()
        service.login.side_effect = RuntimeError("connection pool exhausted")
        app.dependency_overrides[get_auth_service] = lambda: service
        client = TestClient(app, raise_server_exceptions=False)
        with self.assertLogs("app.main", level="ERROR"):
            response = client.post("/api/auth/login", json={"username": "jose", "password": "123"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Internal server error."})
        self.assertNotIn("pool", response.text)


if __name__ == "__main__":
    unittest.main()
