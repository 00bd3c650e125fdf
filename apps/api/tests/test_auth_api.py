"""Registration, login, profile and bearer-resolution API tests."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
import unittest

from fastapi.testclient import TestClient

from app.adapters.auth import JwtTokenService, PasswordHasher
from app.core.config import Settings
from app.main import create_app
from app.schemas.user import UserRole

_SECRET = "api-test-signing-key-" + "0123456789abcdef" * 4


def _settings(**overrides: object) -> Settings:
    values: dict = {"jwt_secret": _SECRET, "bcrypt_rounds": 4}
    values.update(overrides)
    return Settings(**values)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class _RecordingHasher(PasswordHasher):
    """Delegates to a real hasher and records whether each call ran on the event loop."""

    def __init__(self, inner: PasswordHasher) -> None:
        self._inner = inner
        self.calls: list[tuple[str, bool]] = []

    def hash_password(self, password: str) -> str:
        self.calls.append(("hash", _on_event_loop()))
        return self._inner.hash_password(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        self.calls.append(("verify", _on_event_loop()))
        return self._inner.verify_password(password, password_hash)


class _ApiCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app(_settings())
        self.client = TestClient(self.app)
        self.store = self.app.state.store

    def register(self, email: str = "a@x.com", username: str = "alice", password: str = "pw1"):
        return self.client.post(
            "/api/v1/auth/register",
            json={"email": email, "username": username, "password": password},
        )


class RegisterApiTests(_ApiCase):
    def test_register_returns_token_for_created_user_without_password(self) -> None:
        response = self.register()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(set(body["user"]), {"id", "email", "username"})
        self.assertEqual(body["user"]["email"], "a@x.com")
        self.assertNotIn("password", response.text)

        principal = self.app.state.token_service.verify_token(body["access_token"])
        self.assertEqual(principal.user_id, body["user"]["id"])
        self.assertEqual(principal.role, UserRole.USER)

        stored = self.store.find_user_by_id(body["user"]["id"])
        self.assertNotEqual(stored.password_hash, "pw1")

    def test_distinct_registrations_each_resolve_to_their_own_user(self) -> None:
        ids = []
        for index in range(3):
            response = self.register(email=f"user{index}@x.com", username=f"user{index}")
            self.assertEqual(response.status_code, 201)
            body = response.json()
            principal = self.app.state.token_service.verify_token(body["access_token"])
            self.assertEqual(principal.user_id, body["user"]["id"])
            ids.append(principal.user_id)

        self.assertEqual(len(set(ids)), 3)

    def test_duplicate_email_returns_conflict_and_keeps_first_user(self) -> None:
        first = self.register()
        second = self.register(username="mallory", password="other")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json(), {"code": "EMAIL_ALREADY_REGISTERED", "message": "User already exists"})
        self.assertEqual(self.store.user_write_count, 1)
        self.assertEqual(self.store.find_user_by_email("a@x.com").username, "alice")

    def test_invalid_registration_payload_is_rejected_before_store_access(self) -> None:
        payloads = [
            {"email": "a@x.com", "username": "alice"},
            {"email": "not-an-email", "username": "alice", "password": "pw1"},
            {"email": "a@x.com", "username": "", "password": "pw1"},
            {"email": "a@x.com", "username": "alice", "password": "x" * 73},
        ]
        for payload in payloads:
            with self.subTest(payload=payload):
                response = self.client.post("/api/v1/auth/register", json=payload)
                self.assertEqual(response.status_code, 422)
                body = response.json()
                self.assertEqual(body["code"], "VALIDATION_ERROR")
                self.assertTrue(body["details"]["errors"])

        self.assertEqual(self.store.user_write_count, 0)


class LoginApiTests(_ApiCase):
    def test_login_with_valid_credentials_returns_fresh_token(self) -> None:
        registered = self.register().json()

        response = self.client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "pw1"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"], registered["user"])
        principal = self.app.state.token_service.verify_token(body["access_token"])
        self.assertEqual(principal.user_id, registered["user"]["id"])

    def test_wrong_password_and_unknown_email_are_indistinguishable(self) -> None:
        self.register()

        wrong_password = self.client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "nope"})
        unknown_email = self.client.post("/api/v1/auth/login", json={"email": "b@x.com", "password": "pw1"})

        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json(), {"code": "UNAUTHORIZED", "message": "Invalid credentials"})

    def test_login_email_match_is_case_sensitive(self) -> None:
        self.register()

        response = self.client.post("/api/v1/auth/login", json={"email": "A@x.com", "password": "pw1"})

        self.assertEqual(response.status_code, 401)


class ProfileApiTests(_ApiCase):
    def test_profile_returns_caller_without_password_hash(self) -> None:
        registered = self.register().json()

        response = self.client.get("/api/v1/users/profile", headers=_bearer(registered["access_token"]))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["id"], registered["user"]["id"])
        self.assertEqual(body["role"], "user")
        self.assertIn("created_at", body)
        self.assertNotIn("password_hash", body)
        self.assertNotIn("password", body)

    def test_profile_requires_valid_bearer_token(self) -> None:
        registered = self.register().json()
        token = registered["access_token"]
        cases = {
            "missing": {},
            "basic_scheme": {"Authorization": f"Basic {token}"},
            "garbage": _bearer("garbage"),
            "tampered": _bearer(token[:-2] + ("AA" if not token.endswith("AA") else "BB")),
        }
        for name, headers in cases.items():
            with self.subTest(case=name):
                response = self.client.get("/api/v1/users/profile", headers=headers)
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json()["code"], "UNAUTHORIZED")

    def test_expired_token_is_rejected(self) -> None:
        registered = self.register().json()
        issued_long_ago = datetime.now(UTC) - timedelta(days=8)
        stale_issuer = JwtTokenService(_SECRET, clock=lambda: issued_long_ago)
        token = stale_issuer.issue_token(registered["user"]["id"], "a@x.com", UserRole.USER)

        response = self.client.get("/api/v1/users/profile", headers=_bearer(token))

        self.assertEqual(response.status_code, 401)

    def test_valid_token_for_unknown_user_returns_not_found(self) -> None:
        token = self.app.state.token_service.issue_token("ghost", "ghost@x.com", UserRole.USER)

        response = self.client.get("/api/v1/users/profile", headers=_bearer(token))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "RESOURCE_NOT_FOUND")


class IdentityResolutionTests(_ApiCase):
    def test_invalid_token_on_public_route_is_treated_as_anonymous(self) -> None:
        response = self.client.get("/api/v1/posts", headers=_bearer("garbage"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_token_from_another_signing_key_is_rejected(self) -> None:
        other_app = create_app(_settings(jwt_secret="x" * 64))
        other_client = TestClient(other_app)
        foreign = other_client.post(
            "/api/v1/auth/register",
            json={"email": "a@x.com", "username": "alice", "password": "pw1"},
        ).json()

        response = self.client.get("/api/v1/users/profile", headers=_bearer(foreign["access_token"]))

        self.assertEqual(response.status_code, 401)


class OpenApiContractTests(_ApiCase):
    def test_documented_response_codes_and_security_match_contract(self) -> None:
        response = self.client.get("/openapi.json")
        self.assertEqual(response.status_code, 200)
        paths = response.json()["paths"]

        self.assertEqual(set(paths["/api/v1/auth/register"]["post"]["responses"]), {"201", "409", "422"})
        self.assertEqual(set(paths["/api/v1/posts"]["get"]["responses"]), {"200"})
        self.assertEqual(
            set(paths["/api/v1/posts/{postId}"]["patch"]["responses"]),
            {"200", "401", "403", "404", "422"},
        )
        self.assertEqual(
            set(paths["/api/v1/posts/{postId}"]["delete"]["responses"]),
            {"204", "401", "403", "404"},
        )
        self.assertEqual(paths["/api/v1/posts"]["post"]["security"], [{"bearerAuth": []}])
        self.assertNotIn("security", paths["/api/v1/posts/{postId}"]["get"])
        self.assertNotIn("security", paths["/api/v1/posts"]["get"])


class PasswordHashingThreadTests(_ApiCase):
    def test_register_and_login_hash_passwords_off_the_event_loop(self) -> None:
        recorder = _RecordingHasher(self.app.state.password_hasher)
        self.app.state.password_hasher = recorder

        self.assertEqual(self.register().status_code, 201)
        login = self.client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "pw1"})
        self.assertEqual(login.status_code, 200)

        self.assertEqual(recorder.calls, [("hash", False), ("verify", False)])


class CorsApiTests(_ApiCase):
    def _preflight(self, client: TestClient, origin: str):
        return client.options(
            "/api/v1/posts",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization,content-type",
            },
        )

    def test_default_settings_allow_any_origin(self) -> None:
        preflight = self._preflight(self.client, "https://reader.example")

        self.assertEqual(preflight.status_code, 200)
        self.assertEqual(preflight.headers["access-control-allow-origin"], "*")
        self.assertIn("POST", preflight.headers["access-control-allow-methods"])

        listed = self.client.get("/api/v1/posts", headers={"Origin": "https://reader.example"})
        self.assertEqual(listed.headers["access-control-allow-origin"], "*")

    def test_configured_origins_are_enforced(self) -> None:
        app = create_app(_settings(cors_origins="https://blog.example, https://admin.example"))
        client = TestClient(app)

        allowed = self._preflight(client, "https://admin.example")
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.headers["access-control-allow-origin"], "https://admin.example")

        rejected = self._preflight(client, "https://evil.example")
        self.assertEqual(rejected.status_code, 400)
        self.assertNotIn("access-control-allow-origin", rejected.headers)
