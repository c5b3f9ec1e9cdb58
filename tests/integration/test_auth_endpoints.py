from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config
from fastapi.testclient import TestClient

from alembic import command
from apps.auth_api.main import create_app
from artswave_auth.application.services.auth_service import AuthService, PublicUser
from artswave_auth.domain.auth.errors import DuplicateUsernameError
from artswave_auth.infrastructure.db.auth_token_repository import SqlAlchemyAuthTokenRepository
from artswave_auth.infrastructure.db.session import create_session_factory
from artswave_auth.infrastructure.db.user_repository import SqlAlchemyUserRepository
from artswave_auth.infrastructure.security.password_hasher import BcryptPasswordHasher
from artswave_auth.infrastructure.security.token_service import OpaqueTokenService

_FAST_ROUNDS = 4


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def _build_auth_service(async_url: str) -> AuthService:
    session_factory = create_session_factory(async_url)
    return AuthService(
        users=SqlAlchemyUserRepository(session_factory, timeout_seconds=30.0),
        password_hasher=BcryptPasswordHasher(rounds=_FAST_ROUNDS),
        auth_tokens=SqlAlchemyAuthTokenRepository(session_factory),
        token_service=OpaqueTokenService(),
    )


def _build_client(async_url: str) -> TestClient:
    return TestClient(create_app(auth_service=_build_auth_service(async_url)))


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_register_login_end_to_end(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "e2e.db")

    with _build_client(async_url) as client:
        registered = client.post(
            "/api/register",
            json={"username": "alice", "password": "secret1"},
        )
        logged_in = client.post("/api/login", json={"username": "alice", "password": "secret1"})
        wrong_password = client.post(
            "/api/login",
            json={"username": "alice", "password": "wrong"},
        )
        unknown_user = client.post(
            "/api/login",
            json={"username": "bob", "password": "whatever"},
        )
        token = logged_in.json()["token"]
        me = client.get("/api/me", headers={"authorization": f"Bearer {token}"})

    assert registered.status_code == 201
    register_body = registered.json()
    assert set(register_body) == {"username", "createdAt"}
    assert register_body["username"] == "alice"

    assert logged_in.status_code == 200
    login_body = logged_in.json()
    assert login_body["username"] == "alice"
    assert _parse_ts(login_body["lastLogin"]) >= _parse_ts(register_body["createdAt"])
    assert login_body["token"]
    assert _parse_ts(login_body["expiresAt"]) > _parse_ts(login_body["lastLogin"])

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {"detail": "invalid credentials"}

    assert me.status_code == 200
    assert me.json()["username"] == "alice"

    hasher = BcryptPasswordHasher(rounds=_FAST_ROUNDS)
    with sa.create_engine(sync_url).connect() as connection:
        user_row = connection.execute(
            sa.text("SELECT password_hash, last_login FROM users WHERE username = 'alice'")
        ).mappings().one()
        token_hashes = connection.execute(
            sa.text("SELECT token_hash FROM auth_tokens")
        ).scalars().all()

    assert user_row["password_hash"] != "secret1"
    assert hasher.verify_password(password="secret1", password_hash=user_row["password_hash"])
    assert user_row["last_login"] is not None
    assert token_hashes == [OpaqueTokenService().hash_token(token)]


def test_duplicate_registration_returns_409(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "duplicate.db")

    with _build_client(async_url) as client:
        first = client.post("/api/register", json={"username": "alice", "password": "secret1"})
        second = client.post("/api/register", json={"username": "alice", "password": "other12"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {"detail": "username already exists"}


@pytest.mark.parametrize(
    ("username", "password", "status_code"),
    [
        ("u" * 2, "secret1", 400),
        ("u" * 3, "secret1", 201),
        ("u" * 30, "secret1", 201),
        ("u" * 31, "secret1", 400),
        ("carol", "12345", 400),
        ("carol", "123456", 201),
        ("a\x00b", "secret1", 400),
    ],
)
def test_registration_boundaries(
    tmp_path: Path,
    username: str,
    password: str,
    status_code: int,
) -> None:
    _, async_url = _upgrade_head(tmp_path, "boundaries.db")

    with _build_client(async_url) as client:
        response = client.post("/api/register", json={"username": username, "password": password})

    assert response.status_code == status_code


def test_repeated_logins_never_move_last_login_backwards(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repeat_login.db")

    with _build_client(async_url) as client:
        client.post("/api/register", json={"username": "alice", "password": "secret1"})
        stamps = [
            _parse_ts(
                client.post(
                    "/api/login",
                    json={"username": "alice", "password": "secret1"},
                ).json()["lastLogin"]
            )
            for _ in range(3)
        ]

    assert stamps == sorted(stamps)


@pytest.mark.asyncio
async def test_concurrent_registrations_admit_exactly_one(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "concurrent_register.db")
    service = _build_auth_service(async_url)

    results = await asyncio.gather(
        *(service.register(username="racer", password=f"secret-{i}") for i in range(8)),
        return_exceptions=True,
    )

    successes = [result for result in results if isinstance(result, PublicUser)]
    duplicates = [result for result in results if isinstance(result, DuplicateUsernameError)]
    assert len(successes) == 1
    assert len(duplicates) == 7

    with sa.create_engine(sync_url).connect() as connection:
        count = connection.execute(sa.text("SELECT COUNT(*) FROM users")).scalar_one()
    assert count == 1


def test_form_encoded_register_then_json_login(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "form_body.db")

    with _build_client(async_url) as client:
        registered = client.post(
            "/api/register",
            data={"username": "formuser", "password": "secret1"},
        )
        logged_in = client.post(
            "/api/login",
            json={"username": "formuser", "password": "secret1"},
        )

    assert registered.status_code == 201
    assert logged_in.status_code == 200
    assert logged_in.json()["username"] == "formuser"
