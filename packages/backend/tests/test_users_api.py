"""User API tests — registration, login, /me, logout.

Learn: These exercise the whole token lifecycle through HTTP:
register/login issue a token (x-auth header) and store it on the user,
/users/me checks it, logout removes exactly that one token.
"""

import jwt
import pytest
from sqlalchemy import select

from todoapi.auth.password import verify_password
from todoapi.config import settings
from todoapi.db.models import User, UserToken


async def _tokens_for(db_session, user_id) -> list[UserToken]:
    result = await db_session.execute(
        select(UserToken).where(UserToken.user_id == user_id).order_by(UserToken.id)
    )
    return list(result.scalars().all())


# ═══════════════════════════════════════════════════════════
# GET /users/me
# ═══════════════════════════════════════════════════════════


async def test_me_authenticated(client, seed):
    user = seed["users"][0]
    r = await client.get("/users/me", headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == {"id": str(user["id"]), "email": user["email"]}


async def test_me_without_token(client, seed):
    r = await client.get("/users/me")
    assert r.status_code == 401
    assert r.content == b""


async def test_me_with_garbage_token(client, seed):
    r = await client.get("/users/me", headers={"x-auth": "not-a-token"})
    assert r.status_code == 401
    assert r.content == b""


async def test_me_with_tampered_token(client, seed):
    """U2's payload glued onto U1's signature fails the signature check."""
    header, _, signature = seed["users"][0]["token"].split(".")
    _, payload, _ = seed["users"][1]["token"].split(".")
    r = await client.get("/users/me", headers={"x-auth": f"{header}.{payload}.{signature}"})
    assert r.status_code == 401


async def test_me_with_token_signed_by_other_secret(client, seed):
    token = jwt.encode(
        {"sub": str(seed["users"][0]["id"]), "access": "auth"},
        "some-other-secret",
        algorithm="HS256",
    )
    r = await client.get("/users/me", headers={"x-auth": token})
    assert r.status_code == 401


async def test_me_with_wrong_access(client, seed):
    token = jwt.encode(
        {"sub": str(seed["users"][0]["id"]), "access": "admin"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    r = await client.get("/users/me", headers={"x-auth": token})
    assert r.status_code == 401


async def test_me_with_valid_but_unissued_token(client, seed):
    """A correctly signed token that was never stored is rejected."""
    token = jwt.encode(
        {"sub": str(seed["users"][0]["id"]), "access": "auth"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    r = await client.get("/users/me", headers={"x-auth": token})
    assert r.status_code == 401


async def test_me_with_token_stored_under_other_user(client, db_session, seed):
    """A token naming U1 but stored on U2's record is not accepted."""
    u1, u2 = seed["users"]
    token = jwt.encode(
        {"sub": str(u1["id"]), "access": "auth"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    db_session.add(UserToken(user_id=u2["id"], access="auth", token=token))
    await db_session.commit()

    r = await client.get("/users/me", headers={"x-auth": token})
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# POST /users
# ═══════════════════════════════════════════════════════════


async def test_register_user(client, db_session, seed):
    email = "example@example.com"
    password = "123ssdf"

    r = await client.post("/users", json={"email": email, "password": password})
    assert r.status_code == 200
    assert r.headers["x-auth"]
    body = r.json()
    assert body["id"]
    assert body["email"] == email
    assert "password" not in body
    assert "password_hash" not in body
    assert "tokens" not in body

    result = await db_session.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    assert user is not None
    assert user.password_hash != password
    assert verify_password(password, user.password_hash)

    tokens = await _tokens_for(db_session, user.id)
    assert [t.token for t in tokens] == [r.headers["x-auth"]]
    assert tokens[0].access == "auth"


async def test_register_token_works_immediately(client, seed):
    r = await client.post(
        "/users", json={"email": "fresh@example.com", "password": "secret1"}
    )
    me = await client.get("/users/me", headers={"x-auth": r.headers["x-auth"]})
    assert me.status_code == 200
    assert me.json()["email"] == "fresh@example.com"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "and", "password": "123"},
        {"email": "and", "password": "long-enough"},
        {"email": "ok@example.com", "password": "123"},
        {"email": "ok@example.com"},
        {"password": "long-enough"},
        {},
    ],
)
async def test_register_invalid(client, db_session, seed, body):
    r = await client.post("/users", json=body)
    assert r.status_code == 400
    assert "x-auth" not in r.headers

    result = await db_session.execute(select(User))
    assert len(result.scalars().all()) == 2


async def test_register_duplicate_email(client, seed):
    r = await client.post(
        "/users", json={"email": seed["users"][0]["email"], "password": "mypass"}
    )
    assert r.status_code == 400
    assert "x-auth" not in r.headers


# ═══════════════════════════════════════════════════════════
# POST /users/login
# ═══════════════════════════════════════════════════════════


async def test_login(client, db_session, seed):
    user = seed["users"][1]
    r = await client.post(
        "/users/login", json={"email": user["email"], "password": user["password"]}
    )
    assert r.status_code == 200
    assert r.headers["x-auth"]
    assert r.json()["id"] == str(user["id"])

    tokens = await _tokens_for(db_session, user["id"])
    assert len(tokens) == 2
    assert tokens[0].token == user["token"]
    assert tokens[1].access == "auth"
    assert tokens[1].token == r.headers["x-auth"]


async def test_login_sessions_are_additive(client, seed):
    user = seed["users"][1]
    r = await client.post(
        "/users/login", json={"email": user["email"], "password": user["password"]}
    )
    new_token = r.headers["x-auth"]
    assert new_token != user["token"]

    for token in (user["token"], new_token):
        me = await client.get("/users/me", headers={"x-auth": token})
        assert me.status_code == 200


async def test_login_wrong_password(client, db_session, seed):
    user = seed["users"][1]
    r = await client.post(
        "/users/login",
        json={"email": user["email"], "password": user["password"] + "kdsfj"},
    )
    assert r.status_code == 400
    assert "x-auth" not in r.headers

    tokens = await _tokens_for(db_session, user["id"])
    assert len(tokens) == 1


async def test_login_unknown_email(client, seed):
    r = await client.post(
        "/users/login", json={"email": "nobody@example.com", "password": "whatever"}
    )
    assert r.status_code == 400


async def test_login_missing_fields(client, seed):
    r = await client.post("/users/login", json={"email": seed["users"][0]["email"]})
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# DELETE /users/me/token
# ═══════════════════════════════════════════════════════════


async def test_logout(client, db_session, seed):
    user = seed["users"][0]
    r = await client.delete("/users/me/token", headers=user["headers"])
    assert r.status_code == 200
    assert r.content == b""

    assert await _tokens_for(db_session, user["id"]) == []

    r = await client.get("/users/me", headers=user["headers"])
    assert r.status_code == 401


async def test_logout_only_revokes_presented_token(client, db_session, seed):
    user = seed["users"][0]
    r = await client.post(
        "/users/login", json={"email": user["email"], "password": user["password"]}
    )
    second = r.headers["x-auth"]

    r = await client.delete("/users/me/token", headers=user["headers"])
    assert r.status_code == 200

    tokens = await _tokens_for(db_session, user["id"])
    assert [t.token for t in tokens] == [second]

    assert (await client.get("/users/me", headers=user["headers"])).status_code == 401
    assert (await client.get("/users/me", headers={"x-auth": second})).status_code == 200


async def test_logout_requires_auth(client, seed):
    r = await client.delete("/users/me/token")
    assert r.status_code == 401


async def test_revoked_token_cannot_reach_todos(client, seed):
    user = seed["users"][0]
    await client.delete("/users/me/token", headers=user["headers"])

    r = await client.get("/todos", headers=user["headers"])
    assert r.status_code == 401
