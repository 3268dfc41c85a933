from __future__ import annotations

from datetime import datetime, timedelta, timezone

from vidhub.models.user import User
from vidhub.services import accounts, verification


def _register(client, **overrides):
    payload = {"name": "Ann", "email": "ann@example.com", "username": "ann", "password": "Abcdef1"}
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_normalizes_identifiers_and_stores_only_digests(anon_client, db_session, code_for):
    res = _register(anon_client, email=" Ann@Example.COM ", username="ANN")
    assert res.status_code == 201

    user = db_session.query(User).one()
    assert user.email == "ann@example.com"
    assert user.username == "ann"
    assert user.profile_image.startswith("https://ui-avatars.com/api/?name=Ann")

    code = code_for("ann@example.com")
    assert user.verification_code_hash
    assert user.verification_code_hash != code
    assert len(user.verification_code_hash) == 64
    assert user.verification_expires_at is not None


def test_register_rejects_taken_verified_email_and_username(anon_client, users):
    res = _register(anon_client, email="alice@example.com")
    assert res.status_code == 409
    assert res.json()["message"] == "Email already exists"

    res = _register(anon_client, username="alice")
    assert res.status_code == 409
    assert res.json()["message"] == "Username already exists"


def test_register_rejects_email_and_username_from_different_accounts(anon_client, users):
    res = _register(anon_client, email="alice@example.com", username="bob")
    assert res.status_code == 409
    assert res.json()["message"] == "Email and username belong to different accounts"


def test_register_takes_over_unverified_account(anon_client, db_session, make_user, code_for):
    stale = make_user(username="ann", email="old@example.com", verified=False)

    res = _register(anon_client, name="Ann Again", email="ann@example.com", username="ann")
    assert res.status_code == 201

    users = db_session.query(User).all()
    assert len(users) == 1
    db_session.refresh(stale)
    assert stale.email == "ann@example.com"
    assert stale.name == "Ann Again"

    code = code_for("ann@example.com")
    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": code})
    assert res.status_code == 200


def test_register_race_on_unique_index_is_a_conflict(anon_client, users, monkeypatch):
    # Both lookups miss, as if the other signup committed in between.
    monkeypatch.setattr(accounts, "find_by_email_or_username", lambda db, email, username: [])

    res = _register(anon_client, email="alice@example.com", username="fresh")
    assert res.status_code == 409
    assert res.json()["message"] == "Email already exists"

    res = _register(anon_client, email="fresh@example.com", username="alice")
    assert res.status_code == 409
    assert res.json()["message"] == "Username already exists"


def test_register_rejects_bad_username(anon_client):
    assert _register(anon_client, username="not ok!").status_code == 422


def test_re_registering_replaces_the_previous_code(anon_client, code_for, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(verification, "generate_code", lambda: next(codes))

    _register(anon_client)
    first = code_for("ann@example.com")
    _register(anon_client)
    assert code_for("ann@example.com") == "222222"

    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": first})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid verification code"


def test_verify_with_wrong_code(anon_client, code_for):
    _register(anon_client)
    code = code_for("ann@example.com")
    wrong = "000000" if code != "000000" else "111111"

    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": wrong})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid verification code"

    # A miss doesn't burn the code.
    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": code})
    assert res.status_code == 200

    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": code})
    assert res.status_code == 400
    assert res.json()["message"] == "User already verified"


def test_verify_with_expired_code(anon_client, db_session, code_for):
    _register(anon_client)
    code = code_for("ann@example.com")
    user = db_session.query(User).one()
    user.verification_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db_session.commit()

    # Even the right code fails once expired.
    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": code})
    assert res.status_code == 400
    assert res.json()["message"] == "Verification code expired. Please sign up again"


def test_verify_unknown_or_already_verified(anon_client, users):
    res = anon_client.post("/auth/verify-account", json={"email": "ghost@example.com", "code": "123456"})
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"

    res = anon_client.post("/auth/verify-account", json={"email": "alice@example.com", "code": "123456"})
    assert res.status_code == 400
    assert res.json()["message"] == "User already verified"


def test_verify_rejects_malformed_code(anon_client):
    res = anon_client.post("/auth/verify-account", json={"email": "ann@example.com", "code": "12ab56"})
    assert res.status_code == 422


def test_unverified_account_cannot_log_in(anon_client):
    _register(anon_client)
    res = anon_client.post("/auth/login", json={"identifier": "ann", "password": "Abcdef1"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid credentials"


def test_login_failures_look_the_same(anon_client, users):
    unknown = anon_client.post("/auth/login", json={"identifier": "nobody", "password": "Password1"})
    wrong = anon_client.post("/auth/login", json={"identifier": "alice", "password": "nope"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_check_username(anon_client, users, make_user):
    make_user(username="pending", email="pending@example.com", verified=False)

    res = anon_client.get("/auth/check-username", params={"username": "Alice"})
    assert res.json() == {"username": "alice", "available": False}

    # Unverified holders don't block a name.
    res = anon_client.get("/auth/check-username", params={"username": "pending"})
    assert res.json()["available"] is True

    res = anon_client.get("/auth/check-username", params={"username": "fresh_name"})
    assert res.json()["available"] is True

    assert anon_client.get("/auth/check-username", params={"username": "bad name"}).status_code == 422


def test_forgot_password_for_unknown_or_unverified_email(anon_client, make_user, outbox):
    make_user(username="pending", email="pending@example.com", verified=False)

    for email in ("ghost@example.com", "pending@example.com"):
        res = anon_client.post("/auth/forgot-password", json={"email": email})
        assert res.status_code == 400
        assert res.json()["message"] == "User not found"
    assert outbox == []


def test_reset_with_wrong_or_expired_code(anon_client, db_session, users, code_for):
    user_a, _ = users
    anon_client.post("/auth/forgot-password", json={"email": "alice@example.com"})
    code = code_for("alice@example.com")
    wrong = "000000" if code != "000000" else "111111"

    res = anon_client.post(
        "/auth/reset-password",
        json={"email": "alice@example.com", "code": wrong, "new_password": "Newpass9"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid reset code"

    res = anon_client.post(
        "/auth/reset-password",
        json={"email": "alice@example.com", "code": code, "new_password": "Newpass9"},
    )
    assert res.status_code == 200

    anon_client.post("/auth/forgot-password", json={"email": "alice@example.com"})
    code = code_for("alice@example.com")
    db_session.refresh(user_a)
    user_a.reset_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db_session.commit()

    res = anon_client.post(
        "/auth/reset-password",
        json={"email": "alice@example.com", "code": code, "new_password": "Another9"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Reset code expired. Please try again"


def test_reset_for_unknown_email(anon_client):
    res = anon_client.post(
        "/auth/reset-password",
        json={"email": "ghost@example.com", "code": "123456", "new_password": "Newpass9"},
    )
    assert res.status_code == 404
