import re
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from pulse.data.models import UserModel
from pulse.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from pulse.services.auth_service import RESET_REQUESTED_MESSAGE, AuthService
from pulse.utils.security import create_reset_token, decode_token
from pulse.utils.settings import JWT_SECRET


@pytest.fixture
def auth(db):
    return AuthService(db)


def _register(auth, email="sam@example.com", password="password1", name="Sam"):
    return auth.register(email, password, name)


def test_register_rejects_seven_character_password(auth):
    with pytest.raises(ValidationError, match="at least 8"):
        auth.register("sam@example.com", "1234567", "Sam")


def test_register_with_eight_characters_returns_token(auth):
    result = auth.register("Sam@Example.com", "12345678", "Sam")

    claims = decode_token(result["token"])
    assert claims["user_id"] == result["user"].id
    assert claims["email"] == "sam@example.com"
    assert claims["name"] == "Sam"
    assert result["user"].password_hash != "12345678"
    #seven days
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


@pytest.mark.parametrize(
    "email,password,name",
    [
        (None, "password1", "Sam"),
        ("sam@example.com", None, "Sam"),
        ("sam@example.com", "password1", ""),
        ("not-an-email", "password1", "Sam"),
        ("sam@example", "password1", "Sam"),
        ("sam @example.com", "password1", "Sam"),
    ],
)
def test_register_validation(auth, email, password, name):
    with pytest.raises(ValidationError):
        auth.register(email, password, name)


def test_register_duplicate_email_is_conflict(auth):
    _register(auth)

    with pytest.raises(ConflictError):
        _register(auth, email="SAM@example.com")


def test_login_success_updates_last_login(auth):
    user = _register(auth)["user"]
    assert user.last_login is None

    result = auth.login("sam@example.com", "password1")

    assert result["user"].id == user.id
    assert result["user"].last_login is not None
    assert decode_token(result["token"])["user_id"] == user.id


def test_login_failures_all_look_the_same(auth, db):
    _register(auth)
    auth.login_with_federated_id("apple-001", email="fed@example.com")

    for email, password in [
        ("sam@example.com", "wrong-password"),
        ("nobody@example.com", "password1"),
        ("fed@example.com", "anything-at-all"),
    ]:
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            auth.login(email, password)


def test_passwords_longer_than_bcrypt_accepts_are_rejected(auth):
    user = _register(auth)["user"]
    reset_token = create_reset_token(user.id, user.email)

    with pytest.raises(ValidationError, match="at most 72 bytes"):
        auth.register("long@example.com", "x" * 80, "Long")
    #multibyte characters count by their encoded size
    with pytest.raises(ValidationError, match="at most 72 bytes"):
        auth.register("long@example.com", "é" * 40, "Long")
    with pytest.raises(ValidationError, match="at most 72 bytes"):
        auth.reset_password(reset_token, "y" * 73)
    with pytest.raises(ValidationError, match="at most 72 bytes"):
        auth.change_password(user.id, "password1", "z" * 100)

    assert auth.register("edge@example.com", "a" * 72, "Edge")["token"]


def test_login_with_overlong_password_is_invalid_credentials(auth):
    user = _register(auth)["user"]

    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        auth.login("sam@example.com", "y" * 100)
    with pytest.raises(UnauthorizedError, match="Current password is incorrect"):
        auth.change_password(user.id, "y" * 100, "new-password")


def test_overlong_passwords_over_http(client):
    client.post(
        "/api/auth/register",
        json={"email": "sam@example.com", "password": "password1", "name": "Sam"},
    )

    register = client.post(
        "/api/auth/register",
        json={"email": "long@example.com", "password": "x" * 80, "name": "Long"},
    )
    login = client.post("/api/auth/login", json={"email": "sam@example.com", "password": "y" * 100})

    assert register.status_code == 400
    assert login.status_code == 401
    assert login.json()["error"] == "Invalid credentials"


def test_login_rejects_deactivated_account(auth):
    user = _register(auth)["user"]
    auth.deactivate_account(user.id)

    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        auth.login("sam@example.com", "password1")


def test_federated_login_creates_then_reuses_account(auth, db):
    first = auth.login_with_federated_id("apple-123")
    second = auth.login_with_federated_id("apple-123", name="Ignored")

    assert first["user"].id == second["user"].id
    assert first["user"].name == "Apple User"
    assert first["user"].password_hash is None
    assert decode_token(second["token"])["apple_id"] == "apple-123"
    assert db.query(UserModel).count() == 1


def test_federated_login_requires_provider_id(auth):
    with pytest.raises(ValidationError):
        auth.login_with_federated_id("")


def test_verify_token(auth):
    token = _register(auth)["token"]

    assert auth.verify_token(token)["email"] == "sam@example.com"

    with pytest.raises(UnauthorizedError):
        auth.verify_token(None)
    with pytest.raises(ForbiddenError):
        auth.verify_token("not.a.token")


def test_verify_token_rejects_expired_and_reset_tokens(auth):
    user = _register(auth)["user"]
    past = datetime.now(timezone.utc) - timedelta(days=1)
    expired = jwt.encode({"user_id": user.id, "exp": past}, JWT_SECRET, algorithm="HS256")

    with pytest.raises(ForbiddenError):
        auth.verify_token(expired)
    with pytest.raises(ForbiddenError):
        auth.verify_token(create_reset_token(user.id, user.email))


def test_password_reset_flow(auth, sent_emails):
    _register(auth)

    message = auth.request_password_reset("sam@example.com")

    assert message == RESET_REQUESTED_MESSAGE
    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "sam@example.com"
    token = re.search(r"reset-password\?token=([\w\-\.]+)", sent_emails[0]["html"]).group(1)

    auth.reset_password(token, "brand-new-pass")

    assert auth.login("sam@example.com", "brand-new-pass")["token"]
    with pytest.raises(UnauthorizedError):
        auth.login("sam@example.com", "password1")


def test_password_reset_for_unknown_email_says_the_same(auth, sent_emails):
    assert auth.request_password_reset("ghost@example.com") == RESET_REQUESTED_MESSAGE
    assert sent_emails == []

    with pytest.raises(ValidationError):
        auth.request_password_reset("ghost")


def test_reset_password_rejects_bad_tokens(auth):
    result = _register(auth)
    user = result["user"]
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    expired = jwt.encode(
        {"user_id": user.id, "purpose": "password_reset", "exp": past},
        JWT_SECRET,
        algorithm="HS256",
    )

    with pytest.raises(ValidationError, match="at least 8"):
        auth.reset_password(create_reset_token(user.id, user.email), "short")
    with pytest.raises(ValidationError, match="Invalid token"):
        auth.reset_password(result["token"], "long-enough-pass")
    with pytest.raises(ValidationError, match="expired"):
        auth.reset_password(expired, "long-enough-pass")
    with pytest.raises(ValidationError, match="Invalid token"):
        auth.reset_password("garbage", "long-enough-pass")


def test_change_password(auth):
    user = _register(auth)["user"]

    with pytest.raises(ValidationError):
        auth.change_password(user.id, "password1", "short")
    with pytest.raises(UnauthorizedError):
        auth.change_password(user.id, "wrong-password", "new-password")

    auth.change_password(user.id, "password1", "new-password")
    assert auth.login("sam@example.com", "new-password")["user"].id == user.id


def test_profile_update(auth):
    user = _register(auth)["user"]
    other = _register(auth, email="alex@example.com", name="Alex")["user"]

    updated = auth.update_profile(user.id, name="Samantha", email="samantha@example.com")
    assert (updated.name, updated.email) == ("Samantha", "samantha@example.com")

    with pytest.raises(ValidationError):
        auth.update_profile(user.id)
    with pytest.raises(ValidationError):
        auth.update_profile(user.id, email="broken")
    with pytest.raises(ConflictError):
        auth.update_profile(user.id, email=other.email)
    with pytest.raises(NotFoundError):
        auth.get_profile(999)


def test_deactivated_account_has_no_profile(auth):
    user = _register(auth)["user"]

    auth.deactivate_account(user.id)

    with pytest.raises(NotFoundError):
        auth.get_profile(user.id)
