from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from money_tracker.core.security import (
    Identity,
    InvalidToken,
    TokenService,
    get_password_hash,
    verify_password,
)

SECRET = "unit-test-secret"


@pytest.fixture
def token_service():
    return TokenService(SECRET, expire_minutes=60)


def test_issue_then_verify_returns_identity(token_service):
    identity = Identity(user_id=7, email="a@x.com")
    token = token_service.issue(identity)

    assert token_service.verify(token) == identity


def test_token_carries_expiry_one_window_after_issue(token_service):
    token = token_service.issue(Identity(user_id=1, email="a@x.com"))
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "1"
    assert claims["email"] == "a@x.com"
    assert claims["exp"] - claims["iat"] == 3600


def test_expired_token_is_rejected(token_service):
    token = token_service.issue(Identity(user_id=1, email="a@x.com"), expires_delta=timedelta(minutes=-5))

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_at_exact_expiry_is_rejected(token_service):
    token = token_service.issue(Identity(user_id=1, email="a@x.com"), expires_delta=timedelta(0))

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_signed_with_other_secret_is_rejected(token_service):
    token = TokenService("another-secret").issue(Identity(user_id=1, email="a@x.com"))

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_spliced_payload_is_rejected(token_service):
    token_a = token_service.issue(Identity(user_id=1, email="a@x.com"))
    token_b = token_service.issue(Identity(user_id=2, email="b@x.com"))
    header, _, signature = token_a.split(".")
    forged = ".".join([header, token_b.split(".")[1], signature])

    with pytest.raises(InvalidToken):
        token_service.verify(forged)


@pytest.mark.parametrize("token", ["", "garbage", "not.a.token"])
def test_malformed_token_is_rejected(token_service, token):
    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_without_email_claim_is_rejected(token_service):
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "1", "exp": exp}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_with_non_numeric_subject_is_rejected(token_service):
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "abc", "email": "a@x.com", "exp": exp}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_without_expiry_is_rejected(token_service):
    token = jwt.encode({"sub": "1", "email": "a@x.com"}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_token_service_requires_secret():
    with pytest.raises(ValueError):
        TokenService("")


def test_password_hash_is_salted_and_verifiable():
    first = get_password_hash("hunter2")
    second = get_password_hash("hunter2")

    assert first != "hunter2"
    assert first != second
    assert verify_password("hunter2", first)
    assert not verify_password("hunter3", first)
