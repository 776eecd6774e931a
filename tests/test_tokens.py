"""Token issuer tests — signing, uniqueness, and rejection paths."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from trailsync.auth.jwt import InvalidToken, TokenIssuer
from trailsync.config import Settings


@pytest.fixture()
def issuer():
    return TokenIssuer(Settings(jwt_secret="unit-secret"))


def test_pair_carries_user_id(issuer):
    user_id = uuid.uuid4()
    pair = issuer.issue_token_pair(user_id)
    assert issuer.verify(pair.token).user_id == str(user_id)
    assert issuer.verify(pair.refresh_token).user_id == str(user_id)


def test_tokens_are_unique_even_within_one_second(issuer):
    user_id = uuid.uuid4()
    a = issuer.issue_token_pair(user_id)
    b = issuer.issue_token_pair(user_id)
    assert len({a.token, a.refresh_token, b.token, b.refresh_token}) == 4


def test_lifetimes_follow_settings():
    issuer = TokenIssuer(
        Settings(
            jwt_secret="unit-secret",
            access_token_expire_seconds=60,
            refresh_token_expire_seconds=600,
        )
    )
    pair = issuer.issue_token_pair("someone")
    access = jwt.decode(pair.token, "unit-secret", algorithms=["HS256"])
    refresh = jwt.decode(pair.refresh_token, "unit-secret", algorithms=["HS256"])
    assert access["exp"] - access["iat"] == 60
    assert refresh["exp"] - refresh["iat"] == 600


def test_expired_token_rejected():
    issuer = TokenIssuer(
        Settings(jwt_secret="unit-secret", access_token_expire_seconds=-5)
    )
    pair = issuer.issue_token_pair("someone")
    with pytest.raises(InvalidToken, match="expired"):
        issuer.verify(pair.token)


def test_wrong_secret_rejected(issuer):
    other = TokenIssuer(Settings(jwt_secret="other-secret"))
    with pytest.raises(InvalidToken):
        issuer.verify(other.issue_token_pair("someone").token)


def test_tampered_token_rejected(issuer):
    token = issuer.issue_token_pair("someone").token
    head, body, sig = token.split(".")
    with pytest.raises(InvalidToken):
        issuer.verify(f"{head}.{body}.{sig[::-1]}")


def test_token_without_subject_rejected(issuer):
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "unit-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        issuer.verify(token)


def test_garbage_rejected(issuer):
    with pytest.raises(InvalidToken):
        issuer.verify("definitely-not-a-jwt")
