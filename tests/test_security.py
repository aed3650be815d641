from datetime import timedelta

import pytest
from jose import jwt

from french_notes.application.errors import TokenExpired, TokenMalformed, TokenSignatureInvalid
from french_notes.config import Settings
from french_notes.infrastructure.security import PasswordHasher, TokenIssuer, build_context


@pytest.fixture
def issuer():
    return TokenIssuer(Settings(SECRET_KEY="unit-secret"))


def test_access_token_carries_identity_and_role(issuer):
    claims = issuer.verify(issuer.issue_access_token("7", "admin"))
    assert claims["sub"] == "7"
    assert claims["role"] == "admin"
    assert claims["typ"] == "access"
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


def test_reset_token_is_short_lived_and_has_no_role(issuer):
    claims = issuer.verify(issuer.issue_reset_token("7"), expected_type="reset")
    assert claims["sub"] == "7"
    assert "role" not in claims
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_expired_reset_token_rejected(issuer):
    token = issuer.issue("7", None, timedelta(minutes=-1), token_type="reset")
    with pytest.raises(TokenExpired):
        issuer.verify(token, expected_type="reset")


def test_foreign_signature_rejected(issuer):
    other = TokenIssuer(Settings(SECRET_KEY="someone-else"))
    with pytest.raises(TokenSignatureInvalid):
        issuer.verify(other.issue_access_token("7", "admin"))


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage_token_is_malformed(issuer, token):
    with pytest.raises(TokenMalformed):
        issuer.verify(token)


def test_token_types_do_not_cross(issuer):
    with pytest.raises(TokenMalformed):
        issuer.verify(issuer.issue_reset_token("7"))
    with pytest.raises(TokenMalformed):
        issuer.verify(issuer.issue_access_token("7", "student"), expected_type="reset")


def test_access_token_without_role_is_malformed(issuer):
    token = jwt.encode({"sub": "7", "typ": "access"}, "unit-secret", algorithm="HS256")
    with pytest.raises(TokenMalformed):
        issuer.verify(token)


def test_password_hasher_roundtrip():
    hasher = PasswordHasher(build_context(4))
    hashed = hasher.hash("s3cret!")
    assert hashed != "s3cret!"
    assert hasher.verify("s3cret!", hashed)
    assert not hasher.verify("wrong", hashed)
