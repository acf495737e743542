from datetime import timedelta

import pytest
from jose import jwt

from auth import IdentityVerifier, bearer_token, create_id_token
from errors import AuthError

SECRET = "unit-secret"

def test_token_round_trip():
    token = create_id_token("user-42", SECRET)
    assert IdentityVerifier(SECRET).verify(token) == "user-42"

def test_wrong_secret_rejected():
    token = create_id_token("user-42", "other-secret")
    with pytest.raises(AuthError, match="Invalid"):
        IdentityVerifier(SECRET).verify(token)

def test_expired_token_rejected():
    token = create_id_token("user-42", SECRET, expires_in=timedelta(seconds=-30))
    with pytest.raises(AuthError, match="expired"):
        IdentityVerifier(SECRET).verify(token)

def test_token_without_subject_rejected():
    token = jwt.encode({"name": "nobody"}, SECRET, algorithm="HS256")
    with pytest.raises(AuthError):
        IdentityVerifier(SECRET).verify(token)

def test_garbage_token_rejected():
    with pytest.raises(AuthError):
        IdentityVerifier(SECRET).verify("not.a.jwt")

def test_bearer_token_parsing():
    assert bearer_token("Bearer abc.def") == "abc.def"
    for header in (None, "", "Basic abc", "Bearer ", "bearer abc"):
        with pytest.raises(AuthError, match="Missing"):
            bearer_token(header)

def test_verifier_needs_secret():
    with pytest.raises(ValueError):
        IdentityVerifier("")
