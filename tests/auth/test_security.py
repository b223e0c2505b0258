"""
Tests for password hashing and session token issuance/verification.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from clinic.auth.exceptions import (
    HashingFailureException,
    InvalidSignatureException,
    InvalidTokenException,
    MalformedTokenException,
    TokenExpiredException,
)
from clinic.auth.models import UserRole
from clinic.core.security import (
    DEFAULT_TOKEN_TTL,
    MAX_PASSWORD_BYTES,
    create_access_token,
    dummy_password_hash,
    hash_password,
    verify_access_token,
    verify_password,
)

SECRET = "unit-test-signing-key"


def test_hash_is_salted_and_verifies():
    first = hash_password("pw123456", rounds=4)
    second = hash_password("pw123456", rounds=4)
    assert first != second
    assert "pw123456" not in first
    assert verify_password("pw123456", first)
    assert verify_password("pw123456", second)


def test_wrong_password_does_not_verify():
    hashed = hash_password("pw123456", rounds=4)
    assert not verify_password("pw1234567", hashed)


def test_input_longer_than_byte_limit_never_verifies():
    password = "a" * MAX_PASSWORD_BYTES
    hashed = hash_password(password, rounds=4)
    assert verify_password(password, hashed)
    assert not verify_password(password + "a", hashed)


def test_hash_refuses_password_over_byte_limit():
    with pytest.raises(HashingFailureException):
        hash_password("\u00e9" * 37, rounds=4)


@pytest.mark.parametrize("rounds, prefix", [(4, "$2b$04$"), (6, "$2b$06$")])
def test_dummy_hash_uses_requested_cost(rounds, prefix):
    assert dummy_password_hash(rounds).startswith(prefix)


def test_work_factor_is_encoded_in_hash():
    assert hash_password("secret", rounds=5).startswith("$2b$05$")
    assert hash_password("secret").startswith("$2b$10$")


def test_malformed_hash_raises_hashing_failure():
    with pytest.raises(HashingFailureException):
        verify_password("pw123456", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = create_access_token("account-1", UserRole.DOCTOR, SECRET)
    payload = verify_access_token(token, SECRET)
    assert payload.account_id == "account-1"
    assert payload.role is UserRole.DOCTOR


def test_token_defaults_to_seven_day_lifetime():
    issued = datetime.now(timezone.utc).replace(microsecond=0)
    token = create_access_token("account-1", "patient", SECRET, now=issued)
    payload = verify_access_token(token, SECRET)
    assert payload.expires_at == issued + DEFAULT_TOKEN_TTL


def test_expired_token():
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = create_access_token("account-1", UserRole.PATIENT, SECRET, now=issued)
    with pytest.raises(TokenExpiredException):
        verify_access_token(token, SECRET)


def test_wrong_key_is_bad_signature():
    token = create_access_token("account-1", UserRole.PATIENT, SECRET)
    with pytest.raises(InvalidSignatureException):
        verify_access_token(token, "some-other-key")


def test_expired_token_with_wrong_key_is_bad_signature():
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = create_access_token("account-1", UserRole.PATIENT, SECRET, now=issued)
    with pytest.raises(InvalidSignatureException):
        verify_access_token(token, "some-other-key")


@pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c", "...."])
def test_garbage_is_malformed(token):
    with pytest.raises(MalformedTokenException):
        verify_access_token(token, SECRET)


def test_tampering_any_interior_character_never_verifies():
    token = create_access_token("account-1", UserRole.PATIENT, SECRET)
    segments = token.split(".")
    for index, segment in enumerate(segments):
        # The final character of a segment may only carry padding bits
        for position in range(len(segment) - 1):
            original = segment[position]
            replacement = "A" if original != "A" else "B"
            tampered_segment = segment[:position] + replacement + segment[position + 1:]
            tampered = ".".join(segments[:index] + [tampered_segment] + segments[index + 1:])
            with pytest.raises((InvalidSignatureException, MalformedTokenException)):
                verify_access_token(tampered, SECRET)


def test_token_without_role_is_malformed():
    token = jwt.encode(
        {"sub": "account-1", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(MalformedTokenException):
        verify_access_token(token, SECRET)


def test_token_with_unknown_role_is_malformed():
    token = jwt.encode(
        {"sub": "account-1", "role": "janitor", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(MalformedTokenException):
        verify_access_token(token, SECRET)


def test_token_without_expiry_is_malformed():
    token = jwt.encode({"sub": "account-1", "role": "patient"}, SECRET, algorithm="HS256")
    with pytest.raises(MalformedTokenException):
        verify_access_token(token, SECRET)


def test_token_errors_share_a_base_class():
    for exc in (TokenExpiredException(), InvalidSignatureException(), MalformedTokenException()):
        assert isinstance(exc, InvalidTokenException)
        assert exc.status_code == 401
    reasons = {TokenExpiredException.reason, InvalidSignatureException.reason, MalformedTokenException.reason}
    assert len(reasons) == 3
