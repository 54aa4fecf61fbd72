from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from fastapi.testclient import TestClient

from lms.services import token_service
from tests.conftest import auth


def _public_pem(private_key) -> str:
    return (
        private_key.public_key()
        .public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )


def _directory_token(private_key, **overrides) -> str:
    """A token as the corporate identity provider would sign it."""
    now = datetime.now(UTC)
    payload = {
        "sub": "jdoe",
        "iss": token_service.ISSUER,
        "aud": token_service.AUDIENCE,
        "exp": now + timedelta(minutes=5),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": ["employee"],
        "name": "Jane Doe",
        "department": "Finance",
    }
    payload.update(overrides)
    return jwt.encode(payload, private_key, algorithm="ES256")


@pytest.fixture
def directory_key(monkeypatch: pytest.MonkeyPatch) -> ec.EllipticCurvePrivateKey:
    """Verify tokens against an external public key, as in production."""
    key = ec.generate_private_key(ec.SECP256R1())
    private, public = token_service._init_keys(_public_pem(key))
    monkeypatch.setattr(token_service, "_private_key", private)
    monkeypatch.setattr(token_service, "_public_key", public)
    return key


# ---- key loading ----


def test_init_keys_without_pem_generates_signing_pair() -> None:
    private, public = token_service._init_keys(None)
    assert private is not None
    assert public.public_numbers() == private.public_key().public_numbers()


def test_init_keys_with_pem_is_verify_only() -> None:
    key = ec.generate_private_key(ec.SECP256R1())
    private, public = token_service._init_keys(_public_pem(key))
    assert private is None
    assert public.public_numbers() == key.public_key().public_numbers()


def test_load_public_key_rejects_non_ec_keys() -> None:
    rsa_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(ValueError, match="P-256 EC key"):
        token_service.load_public_key(_public_pem(rsa_key))


def test_load_public_key_rejects_wrong_curve() -> None:
    with pytest.raises(ValueError, match="P-256 EC key"):
        token_service.load_public_key(_public_pem(ec.generate_private_key(ec.SECP384R1())))


def test_load_public_key_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="not a valid PEM"):
        token_service.load_public_key("not a key")


# ---- verification against an external key ----


def test_directory_token_verifies(directory_key: ec.EllipticCurvePrivateKey) -> None:
    claims = token_service.decode_access_token(_directory_token(directory_key))
    assert claims["sub"] == "jdoe"
    assert claims["department"] == "Finance"


def test_token_from_another_key_is_rejected(
    directory_key: ec.EllipticCurvePrivateKey,
) -> None:
    stranger = ec.generate_private_key(ec.SECP256R1())
    with pytest.raises(jwt.InvalidTokenError):
        token_service.decode_access_token(_directory_token(stranger))


def test_wrong_audience_is_rejected(directory_key: ec.EllipticCurvePrivateKey) -> None:
    with pytest.raises(jwt.InvalidTokenError):
        token_service.decode_access_token(
            _directory_token(directory_key, aud="some-other-app")
        )


def test_minting_disabled_with_external_key(
    directory_key: ec.EllipticCurvePrivateKey,
) -> None:
    assert token_service.can_mint() is False
    with pytest.raises(RuntimeError, match="signing is disabled"):
        token_service.create_access_token(sub="anyone")


def test_api_accepts_directory_tokens(
    client: TestClient, directory_key: ec.EllipticCurvePrivateKey
) -> None:
    resp = client.get("/v1/progress/me", headers=auth(_directory_token(directory_key)))
    assert resp.status_code == 200
    assert resp.json() == []
