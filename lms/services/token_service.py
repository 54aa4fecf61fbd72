"""JWT access token creation and validation (ES256).

Identity is owned by the corporate directory; this service only verifies
bearer tokens, against the directory's public key (JWT_PUBLIC_KEY).
Without a configured key an ephemeral pair is generated on import so
that tests and the dev-only token endpoint can mint tokens.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from lms.core.config import SETTINGS

ALGORITHM = "ES256"
ISSUER = SETTINGS.jwt_issuer
AUDIENCE = SETTINGS.jwt_audience
ACCESS_TOKEN_TTL_MIN = 60


def load_public_key(pem: str) -> ec.EllipticCurvePublicKey:
    """Parse a PEM public key, accepting only P-256 EC keys."""
    try:
        key = serialization.load_pem_public_key(pem.encode("utf-8"))
    except ValueError:
        raise ValueError("JWT public key is not a valid PEM public key") from None
    if not isinstance(key, ec.EllipticCurvePublicKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise ValueError("JWT public key must be a P-256 EC key for ES256")
    return key


def _init_keys(
    public_pem: str | None,
) -> tuple[ec.EllipticCurvePrivateKey | None, ec.EllipticCurvePublicKey]:
    if public_pem:
        return None, load_public_key(public_pem)
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


_private_key, _public_key = _init_keys(SETTINGS.jwt_public_key)


def can_mint() -> bool:
    """True when this process holds a signing key (no JWT_PUBLIC_KEY set)."""
    return _private_key is not None


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    name: str = "",
    department: str | None = None,
    ttl_minutes: int = ACCESS_TOKEN_TTL_MIN,
) -> str:
    """Build and sign a JWT access token.

    Claims: sub, iss, aud, exp, iat, jti, roles, name, department.

    Raises RuntimeError when tokens are verified against an external key.
    """
    if _private_key is None:
        raise RuntimeError("token signing is disabled when JWT_PUBLIC_KEY is configured")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["employee"],
        "name": name,
        "department": department,
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256 and validates exp, iss and aud.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
