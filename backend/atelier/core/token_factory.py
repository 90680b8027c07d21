"""HS256 access tokens for the admin API.

Two pure functions: ``create_token`` signs a claim set, ``decode_token``
verifies one and returns a TokenPayload or None. The subject claim is the
acting user's id; the role claim is checked by ``require_admin``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "atelier"
ALGORITHM = "HS256"

_HEADER = {"alg": ALGORITHM, "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    role: str
    exp: datetime


class _Rejected(Exception):
    """Internal signal: the token failed one of the checks."""


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = ALGORITHM,
    expires_hours: int = 12,
) -> str:
    """Sign a token for *subject* with *role*, valid for *expires_hours*."""
    if algorithm != ALGORITHM:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    claims = {
        "iss": ISSUER,
        "sub": subject,
        "role": role,
        "iat": issued,
        "exp": issued + expires_hours * 3600,
    }
    head = _encode_segment(_HEADER)
    body = _encode_segment(claims)
    return f"{head}.{body}.{_sign(secret, head, body)}"


def decode_token(token: str, secret: str, algorithm: str = ALGORITHM) -> Optional[TokenPayload]:
    """Verify *token* and return its payload, or None if anything is off.

    Checked in order: shape, signature, issuer, expiry.
    """
    if algorithm != ALGORITHM:
        return None
    try:
        return _verify(token, secret)
    except (_Rejected, ValueError, TypeError, AttributeError):
        return None


def _verify(token: str, secret: str) -> TokenPayload:
    head, body, signature = _split(token)
    if not hmac.compare_digest(_sign(secret, head, body), signature):
        raise _Rejected("signature")

    claims = json.loads(_b64decode(body))
    if claims.get("iss") != ISSUER:
        raise _Rejected("issuer")
    expires = claims.get("exp", 0)
    if time.time() > expires:
        raise _Rejected("expired")

    return TokenPayload(
        sub=str(claims.get("sub", "")),
        role=str(claims.get("role", "")),
        exp=datetime.fromtimestamp(expires, tz=timezone.utc),
    )


def _split(token: str) -> tuple[str, str, str]:
    parts = (token or "").split(".")
    if len(parts) != 3 or not all(parts):
        raise _Rejected("malformed")
    return parts[0], parts[1], parts[2]


def _sign(secret: str, head: str, body: str) -> str:
    digest = hmac.new(secret.encode(), f"{head}.{body}".encode(), hashlib.sha256).digest()
    return _b64encode(digest)


def _encode_segment(data: dict) -> str:
    return _b64encode(json.dumps(data, separators=(",", ":")).encode())


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
