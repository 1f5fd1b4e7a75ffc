"""JWT access-token verification.

Tokens are issued by the identity provider; :func:`create_access_token` exists
for scripts and tests that need to act as a given user.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from maxed_homes.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived access token.

    Args:
        data: Payload data. Must include ``sub`` (user UUID as string).
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def auth_header_for(user_id: str) -> dict[str, str]:
    """``Authorization`` header carrying a fresh access token for ``user_id``."""
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}
