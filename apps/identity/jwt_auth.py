"""
JWT helpers for Showcase.

Access tokens carry the user's id, username and role; refresh tokens carry
only the id. Both are HS256-signed with ``settings.JWT_SECRET`` and issued
by ``showcase-api``. Browsers receive them as httpOnly cookies as well as in
the login response body.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

import jwt
from django.conf import settings

JWT_ALGORITHM = 'HS256'
JWT_ISSUER = 'showcase-api'

ACCESS = 'access'
REFRESH = 'refresh'

ACCESS_TOKEN_COOKIE = 'access_token'
REFRESH_TOKEN_COOKIE = 'refresh_token'


def _secret() -> str:
    return getattr(settings, 'JWT_SECRET', settings.SECRET_KEY)


def token_lifetime(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(days=getattr(settings, 'JWT_REFRESH_TOKEN_EXPIRE_DAYS', 7))
    return timedelta(minutes=getattr(settings, 'JWT_ACCESS_TOKEN_EXPIRE_MINUTES', 60))


def _encode(user_id: UUID, token_type: str, **claims) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        **claims,
        'sub': str(user_id),
        'type': token_type,
        'iss': JWT_ISSUER,
        'iat': issued_at,
        'exp': issued_at + token_lifetime(token_type),
    }
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def create_access_token(user_id: UUID, username: str, role: str) -> str:
    return _encode(user_id, ACCESS, username=username, role=role)


def create_refresh_token(user_id: UUID) -> str:
    return _encode(user_id, REFRESH)


def create_token_pair(user_id: UUID, username: str, role: str) -> Tuple[str, str]:
    """Returns (access_token, refresh_token)."""
    return create_access_token(user_id, username, role), create_refresh_token(user_id)


def decode_token(token: str) -> Optional[dict]:
    """Verified payload, or None for expired, tampered or foreign tokens."""
    try:
        return jwt.decode(token, _secret(), algorithms=[JWT_ALGORITHM], issuer=JWT_ISSUER)
    except jwt.InvalidTokenError:
        return None


def get_user_id_from_token(token: str, token_type: str = ACCESS) -> Optional[UUID]:
    payload = decode_token(token)
    if not payload or payload.get('type') != token_type:
        return None
    try:
        return UUID(payload['sub'])
    except (KeyError, ValueError):
        return None


def token_cookie_settings(token_type: str, secure: bool = False) -> dict:
    """``set_cookie`` kwargs; the cookie lives as long as the token."""
    return {
        'max_age': int(token_lifetime(token_type).total_seconds()),
        'httponly': True,
        'secure': secure,
        'samesite': 'Lax',
        'path': '/',
    }
