"""
Caller authentication.

Tokens are issued elsewhere (the credential service); this module only
verifies them. A token is accepted from, in order:
  - Authorization: Bearer <jwt>
  - Authorization: <jwt>            (bare token, older clients)
  - the `candidate_jwt` cookie      (server-rendered pages)

Claims: sub = username, cid = structured candidate id, adm = admin flag.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Cookie, Depends, Header, HTTPException

from config import settings
from domain.errors import PermissionDeniedError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""
    username: str
    candidate_id: str | None = None
    is_admin: bool = False


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization:
        parts = authorization.strip().split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1].strip()
        else:
            token = authorization.strip()
        if token:
            return token
    return cookie_token or None


def decode_access_token(token: str) -> dict:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, username: str, candidate_id: str | None = None, is_admin: bool = False) -> str:
    """Mint a token the way the credential service does (tests and operator tooling)."""
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": username,
        "adm": bool(is_admin),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if candidate_id:
        payload["cid"] = str(candidate_id)
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def principal_from_claims(payload: dict) -> Principal:
    username = str(payload.get("sub") or "").strip()
    cid = payload.get("cid")
    if not username and not cid:
        raise UnauthorizedError("Access token has no subject.")
    return Principal(
        username=username,
        candidate_id=str(cid) if cid else None,
        is_admin=bool(payload.get("adm", False)),
    )


async def require_principal(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    candidate_jwt: Optional[str] = Cookie(None, alias=settings.auth_cookie_name),
) -> Principal:
    """FastAPI dependency: the authenticated caller, or 401."""
    token = _extract_token(authorization, candidate_jwt)
    if not token:
        raise UnauthorizedError()
    return principal_from_claims(decode_access_token(token))


async def require_admin(principal: Principal = Depends(require_principal)) -> Principal:
    """FastAPI dependency: the caller must carry the admin claim."""
    if not principal.is_admin:
        logger.warning(f"Admin endpoint refused for {principal.username or principal.candidate_id}")
        raise PermissionDeniedError("Forbidden")
    return principal
