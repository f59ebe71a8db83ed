"""
Session credentials and the access control chain.

A session token is a signed JWT carrying the user's email. Guarded routes
declare ``Depends(authenticate)`` for identity only, or
``Depends(require_role("host"))`` for identity followed by a role check. The
role check always runs after authentication succeeds and never mutates state.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from fastapi import Depends, Header, Request, Response
from pydantic import BaseModel
from pymongo.database import Database

from config import settings
from database import get_db
from errors import Forbidden, NotFound, Unauthenticated
from schemas import Role
from users import UserStore

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    email: str
    role: Optional[Role] = None


# ------------------------
# Identity token service
# ------------------------
def issue_token(claims: Dict[str, Any], now: Optional[datetime] = None) -> str:
    if not claims.get("email"):
        raise Unauthenticated("Cannot issue a token without an email")
    now = now or datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(days=settings.token_lifetime_days),
    }
    return jwt.encode(
        payload,
        settings.access_token_secret.get_secret_value(),
        algorithm=settings.token_algorithm,
    )


def verify_token(token: Optional[str]) -> Dict[str, Any]:
    if not token:
        raise Unauthenticated()
    try:
        claims = jwt.decode(
            token,
            settings.access_token_secret.get_secret_value(),
            algorithms=[settings.token_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as e:
        logger.info("Rejected session token: %s", e)
        raise Unauthenticated()
    if not claims.get("email"):
        raise Unauthenticated()
    return claims


def set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.token_cookie_name,
        value=token,
        max_age=settings.token_lifetime_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
        path="/",
    )


def clear_token_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.token_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )


# ------------------------
# Access control chain
# ------------------------
def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    try:
        scheme, value = authorization.split(" ")
    except ValueError:
        raise Unauthenticated("Invalid Authorization header format")
    if scheme.lower() != "bearer":
        raise Unauthenticated("Invalid Authorization header format")
    return value


def authenticate(request: Request, authorization: Optional[str] = Header(None)) -> Identity:
    """
    Verify the session cookie, falling back to an ``Authorization: Bearer``
    header when the cookie is absent or no longer valid.
    """
    cookie = request.cookies.get(settings.token_cookie_name)
    if cookie:
        try:
            return Identity(email=verify_token(cookie)["email"])
        except Unauthenticated:
            if not authorization:
                raise
    claims = verify_token(_bearer_token(authorization))
    return Identity(email=claims["email"])


def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def require_role(required: Role) -> Callable[..., Identity]:
    def authorize(
        identity: Identity = Depends(authenticate),
        users: UserStore = Depends(get_user_store),
    ) -> Identity:
        try:
            role = users.resolve_role(identity.email)
        except NotFound:
            logger.warning("No user record for %s, %s access denied", identity.email, required)
            raise Forbidden()
        if role != required:
            logger.warning("%s has role %s, %s required", identity.email, role, required)
            raise Forbidden()
        return Identity(email=identity.email, role=role)

    authorize.__name__ = f"require_{required}"
    return authorize
