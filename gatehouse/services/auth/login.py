"""
Username/password login: verify credentials, then issue a session.

A login attempt ends in exactly one of two results. ``LoginFailure`` is
returned for every credential problem with the same status and message, so
callers cannot tell an unknown username from a wrong password.
``LoginSuccess`` carries the new session and the cookie to send back.
Database errors are not caught here.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Request
from sqlalchemy.orm import Session as DBSession

from gatehouse.models.session import Session
from gatehouse.services.auth import get_auth_provider
from gatehouse.services.auth.base import AuthProvider
from gatehouse.services.auth.cookies import (
    SessionCookie,
    create_blank_session_cookie,
    create_session_cookie,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Incorrect username or password"


def session_cookie(session: Session) -> SessionCookie:
    """
    Cookie for a session, always scoped to path "." and marked secure.

    Browsers resolve "." to the directory of the request URL. Every route that
    can set this cookie lives directly under "/", so the login, refresh and
    blank cookies all land on the same path.
    """
    return create_session_cookie(session).with_attributes(path=".", secure=True)


def blank_session_cookie() -> SessionCookie:
    """Cookie that clears the one set by ``session_cookie``."""
    return create_blank_session_cookie().with_attributes(path=".", secure=True)


@dataclass(frozen=True)
class LoginFailure:
    status_code: int = 400
    message: str = INVALID_CREDENTIALS_MESSAGE


@dataclass(frozen=True)
class LoginSuccess:
    session: Session
    cookie: SessionCookie
    status_code: int = 302
    redirect_to: str = "/"


LoginResult = Union[LoginSuccess, LoginFailure]


async def login(
    db: DBSession,
    username: str,
    password: str,
    request: Optional[Request] = None,
    provider: Optional[AuthProvider] = None,
) -> LoginResult:
    """Run one login attempt."""
    auth_provider = provider or get_auth_provider()

    user = await auth_provider.verify_credentials(db, username, password)
    if not user:
        return LoginFailure()

    session = await auth_provider.create_session(db, user, request)
    cookie = session_cookie(session)

    logger.info(
        "Creating session cookie: name=%s path=%s secure=%s",
        cookie.name,
        cookie.attributes.path,
        cookie.attributes.secure,
    )

    return LoginSuccess(session=session, cookie=cookie)
