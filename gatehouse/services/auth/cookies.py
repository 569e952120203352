"""Session cookie descriptors derived from session records."""
from dataclasses import dataclass, replace
from typing import Optional

from starlette.responses import Response

from gatehouse.config import settings
from gatehouse.models.session import Session


@dataclass(frozen=True)
class CookieAttributes:
    path: str
    secure: bool
    http_only: bool = True
    same_site: str = "lax"
    max_age: Optional[int] = None


@dataclass(frozen=True)
class SessionCookie:
    """
    Name, value and attributes of a session cookie.

    Only ever written to a response as a Set-Cookie header, never persisted.
    """

    name: str
    value: str
    attributes: CookieAttributes

    def with_attributes(self, **changes) -> "SessionCookie":
        """Return a copy with some attributes overridden."""
        return replace(self, attributes=replace(self.attributes, **changes))

    def apply(self, response: Response) -> None:
        """Set this cookie on an outgoing response."""
        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=self.attributes.max_age,
            path=self.attributes.path,
            secure=self.attributes.secure,
            httponly=self.attributes.http_only,
            samesite=self.attributes.same_site,
        )


def _default_attributes(max_age: int) -> CookieAttributes:
    return CookieAttributes(
        path=settings.session_cookie_path,
        secure=settings.session_cookie_secure,
        max_age=max_age,
    )


def create_session_cookie(session: Session) -> SessionCookie:
    """Build the cookie that carries a session's id to the client."""
    return SessionCookie(
        name=settings.session_cookie_name,
        value=session.id,
        attributes=_default_attributes(settings.session_max_age),
    )


def create_blank_session_cookie() -> SessionCookie:
    """Build a cookie that makes the client drop its session cookie."""
    return SessionCookie(
        name=settings.session_cookie_name,
        value="",
        attributes=_default_attributes(0),
    )
