"""FastAPI dependencies for authentication."""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from gatehouse.config import settings
from gatehouse.database import get_db
from gatehouse.models.user import User
from gatehouse.services.auth import get_auth_provider
from gatehouse.services.auth.login import blank_session_cookie, session_cookie


async def get_optional_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get the current user if authenticated, None otherwise.

    Cookie updates (extended or invalid sessions) are left on
    ``request.state.session_cookie`` for the session cookie middleware to
    write onto the response.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    auth_provider = get_auth_provider()
    validated = await auth_provider.validate_session(db, token)

    if not validated:
        request.state.session_cookie = blank_session_cookie()
        return None

    if validated.fresh:
        request.state.session_cookie = session_cookie(validated.session)
    return validated.user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """
    Get the currently authenticated user.

    Raises 401 if not authenticated. Browser requests are turned into a
    redirect to the login page by the application's exception handler.
    """
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    return user
