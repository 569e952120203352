"""Abstract base class for authentication providers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session as DBSession

from gatehouse.models.session import Session
from gatehouse.models.user import User


@dataclass
class ValidatedSession:
    """A live session resolved from a cookie, with its owning user."""

    session: Session
    user: User
    # True when the expiry was just extended and the cookie must be re-sent
    fresh: bool = False


class AuthProvider(ABC):
    """
    Abstract authentication provider interface.

    Route code talks to this interface only, so the credential store and
    session storage can be swapped without touching the HTTP layer.
    """

    @abstractmethod
    async def verify_credentials(
        self, db: DBSession, username: str, password: str
    ) -> Optional[User]:
        """
        Check a username/password pair.

        Returns the User if the credentials are valid, None otherwise. Unknown
        usernames and wrong passwords must be indistinguishable.
        """
        pass

    @abstractmethod
    async def create_user(self, db: DBSession, username: str, password: str) -> User:
        """
        Create a new user with the given credentials.

        Returns the created User.
        """
        pass

    @abstractmethod
    async def create_session(
        self, db: DBSession, user: User, request: Optional[Request] = None
    ) -> Session:
        """
        Create and persist a new session for a verified user.

        Returns the Session; its id is the token stored in the cookie.
        """
        pass

    @abstractmethod
    async def validate_session(
        self, db: DBSession, session_id: str
    ) -> Optional[ValidatedSession]:
        """
        Resolve a session id to a live session and its user.

        Returns None if the session does not exist or has expired.
        """
        pass

    @abstractmethod
    async def invalidate_session(self, db: DBSession, session_id: str) -> bool:
        """
        Delete a session by its id.

        Returns True if the session was deleted, False if not found.
        """
        pass

    @abstractmethod
    async def invalidate_user_sessions(self, db: DBSession, user_id: UUID) -> int:
        """
        Delete all sessions of a user.

        Returns count of sessions deleted.
        """
        pass

    @abstractmethod
    async def delete_expired_sessions(self, db: DBSession) -> int:
        """
        Delete every session whose expiry has passed.

        Returns count of sessions deleted.
        """
        pass
