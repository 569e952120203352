"""Local password-based authentication provider."""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session as DBSession

from gatehouse.config import settings
from gatehouse.models.session import Session
from gatehouse.models.user import User
from gatehouse.services.auth.base import AuthProvider, ValidatedSession

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Compared against when the username is unknown. Hashed once, at import.
DUMMY_PASSWORD_HASH = bcrypt.hashpw(
    secrets.token_hex(16).encode("utf-8"), bcrypt.gensalt()
).decode("utf-8")


class LocalAuthProvider(AuthProvider):
    """
    Local authentication provider using password hashing and database sessions.

    Passwords are hashed with bcrypt. Sessions are stored in the database and
    keyed by a secure random token which doubles as the cookie value.
    """

    def _hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")

    def _verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(
                _password_bytes(plain_password), hashed_password.encode("utf-8")
            )
        except ValueError:
            return False

    def _generate_session_id(self) -> str:
        """Generate a cryptographically secure session id."""
        return secrets.token_urlsafe(32)

    async def verify_credentials(
        self, db: DBSession, username: str, password: str
    ) -> Optional[User]:
        """Look up a user by username and check the password hash."""
        user = db.query(User).filter(User.username == username).first()
        if not user or not user.password_hash:
            # Burn the same hashing time as a real comparison
            await run_in_threadpool(self._verify_password, password, DUMMY_PASSWORD_HASH)
            return None
        if not await run_in_threadpool(
            self._verify_password, password, user.password_hash
        ):
            return None
        return user

    async def create_user(self, db: DBSession, username: str, password: str) -> User:
        """Create a new user with hashed password."""
        user = User(username=username, password_hash=self._hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    async def create_session(
        self, db: DBSession, user: User, request: Optional[Request] = None
    ) -> Session:
        """Create a new session for the user."""
        expires_at = datetime.now(timezone.utc) + timedelta(
            seconds=settings.session_max_age
        )

        session = Session(
            id=self._generate_session_id(),
            user_id=user.id,
            expires_at=expires_at,
        )

        # Extract request metadata
        if request is not None:
            session.user_agent = request.headers.get("user-agent", "")[:512]
            session.ip_address = request.client.host if request.client else None

        db.add(session)
        db.commit()

        return session

    async def validate_session(
        self, db: DBSession, session_id: str
    ) -> Optional[ValidatedSession]:
        """Resolve a session id, dropping expired sessions and extending old ones."""
        session = db.query(Session).filter(Session.id == session_id).first()
        if not session:
            return None

        now = datetime.now(timezone.utc)
        expires_at = _as_utc(session.expires_at)
        if expires_at <= now:
            db.delete(session)
            db.commit()
            return None

        max_age = timedelta(seconds=settings.session_max_age)
        fresh = False
        if expires_at - now < max_age / 2:
            session.expires_at = now + max_age
            db.commit()
            fresh = True

        return ValidatedSession(session=session, user=session.user, fresh=fresh)

    async def invalidate_session(self, db: DBSession, session_id: str) -> bool:
        """Delete a session by its id."""
        session = db.query(Session).filter(Session.id == session_id).first()
        if not session:
            return False
        db.delete(session)
        db.commit()
        return True

    async def invalidate_user_sessions(self, db: DBSession, user_id: UUID) -> int:
        """Delete all sessions for a user."""
        query = db.query(Session).filter(Session.user_id == user_id)
        count = query.count()
        query.delete()
        db.commit()
        return count

    async def delete_expired_sessions(self, db: DBSession) -> int:
        """Delete sessions whose expiry has passed."""
        now = datetime.now(timezone.utc)
        query = db.query(Session).filter(Session.expires_at <= now)
        count = query.count()
        query.delete(synchronize_session="fetch")
        db.commit()
        return count


# Singleton instance
local_auth_provider = LocalAuthProvider()
