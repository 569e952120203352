"""
Database models for Gatehouse.

Import all models here so Alembic can detect them for migrations.
"""

from gatehouse.database import Base
from gatehouse.models.user import User
from gatehouse.models.session import Session

__all__ = [
    "Base",
    "User",
    "Session",
]
