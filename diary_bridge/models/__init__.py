"""SQLAlchemy ORM models.

All models are imported here so that Alembic can discover them
via ``Base.metadata`` when generating migrations.
"""

from diary_bridge.models.invitation import FamilyInvitation  # noqa: F401
from diary_bridge.models.relationship import FamilyRelationship  # noqa: F401
from diary_bridge.models.user import RefreshToken, User  # noqa: F401

__all__ = [
    "FamilyInvitation",
    "FamilyRelationship",
    "RefreshToken",
    "User",
]
