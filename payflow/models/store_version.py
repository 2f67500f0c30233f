"""StoreVersion ORM — one named generation of cached resources.

Invariants:
    - name is the primary key (the deployment's version tag)
    - Deleting a version cascades to all of its resources

Design Decisions:
    - Name as natural key: versions are addressed by tag everywhere, never by id
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payflow.db.base import Base


class StoreVersionModel(Base):
    """Named cache generation."""
    __tablename__ = "store_versions"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    resources = relationship(
        "CachedResourceModel",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
