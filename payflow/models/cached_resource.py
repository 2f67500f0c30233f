"""CachedResource ORM — one stored response inside a StoreVersion.

Invariants:
    - (store_name, resource_key) is unique: one payload per key per version
    - body holds the full response payload as bytes

Design Decisions:
    - JSON column for headers: stored as a list of [name, value] pairs so
      repeated headers survive
"""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime, ForeignKey, Integer, JSON, LargeBinary, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payflow.db.base import Base


class CachedResourceModel(Base):
    """Stored response payload for a resource key."""
    __tablename__ = "cached_resources"
    __table_args__ = (
        UniqueConstraint("store_name", "resource_key", name="uq_store_resource"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("store_versions.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource_key: Mapped[str] = mapped_column(String(2048), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    headers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    body: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    store = relationship("StoreVersionModel", back_populates="resources")
