"""
Base Model Class
Provides common fields and functionality for all database models.

All application models should inherit from BaseModel instead of Base directly.
This ensures consistent ID format (UUID) and automatic timestamp tracking.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Uuid, func
import uuid

from ecoscan.db.base import Base


def utcnow() -> datetime:
    """Timezone-aware current time, used as Python-side column default."""
    return datetime.now(timezone.utc)


class BaseModel(Base):
    """
    Abstract base model with common fields for all tables.

    Provides:
    - UUID primary key (native UUID on PostgreSQL, CHAR(32) elsewhere)
    - created_at timestamp (set on insert)
    - updated_at timestamp (refreshed on every update)

    Timestamps get a Python-side default as well as the server default so
    rows inserted in the same second still order by creation time.
    """

    # Make this an abstract base class (no table created for BaseModel itself)
    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,  # Auto-generate UUID v4 on insert
        nullable=False
    )

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,  # Update on every modification
        nullable=False
    )

    def __repr__(self):
        """
        String representation of model instance.
        Useful for debugging and logging.
        """
        return f"<{self.__class__.__name__}(id={self.id})>"
