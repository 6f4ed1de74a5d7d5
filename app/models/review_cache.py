"""
Review cache document model - one row per cached snapshot.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime

from app.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReviewCacheDocument(Base):
    """
    Serialized review cache snapshot.
    The payload is the same JSON document the file backend writes.
    """

    __tablename__ = "review_cache_documents"

    key = Column(String(255), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self):
        return f"<ReviewCacheDocument(key={self.key}, updated_at={self.updated_at})>"
