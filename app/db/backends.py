"""
Storage backends for the review cache document.

A backend only moves bytes; serialization and merge semantics live in
ReviewStore. Each write must replace the whole document atomically.
"""
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.models.review_cache import ReviewCacheDocument


class SnapshotBackend(ABC):
    """Durable substrate for a single cache document."""

    @abstractmethod
    async def read(self) -> Optional[bytes]:
        """Return the stored document, or None when nothing has been written yet."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Replace the stored document. Raises on failure."""


class FileSnapshotBackend(SnapshotBackend):
    """
    JSON document on the local filesystem.

    Writes go to a temporary file in the same directory which is then moved over
    the target with os.replace, so readers see either the old or the new file.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    async def read(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    async def write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def __repr__(self):
        return f"FileSnapshotBackend(path={str(self.path)!r})"


class DatabaseSnapshotBackend(SnapshotBackend):
    """
    Cache document stored as a row in review_cache_documents.
    Each write is a single transaction (upsert by key).
    """

    def __init__(self, session_factory: async_sessionmaker, key: str = "reviews"):
        self.session_factory = session_factory
        self.key = key

    async def read(self) -> Optional[bytes]:
        async with self.session_factory() as session:
            row = await session.get(ReviewCacheDocument, self.key)
            if row is None:
                return None
            return row.payload.encode("utf-8")

    async def write(self, data: bytes) -> None:
        payload = data.decode("utf-8")
        async with self.session_factory() as session:
            async with session.begin():
                row = await session.get(ReviewCacheDocument, self.key)
                if row is None:
                    session.add(ReviewCacheDocument(key=self.key, payload=payload))
                else:
                    row.payload = payload

    def __repr__(self):
        return f"DatabaseSnapshotBackend(key={self.key!r})"
