"""
Review store - durable, ever-growing cache of review records.

Handles:
- Loading the cache document (missing or corrupt documents yield an empty snapshot)
- Merging freshly fetched reviews into cached ones by reviewId
- Persisting the merged snapshot without ever dropping a known reviewId
"""
import asyncio
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pydantic import ValidationError

from app.core.logging import logger
from app.db.backends import SnapshotBackend
from app.schemas.review import CacheSnapshot, ReviewRecord

# Records without a parseable createTime sort after everything else
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse an ISO 8601 string into an aware datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Google emits up to nanosecond precision; datetime holds microseconds
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_valid_review_id(value) -> bool:
    """reviewIds are non-empty strings; anything else cannot key the cache."""
    return isinstance(value, str) and bool(value)


def _sort_key(record: ReviewRecord) -> datetime:
    return parse_timestamp(record.get("createTime")) or _OLDEST


def merge_reviews(
    current: Iterable[ReviewRecord], incoming: Iterable[ReviewRecord]
) -> List[ReviewRecord]:
    """
    Merge incoming reviews into the current set.

    Records are keyed by reviewId. An incoming record replaces the cached record
    with the same id wholesale; cached ids missing from `incoming` are kept.
    Records without a string reviewId are dropped. The result is ordered newest first
    by createTime (stable, so equal timestamps keep insertion order).

    Args:
        current: Previously cached records
        incoming: Freshly fetched records

    Returns:
        Merged list of records, unique by reviewId
    """
    by_id = {}
    for records in (current, incoming):
        for record in records:
            if not isinstance(record, dict):
                continue
            review_id = record.get("reviewId")
            if is_valid_review_id(review_id):
                by_id[review_id] = record

    return sorted(by_id.values(), key=_sort_key, reverse=True)


def latest_timestamp(*values: Optional[str]) -> Optional[str]:
    """Return whichever of the ISO timestamps is most recent, ignoring None/garbage."""
    best, best_at = None, None
    for value in values:
        parsed = parse_timestamp(value)
        if parsed is not None and (best_at is None or parsed > best_at):
            best, best_at = value, parsed
    return best


class ReviewStore:
    """
    Load / merge / persist operations over a SnapshotBackend.

    Persists within one process are serialized by an asyncio.Lock. Under that
    lock the latest stored document is re-read and merged with the outgoing
    records, so a concurrent request's records are never lost.
    """

    def __init__(self, backend: SnapshotBackend):
        self.backend = backend
        self._lock = asyncio.Lock()

    async def load(self) -> CacheSnapshot:
        """
        Read the cached snapshot.

        Never raises: a missing, unreadable or corrupt document yields an
        empty snapshot.
        """
        try:
            raw = await self.backend.read()
        except Exception as e:
            logger.warning(
                "Failed to read review cache, starting empty",
                extra={"backend": repr(self.backend), "error": str(e)},
            )
            return CacheSnapshot()

        if not raw:
            logger.info("No review cache found, starting empty", extra={"backend": repr(self.backend)})
            return CacheSnapshot()

        try:
            snapshot = CacheSnapshot.model_validate_json(raw)
            # Enforce unique, string ids on whatever was stored
            snapshot.reviews = merge_reviews(snapshot.reviews, [])
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(
                "Review cache is corrupt, starting empty",
                extra={"backend": repr(self.backend), "error": str(e)},
            )
            return CacheSnapshot()

        return snapshot

    async def persist(
        self, snapshot: CacheSnapshot, fresh: Iterable[ReviewRecord] = ()
    ) -> bool:
        """
        Write the snapshot, folding in anything persisted since it was loaded.

        Records are layered as: the caller's snapshot, then the document as
        currently stored, then `fresh`. A stale copy in the snapshot therefore
        never overwrites a newer stored edit, while freshly fetched records
        always win. Failures are logged and swallowed.

        Args:
            snapshot: Snapshot to write
            fresh: Records fetched upstream during this cycle

        Returns:
            True if the write succeeded, False otherwise
        """
        async with self._lock:
            try:
                stored = await self.load()
                document = CacheSnapshot(
                    reviews=merge_reviews(
                        merge_reviews(snapshot.reviews, stored.reviews), fresh
                    ),
                    last_updated=latest_timestamp(snapshot.last_updated, stored.last_updated),
                )
                await self.backend.write(
                    document.model_dump_json(by_alias=True).encode("utf-8")
                )
            except Exception as e:
                logger.error(
                    "Failed to persist review cache",
                    extra={"backend": repr(self.backend), "error": str(e)},
                    exc_info=True,
                )
                return False

        logger.info(
            "Review cache persisted",
            extra={
                "backend": repr(self.backend),
                "total_cached": len(document.reviews),
                "last_updated": document.last_updated,
            },
        )
        return True
