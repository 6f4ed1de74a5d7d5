"""
Tests for ReviewStore load / persist over the file backend.
"""
import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from app.db.backends import FileSnapshotBackend, SnapshotBackend
from app.schemas.review import CacheSnapshot
from app.services.review_store import ReviewStore
from tests.helpers import make_review


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_file_gives_empty_snapshot(self, store, cache_path):
        assert not cache_path.exists()

        snapshot = await store.load()

        assert snapshot.reviews == []
        assert snapshot.last_updated is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [b"{not json", b"[]", b'{"reviews": "nope"}', b""],
    )
    async def test_corrupt_file_gives_empty_snapshot(self, store, cache_path, content):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_bytes(content)

        snapshot = await store.load()

        assert snapshot.reviews == []
        assert snapshot.last_updated is None

    @pytest.mark.asyncio
    async def test_backend_read_error_gives_empty_snapshot(self):
        backend = AsyncMock(spec=SnapshotBackend)
        backend.read.side_effect = PermissionError("denied")

        snapshot = await ReviewStore(backend).load()

        assert snapshot.reviews == []

    @pytest.mark.asyncio
    async def test_reads_document_and_drops_id_less_records(self, store, cache_path):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(
            json.dumps(
                {
                    "reviews": [make_review("a"), make_review(None, comment="lost")],
                    "lastUpdated": "2025-01-01T00:00:00.000Z",
                }
            )
        )

        snapshot = await store.load()

        assert [r["reviewId"] for r in snapshot.reviews] == ["a"]
        assert snapshot.last_updated == "2025-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [["x"], {"bad": 1}, 42])
    async def test_non_string_review_ids_are_dropped(self, store, cache_path, bad_id):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(
            json.dumps({"reviews": [{"reviewId": bad_id}, make_review("a")], "lastUpdated": None})
        )

        snapshot = await store.load()

        assert [r["reviewId"] for r in snapshot.reviews] == ["a"]


class TestPersist:
    @pytest.mark.asyncio
    async def test_writes_camel_case_document(self, store, cache_path):
        record = make_review("a", reviewer={"displayName": "Ana"}, comment="Lovely")

        ok = await store.persist(CacheSnapshot(reviews=[record], last_updated="2025-01-01T00:00:00.000Z"))

        assert ok is True
        document = json.loads(cache_path.read_text())
        assert document == {"reviews": [record], "lastUpdated": "2025-01-01T00:00:00.000Z"}

    @pytest.mark.asyncio
    async def test_roundtrip_preserves_opaque_fields(self, store):
        record = make_review("a", reviewReply={"comment": "Thanks!", "updateTime": "2024-02-02T00:00:00Z"})
        await store.persist(CacheSnapshot(reviews=[record]))

        snapshot = await store.load()

        assert snapshot.reviews == [record]

    @pytest.mark.asyncio
    async def test_never_drops_ids_already_stored(self, store):
        await store.persist(CacheSnapshot(reviews=[make_review("a"), make_review("b")]))

        # A writer that only knows about "c" still produces a superset
        await store.persist(CacheSnapshot(reviews=[make_review("c")]))

        snapshot = await store.load()
        assert {r["reviewId"] for r in snapshot.reviews} == {"a", "b", "c"}

    @pytest.mark.asyncio
    async def test_last_updated_never_moves_backwards(self, store):
        await store.persist(CacheSnapshot(reviews=[], last_updated="2025-06-01T00:00:00.000Z"))
        await store.persist(CacheSnapshot(reviews=[], last_updated="2025-01-01T00:00:00.000Z"))

        snapshot = await store.load()

        assert snapshot.last_updated == "2025-06-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_stale_snapshot_does_not_revert_newer_stored_edit(self, store):
        stale = CacheSnapshot(reviews=[make_review("a", rating="FOUR", comment="good")])
        edited = make_review("a", rating="FIVE", comment="great")
        await store.persist(CacheSnapshot(reviews=[]), fresh=[edited])

        # A request that loaded before the edit and fetched nothing writes back
        await store.persist(stale)

        snapshot = await store.load()
        assert snapshot.reviews == [edited]

    @pytest.mark.asyncio
    async def test_fresh_records_override_stored_ones(self, store):
        await store.persist(CacheSnapshot(reviews=[make_review("a", rating="ONE")]))

        await store.persist(
            CacheSnapshot(reviews=[make_review("a", rating="ONE")]),
            fresh=[make_review("a", rating="FIVE")],
        )

        snapshot = await store.load()
        assert snapshot.reviews == [make_review("a", rating="FIVE")]

    @pytest.mark.asyncio
    async def test_concurrent_persists_keep_every_record(self, store):
        snapshots = [
            CacheSnapshot(reviews=[make_review(f"r{i}", f"2024-01-{i + 1:02d}")])
            for i in range(10)
        ]

        results = await asyncio.gather(*(store.persist(s) for s in snapshots))

        assert all(results)
        snapshot = await store.load()
        assert {r["reviewId"] for r in snapshot.reviews} == {f"r{i}" for i in range(10)}

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self):
        backend = AsyncMock(spec=SnapshotBackend)
        backend.read.return_value = None
        backend.write.side_effect = OSError("disk full")

        ok = await ReviewStore(backend).persist(CacheSnapshot(reviews=[make_review("a")]))

        assert ok is False
        backend.write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_write_leaves_previous_document_intact(self, store, cache_path, monkeypatch):
        await store.persist(CacheSnapshot(reviews=[make_review("a")]))
        before = cache_path.read_bytes()

        def broken_replace(src, dst):
            raise OSError("rename failed")

        monkeypatch.setattr("app.db.backends.os.replace", broken_replace)
        ok = await store.persist(CacheSnapshot(reviews=[make_review("b")]))

        assert ok is False
        assert cache_path.read_bytes() == before
        # Temporary files are cleaned up
        assert [p.name for p in cache_path.parent.iterdir()] == [cache_path.name]


class TestFileSnapshotBackend:
    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, tmp_path):
        backend = FileSnapshotBackend(tmp_path / "missing.json")
        assert await backend.read() is None

    @pytest.mark.asyncio
    async def test_write_creates_parent_directories(self, tmp_path):
        backend = FileSnapshotBackend(tmp_path / "a" / "b" / "cache.json")

        await backend.write(b'{"reviews": []}')

        assert await backend.read() == b'{"reviews": []}'
