from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select

from database import Base
from models.content import Content
from services.content_access import view_content, ViewStatus
from services.content_store import ContentFlags, ContentStore
from services.reaper import ContentReaper, sweep_expired_content

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "reaper.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    with patch("services.reaper.async_session_maker", maker):
        yield maker
    await engine.dispose()


async def _create(maker, *, minutes=1, viewed_at=None, auto_delete=True, file_path=None):
    async with maker() as db:
        store = ContentStore(db)
        item = await store.create(
            kind="file" if file_path else "text",
            content=None if file_path else "timed",
            file_path=file_path,
            flags=ContentFlags(auto_delete=auto_delete, delete_after_minutes=minutes),
            now=T0,
        )
        if viewed_at is not None:
            await store.set_first_viewed(item, viewed_at)
        return item


async def _deleted(maker, item_id: str) -> bool:
    async with maker() as db:
        result = await db.execute(select(Content.deleted).where(Content.id == item_id))
        return bool(result.scalar_one())


@pytest.mark.asyncio
async def test_sweep_purges_only_expired_items(session_maker, tmp_path):
    stored_file = tmp_path / "expired.png"
    stored_file.write_bytes(b"png")
    expired = await _create(session_maker, minutes=1, viewed_at=T0, file_path=str(stored_file))
    running = await _create(session_maker, minutes=10, viewed_at=T0)
    not_started = await _create(session_maker, minutes=1)
    no_timer = await _create(session_maker, auto_delete=False)

    purged = await sweep_expired_content(now=T0 + timedelta(minutes=2))

    assert purged == 1
    assert await _deleted(session_maker, expired.id) is True
    assert not stored_file.exists()
    for item in (running, not_started, no_timer):
        assert await _deleted(session_maker, item.id) is False


@pytest.mark.asyncio
async def test_sweep_is_idempotent(session_maker):
    await _create(session_maker, minutes=1, viewed_at=T0)
    later = T0 + timedelta(minutes=5)

    assert await sweep_expired_content(now=later) == 1
    assert await sweep_expired_content(now=later) == 0


@pytest.mark.asyncio
async def test_file_removal_failure_still_tombstones(session_maker, tmp_path):
    item = await _create(session_maker, minutes=1, viewed_at=T0, file_path=str(tmp_path / "stuck.png"))

    with patch("services.content_purge.delete_file", side_effect=PermissionError("read-only")):
        purged = await sweep_expired_content(now=T0 + timedelta(minutes=2))

    assert purged == 1
    assert await _deleted(session_maker, item.id) is True


@pytest.mark.asyncio
async def test_one_failing_item_does_not_stop_the_sweep(session_maker):
    first = await _create(session_maker, minutes=1, viewed_at=T0)
    second = await _create(session_maker, minutes=1, viewed_at=T0)
    original = ContentStore.mark_deleted
    calls = []

    async def flaky_mark_deleted(self, item_id):
        calls.append(item_id)
        if len(calls) == 1:
            raise RuntimeError("database is locked")
        return await original(self, item_id)

    with patch.object(ContentStore, "mark_deleted", flaky_mark_deleted):
        purged = await sweep_expired_content(now=T0 + timedelta(minutes=2))

    assert purged == 1
    assert len(calls) == 2
    states = {await _deleted(session_maker, first.id), await _deleted(session_maker, second.id)}
    assert states == {True, False}


@pytest.mark.asyncio
async def test_sweep_and_lazy_expiry_agree(session_maker):
    item = await _create(session_maker, minutes=1, viewed_at=T0)
    now = T0 + timedelta(seconds=61)

    async with session_maker() as db:
        outcome = await view_content(db, item.public_id, "1.1.1.1", now=now)
    assert outcome.status == ViewStatus.NOT_FOUND
    assert outcome.expired_on_read is True

    assert await sweep_expired_content(now=now) == 0
    assert await _deleted(session_maker, item.id) is True


@pytest.mark.asyncio
async def test_reaper_start_sweeps_eagerly_and_stops(session_maker):
    await _create(session_maker, minutes=1, viewed_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    reaper = ContentReaper(interval_seconds=3600)

    purged = await reaper.start()
    try:
        assert purged == 1
        assert reaper.running is True
    finally:
        await reaper.stop()
    assert reaper.running is False


@pytest.mark.asyncio
async def test_reaper_with_zero_interval_only_sweeps_once(session_maker):
    reaper = ContentReaper(interval_seconds=0)

    assert await reaper.start() == 0
    assert reaper.running is False
    await reaper.stop()
