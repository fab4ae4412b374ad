"""
Tests for background scan recording.
"""

import asyncio

from sqlalchemy import func, select

from qr_service.db.models import QRCode, ScanEvent
from qr_service.db.session import async_session_maker
from qr_service.services.background_tasks import record_scan_background
from qr_service.services.qr_code_service import QRCodeService
from qr_service.services.scan_count_service import ScanCountService
from qr_service.services.scan_logger import ScanLoggerService


async def create_code(owner) -> str:
    async with async_session_maker() as s:
        qr_code = await QRCodeService(s).create(owner, "Menu", "https://example.com/menu")
        return qr_code.id


async def scan_event_count(qr_code_id: str) -> int:
    async with async_session_maker() as s:
        result = await s.execute(select(func.count(ScanEvent.id)).where(ScanEvent.qr_code_id == qr_code_id))
        return result.scalar_one()


async def stored_scan_count(qr_code_id: str) -> int:
    async with async_session_maker() as s:
        qr_code = await s.get(QRCode, qr_code_id)
        return qr_code.scan_count


async def test_records_event_then_counts(owner):
    qr_code_id = await create_code(owner)

    assert await record_scan_background(qr_code_id, "Mozilla/5.0") is True

    assert await scan_event_count(qr_code_id) == 1
    assert await stored_scan_count(qr_code_id) == 1


async def test_long_user_agent_is_truncated(owner):
    qr_code_id = await create_code(owner)

    await record_scan_background(qr_code_id, "x" * 900)

    async with async_session_maker() as s:
        result = await s.execute(select(ScanEvent).where(ScanEvent.qr_code_id == qr_code_id))
        assert len(result.scalar_one().user_agent) == 500


async def test_log_failure_skips_increment(owner, monkeypatch):
    """scan_count must never run ahead of the scan log."""
    qr_code_id = await create_code(owner)
    increments = []

    async def failing_log(self, qr_code_id, user_agent=None):
        raise RuntimeError("insert failed")

    async def spy_increment(self, qr_code_id):
        increments.append(qr_code_id)
        return True

    monkeypatch.setattr(ScanLoggerService, "log_scan", failing_log)
    monkeypatch.setattr(ScanCountService, "increment_scan_count", spy_increment)

    assert await record_scan_background(qr_code_id) is False
    assert increments == []
    assert await stored_scan_count(qr_code_id) == 0


async def test_increment_failure_is_swallowed(owner, monkeypatch):
    qr_code_id = await create_code(owner)

    async def failing_increment(self, qr_code_id):
        raise RuntimeError("update failed")

    monkeypatch.setattr(ScanCountService, "increment_scan_count", failing_increment)

    assert await record_scan_background(qr_code_id) is False
    # the event stays, the counter lags behind it
    assert await scan_event_count(qr_code_id) == 1
    assert await stored_scan_count(qr_code_id) == 0


async def test_unknown_code_is_swallowed(database):
    """A code deleted before its scan lands fails the FK insert quietly."""
    assert await record_scan_background("6f1c1d64-5a0e-4f0c-9f57-2a5d7f6a9b10") is False


async def test_concurrent_scans_are_not_lost(owner):
    qr_code_id = await create_code(owner)
    scans = 10

    results = await asyncio.gather(*[
        record_scan_background(qr_code_id, f"agent-{i}") for i in range(scans)
    ])

    assert all(results)
    assert await scan_event_count(qr_code_id) == scans
    assert await stored_scan_count(qr_code_id) == scans
