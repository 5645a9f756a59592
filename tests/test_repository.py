"""Tests for the face scan repository against an in-memory database."""

from __future__ import annotations

import pytest

from faceauth.repository import FaceScanRepository


@pytest.mark.asyncio
async def test_save_and_get_face_scan(session_maker) -> None:
    async with session_maker() as session:
        await FaceScanRepository.save(session, "EMP-1", "01" * 64, 3)

        stored = await FaceScanRepository.get(session, "EMP-1")

    assert stored is not None
    assert stored.fuzzy_hash == "01" * 64
    assert stored.samples_used == 3


@pytest.mark.asyncio
async def test_save_replaces_existing_hash(session_maker) -> None:
    async with session_maker() as session:
        first = await FaceScanRepository.save(session, "EMP-2", "0" * 128, 3)
        created_at = first.created_at

        second = await FaceScanRepository.save(session, "EMP-2", "1" * 128, 2)

        assert second.fuzzy_hash == "1" * 128
        assert second.samples_used == 2
        assert second.created_at == created_at
        assert await FaceScanRepository.count(session) == 1


@pytest.mark.asyncio
async def test_delete_face_scan(session_maker) -> None:
    async with session_maker() as session:
        await FaceScanRepository.save(session, "EMP-3", "0" * 128, 3)

        assert await FaceScanRepository.delete(session, "EMP-3")
        assert not await FaceScanRepository.delete(session, "EMP-3")
        assert await FaceScanRepository.get(session, "EMP-3") is None


@pytest.mark.asyncio
async def test_db_to_schema(session_maker) -> None:
    async with session_maker() as session:
        db_scan = await FaceScanRepository.save(session, "EMP-4", "10" * 64, 3)

    record = FaceScanRepository.db_to_schema(db_scan)

    assert record.identity_number == "EMP-4"
    assert record.fuzzy_hash == "10" * 64
