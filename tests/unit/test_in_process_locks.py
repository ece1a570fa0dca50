"""Unit tests for InProcessIngestionLocks."""

import asyncio
from uuid import uuid4

import pytest

from doctrack.infrastructure.locking.in_process_locks import InProcessIngestionLocks


def test_acquire_is_exclusive() -> None:
    locks = InProcessIngestionLocks()
    doc_id = uuid4()

    assert locks.try_acquire(doc_id)
    assert not locks.try_acquire(doc_id)
    assert locks.is_held(doc_id)
    assert locks.try_acquire(uuid4())
    assert len(locks) == 2


def test_release_allows_reacquire() -> None:
    locks = InProcessIngestionLocks()
    doc_id = uuid4()
    locks.try_acquire(doc_id)

    locks.release(doc_id)

    assert not locks.is_held(doc_id)
    assert locks.try_acquire(doc_id)


def test_release_unknown_is_noop() -> None:
    InProcessIngestionLocks().release(uuid4())


@pytest.mark.asyncio
async def test_release_wakes_all_waiters() -> None:
    locks = InProcessIngestionLocks()
    doc_id = uuid4()
    locks.try_acquire(doc_id)

    waiters = [asyncio.create_task(locks.wait_for_release(doc_id, 5.0)) for _ in range(3)]
    await asyncio.sleep(0)
    locks.release(doc_id)

    assert await asyncio.gather(*waiters) == [True, True, True]


@pytest.mark.asyncio
async def test_wait_times_out_while_held() -> None:
    locks = InProcessIngestionLocks()
    doc_id = uuid4()
    locks.try_acquire(doc_id)

    assert await locks.wait_for_release(doc_id, 0.01) is False
    assert locks.is_held(doc_id)


@pytest.mark.asyncio
async def test_wait_on_unheld_id_sleeps_and_returns_false() -> None:
    locks = InProcessIngestionLocks()
    loop = asyncio.get_running_loop()
    start = loop.time()

    assert await locks.wait_for_release(uuid4(), 0.02) is False
    assert loop.time() - start >= 0.015
