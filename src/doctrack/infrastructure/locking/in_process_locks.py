"""In-process ingestion lock registry."""

import asyncio
from uuid import UUID


class InProcessIngestionLocks:
    """Map of in-flight document ids to release events.

    One instance per process (or per test). Releasing a lock sets its event,
    which wakes every coroutine waiting on that document at once, so waiters
    do not have to poll the store while the work happens in this process.
    """

    def __init__(self) -> None:
        self._inflight: dict[UUID, asyncio.Event] = {}

    def try_acquire(self, document_id: UUID) -> bool:
        if document_id in self._inflight:
            return False
        self._inflight[document_id] = asyncio.Event()
        return True

    def release(self, document_id: UUID) -> None:
        event = self._inflight.pop(document_id, None)
        if event is not None:
            event.set()

    def is_held(self, document_id: UUID) -> bool:
        return document_id in self._inflight

    async def wait_for_release(self, document_id: UUID, timeout: float) -> bool:
        event = self._inflight.get(document_id)
        if event is None:
            # Held elsewhere (another process) or not yet acquired: plain poll delay.
            await asyncio.sleep(timeout)
            return False
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except TimeoutError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._inflight)
