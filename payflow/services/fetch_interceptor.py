"""Cache-First Fetch Interceptor — serves reads from the store, else the origin.

Invariants:
    - Non-GET requests, and all requests before the manager controls clients,
      go straight to the origin and never touch the store
    - A store hit returns the stored payload with zero origin calls
    - A miss makes exactly one origin call; a 200 same-origin response is
      duplicated, one copy written back in the background, the other returned
    - The requester never waits on the write-back; write-back failures are
      logged only
    - Origin failures propagate as OriginFetchFailedError (no stale fallback)

Design Decisions:
    - Pending write-backs tracked in a set so shutdown/tests can drain() them;
      drain() logs crashed write-backs instead of raising, so shutdown always
      reaches client and engine cleanup
"""

import asyncio
import logging

from payflow.core.errors import PaymentError
from payflow.core.resources import ResourceRequest, StoredResponse
from payflow.infrastructure.origin_client import OriginClient, OriginResponse
from payflow.services.resource_cache_manager import ResourceCacheManager

logger = logging.getLogger(__name__)


def is_cacheable(fetched: OriginResponse) -> bool:
    return fetched.response.status_code == 200 and fetched.same_origin


class CacheFirstInterceptor:
    """Per-request cache-first strategy with opportunistic write-back."""

    def __init__(self, manager: ResourceCacheManager, origin: OriginClient):
        self.manager = manager
        self.origin = origin
        self._pending: set[asyncio.Task] = set()

    async def handle(self, request: ResourceRequest) -> StoredResponse:
        if not request.is_read or not self.manager.controlling:
            return (await self.origin.fetch(request)).response

        store = await self.manager.active_store()
        cached = await store.match(request.key)
        if cached is not None:
            logger.debug("Served from cache", extra={"resource_key": request.key})
            return cached

        logger.debug("Served from origin", extra={"resource_key": request.key})
        fetched = await self.origin.fetch(request)
        if is_cacheable(fetched):
            self._schedule_write(request, fetched.response.for_storage())
        return fetched.response

    def _schedule_write(self, request: ResourceRequest, copy: StoredResponse) -> None:
        task = asyncio.create_task(self._write_back(request, copy))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_back(self, request: ResourceRequest, copy: StoredResponse) -> None:
        try:
            store = await self.manager.active_store()
            await store.put(request.key, copy)
        except PaymentError as e:
            logger.warning(
                f"Cache write-back failed: {e.message}",
                extra={"resource_key": request.key, "error_code": e.code},
            )

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled write-back to finish. Never raises."""
        while self._pending:
            results = await asyncio.gather(*list(self._pending), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    logger.error(
                        f"Cache write-back crashed: {result!r}", exc_info=result,
                    )
