"""Resource Cache Manager — install/activate lifecycle for the versioned resource store.

Invariants:
    - install() stores every manifest resource, or raises
      ManifestPopulationFailedError and stores none of them
    - install() never touches any version other than the current tag
    - activate() leaves exactly one version: the current tag
    - Clients are claimed only after stale versions are gone; from then on
      the interceptor serves every read request

Design Decisions:
    - Eager activation (skip waiting): a successful install makes the new
      version eligible immediately, without waiting on earlier instances
    - Manifest fetched with all_of (fail-fast), stored with one put_all:
      a half-populated version is never observable
    - Stale deletions run concurrently via all_of; each is idempotent
"""

import logging

from payflow.core.domain_types import ResourceKey, WorkerState
from payflow.core.errors import ManifestPopulationFailedError, PaymentError
from payflow.core.resources import ResourceRequest, StoredResponse, normalize_resource_key
from payflow.infrastructure.origin_client import OriginClient
from payflow.infrastructure.resource_store import CacheStorage, StoreVersion
from payflow.services.combinators import all_of

logger = logging.getLogger(__name__)


class ResourceCacheManager:
    """Populates the current store version and evicts stale ones."""

    def __init__(
        self,
        storage: CacheStorage,
        origin: OriginClient,
        version: str,
        manifest: list[str],
    ):
        self.storage = storage
        self.origin = origin
        self.version = version
        self.manifest: tuple[ResourceKey, ...] = tuple(
            dict.fromkeys(normalize_resource_key(m) for m in manifest),
        )
        self.state = WorkerState.NEW
        self.waiting = False
        self.controlling = False

    async def active_store(self) -> StoreVersion:
        return await self.storage.open(self.version)

    async def _fetch_manifest_entry(self, key: ResourceKey) -> StoredResponse:
        fetched = await self.origin.fetch(ResourceRequest("GET", key))
        if not fetched.response.ok:
            raise ManifestPopulationFailedError(
                self.version, [f"{key} (HTTP {fetched.response.status_code})"],
            )
        return fetched.response.for_storage()

    async def install(self) -> None:
        """Open the current version and store the whole manifest."""
        logger.info("Installing", extra={"cache_name": self.version})
        self.state = WorkerState.INSTALLING
        store = await self.storage.open(self.version)
        try:
            responses = await all_of([
                (lambda k=key: self._fetch_manifest_entry(k)) for key in self.manifest
            ])
        except ManifestPopulationFailedError:
            self.state = WorkerState.NEW
            logger.error("Manifest population failed", extra={"cache_name": self.version})
            raise
        except PaymentError as e:
            self.state = WorkerState.NEW
            logger.error(
                f"Manifest population failed: {e.message}",
                extra={"cache_name": self.version, "error_code": e.code},
            )
            raise ManifestPopulationFailedError(self.version, [e.message]) from e
        await store.put_all(dict(zip(self.manifest, responses)))
        self.state = WorkerState.INSTALLED
        self.waiting = True
        self.skip_waiting()
        logger.info(
            f"Installed {len(responses)} resource(s)",
            extra={"cache_name": self.version},
        )

    def skip_waiting(self) -> None:
        self.waiting = False

    async def activate(self) -> list[str]:
        """Evict every stale version, then start controlling requests."""
        if self.state is not WorkerState.INSTALLED:
            raise RuntimeError(f"Cannot activate from state {self.state.value}")
        self.state = WorkerState.ACTIVATING
        stale = [name for name in await self.storage.keys() if name != self.version]
        for name in stale:
            logger.info(f"Evicting stale version {name}", extra={"cache_name": name})
        deleted = await all_of([
            (lambda n=name: self.storage.delete(n)) for name in stale
        ])
        self.claim()
        self.state = WorkerState.ACTIVATED
        return [name for name, removed in zip(stale, deleted) if removed]

    def claim(self) -> None:
        self.controlling = True
        logger.info("Controlling all clients", extra={"cache_name": self.version})

    async def start(self) -> bool:
        """Install then activate. A failed install leaves requests pass-through."""
        try:
            await self.install()
        except ManifestPopulationFailedError as e:
            logger.warning(
                f"Resource cache not installed, serving from origin: {e.message}",
                extra={"cache_name": self.version, "error_code": e.code},
            )
            return False
        await self.activate()
        return True
