"""Resource Store — named, versioned containers of cached responses in the database.

Invariants:
    - open(name) creates the version if absent and is safe to call concurrently
    - delete(name) is idempotent: deleting a missing version returns False
    - put(key) replaces any previous payload for that key in that version
    - put_all() is atomic: either every entry is stored or none is

Design Decisions:
    - Mirrors the browser CacheStorage shape (open / keys / delete, then
      match / put on a version) so lifecycle code reads the same way
    - One short session per operation: concurrent writers on distinct keys
      never share a transaction
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from payflow.core.domain_types import ResourceKey
from payflow.core.resources import StoredResponse
from payflow.infrastructure.database import DatabaseSessionManager
from payflow.models.cached_resource import CachedResourceModel
from payflow.models.store_version import StoreVersionModel

logger = logging.getLogger(__name__)


def _to_model(
    store_name: str, key: ResourceKey, response: StoredResponse,
) -> CachedResourceModel:
    return CachedResourceModel(
        store_name=store_name,
        resource_key=key,
        url=response.url,
        status_code=response.status_code,
        headers=[list(h) for h in response.headers],
        body=response.body,
    )


def _from_model(row: CachedResourceModel) -> StoredResponse:
    return StoredResponse(
        url=row.url,
        status_code=row.status_code,
        body=row.body,
        headers=[(k, v) for k, v in row.headers],
    )


class StoreVersion:
    """Handle on one named cache generation."""

    def __init__(self, db: DatabaseSessionManager, name: str):
        self.db = db
        self.name = name

    async def match(self, key: ResourceKey) -> StoredResponse | None:
        async with self.db.session() as session:
            row = (await session.execute(
                select(CachedResourceModel).where(
                    CachedResourceModel.store_name == self.name,
                    CachedResourceModel.resource_key == key,
                ),
            )).scalar_one_or_none()
            return _from_model(row) if row else None

    async def put(self, key: ResourceKey, response: StoredResponse) -> None:
        await self.put_all({key: response})

    async def put_all(self, entries: dict[ResourceKey, StoredResponse]) -> None:
        if not entries:
            return
        async with self.db.session() as session:
            await session.execute(
                delete(CachedResourceModel).where(
                    CachedResourceModel.store_name == self.name,
                    CachedResourceModel.resource_key.in_(list(entries)),
                ),
            )
            session.add_all(
                _to_model(self.name, key, resp) for key, resp in entries.items()
            )
            await session.commit()
        logger.debug(
            "Stored %d resource(s)", len(entries), extra={"cache_name": self.name},
        )

    async def keys(self) -> list[ResourceKey]:
        async with self.db.session() as session:
            rows = await session.execute(
                select(CachedResourceModel.resource_key)
                .where(CachedResourceModel.store_name == self.name)
                .order_by(CachedResourceModel.id),
            )
            return [ResourceKey(k) for k in rows.scalars()]


class CacheStorage:
    """All store versions known to the local database."""

    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def open(self, name: str) -> StoreVersion:
        async with self.db.session() as session:
            existing = await session.get(StoreVersionModel, name)
            if existing is None:
                session.add(StoreVersionModel(name=name))
                try:
                    await session.commit()
                    logger.info("Created store version", extra={"cache_name": name})
                except IntegrityError:
                    # Created concurrently by another opener.
                    await session.rollback()
        return StoreVersion(self.db, name)

    async def has(self, name: str) -> bool:
        async with self.db.session() as session:
            return await session.get(StoreVersionModel, name) is not None

    async def keys(self) -> list[str]:
        async with self.db.session() as session:
            rows = await session.execute(
                select(StoreVersionModel.name).order_by(StoreVersionModel.created_at),
            )
            return list(rows.scalars())

    async def delete(self, name: str) -> bool:
        async with self.db.session() as session:
            await session.execute(
                delete(CachedResourceModel).where(
                    CachedResourceModel.store_name == name,
                ),
            )
            result = await session.execute(
                delete(StoreVersionModel).where(StoreVersionModel.name == name),
            )
            await session.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted store version", extra={"cache_name": name})
        return deleted
