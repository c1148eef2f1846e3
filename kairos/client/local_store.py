import logging
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, UniqueConstraint, select, update, delete
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from kairos.core.config import settings
from kairos.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)

LocalBase = declarative_base()

OPERATION_KINDS = ("insert", "update", "delete")


class OfflineOperation(LocalBase):
    """A mutation attempted while offline. Only `synced` changes after creation."""
    __tablename__ = "offline_operations"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String, index=True, nullable=False)
    collection = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    synced = Column(Boolean, default=False, nullable=False)


class OfflineIdMapping(LocalBase):
    """Server id assigned to a record that was created offline under a local id."""
    __tablename__ = "offline_id_map"
    __table_args__ = (UniqueConstraint("user_id", "collection", "local_id", name="uq_offline_id_map_local"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    collection = Column(String, nullable=False)
    local_id = Column(String, nullable=False)
    server_id = Column(JSON, nullable=False)


class OfflineStore:
    """Durable per-user log of offline operations, kept in a local SQLite file."""

    def __init__(self, user_id, db_url: str = None):
        self.user_id = str(user_id)
        self.engine = create_async_engine(db_url or settings.OFFLINE_DB_URL)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(LocalBase.metadata.create_all)

    async def close(self):
        await self.engine.dispose()

    async def save_offline_operation(self, collection: str, kind: str, payload: dict, timestamp: datetime = None):
        """
        Append an operation to the log.

        Best-effort: a storage failure is logged and the operation is dropped,
        the caller never sees an exception. Returns the stored record or None.
        """
        if kind not in OPERATION_KINDS:
            logger.error(f"❌ Unknown offline operation kind '{kind}' for {collection}, dropped")
            return None

        operation = OfflineOperation(
            id=uuid.uuid4().hex,
            user_id=self.user_id,
            collection=collection,
            kind=kind,
            payload=payload or {},
            timestamp=ensure_utc(timestamp) if timestamp else utc_now(),
            synced=False,
        )
        try:
            async with self.session_factory() as session:
                session.add(operation)
                await session.commit()
        except Exception as e:
            logger.error(f"❌ Failed to save offline {kind} on {collection}, operation dropped: {e}")
            return None

        logger.info(f"💾 Queued offline {kind} on {collection} ({operation.id})")
        return operation

    async def get_offline_operations(self):
        async with self.session_factory() as session:
            result = await session.execute(
                select(OfflineOperation)
                .filter(OfflineOperation.user_id == self.user_id)
                .order_by(OfflineOperation.timestamp)
            )
            return result.scalars().all()

    async def mark_synced(self, operation_id: str):
        async with self.session_factory() as session:
            await session.execute(
                update(OfflineOperation).filter(OfflineOperation.id == operation_id).values(synced=True)
            )
            await session.commit()

    async def purge_synced(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(OfflineOperation).filter(
                    OfflineOperation.user_id == self.user_id,
                    OfflineOperation.synced == True  # noqa: E712
                )
            )
            await session.commit()
            return result.rowcount or 0

    async def remember_server_id(self, collection: str, local_id, server_id):
        async with self.session_factory() as session:
            result = await session.execute(select(OfflineIdMapping).filter(
                OfflineIdMapping.user_id == self.user_id,
                OfflineIdMapping.collection == collection,
                OfflineIdMapping.local_id == str(local_id)
            ))
            mapping = result.scalar_one_or_none() or OfflineIdMapping(
                user_id=self.user_id, collection=collection, local_id=str(local_id)
            )
            mapping.server_id = server_id
            session.add(mapping)
            await session.commit()

    async def get_server_id(self, collection: str, local_id):
        """Server id for a record created offline, or None if it was never replayed."""
        async with self.session_factory() as session:
            result = await session.execute(select(OfflineIdMapping.server_id).filter(
                OfflineIdMapping.user_id == self.user_id,
                OfflineIdMapping.collection == collection,
                OfflineIdMapping.local_id == str(local_id)
            ))
            return result.scalar_one_or_none()
