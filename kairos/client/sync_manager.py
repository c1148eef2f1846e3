import asyncio
import logging
from datetime import timedelta

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from kairos.core.config import settings
from kairos.client.local_store import OfflineStore
from kairos.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)


class OfflineSyncManager:
    """
    Replays offline operations against the backend.

    Replay is strictly sequential in timestamp order. Failed operations stay
    unsynced and are retried on the next trigger, with no attempt limit and
    no backoff. Triggers are an offline -> online transition, one replay
    shortly after start(), and the periodic connectivity probe. Overlapping
    triggers wait for the running pass, so an operation is never sent twice.

    Records created offline carry a local id. Once their insert is replayed
    the server id is remembered, and later updates and deletes of that record
    are sent to the server id instead.
    """

    def __init__(self, store: OfflineStore, handlers: dict, online: bool = True, probe=None):
        self.store = store
        self.handlers = handlers
        self.probe = probe
        self._online = online
        self._replay_lock = asyncio.Lock()
        self.scheduler = AsyncIOScheduler()

    @property
    def online(self) -> bool:
        return self._online

    async def set_online(self, online: bool):
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("🌐 Back online, replaying offline operations")
            await self.sync_offline_operations()
        elif not online and was_online:
            logger.info("📴 Offline, mutations will be queued locally")

    async def _resolve_ids(self, collection: str, kind: str, payload: dict) -> dict:
        if kind == "insert" or payload.get("id") is None:
            return payload
        server_id = await self.store.get_server_id(collection, payload["id"])
        if server_id is None:
            return payload
        return {**payload, "id": server_id}

    async def _dispatch(self, collection: str, kind: str, payload: dict):
        handler = self.handlers.get(collection)
        if handler is None:
            raise ValueError(f"No handler for collection '{collection}'")

        result = await handler(kind, await self._resolve_ids(collection, kind, payload))

        local_id = payload.get("id")
        if kind == "insert" and local_id is not None and isinstance(result, dict) and result.get("id") is not None:
            try:
                await self.store.remember_server_id(collection, local_id, result["id"])
            except Exception as e:
                # The insert already landed, so it must not be replayed again
                logger.error(f"❌ Could not record server id for {collection} {local_id}: {e}")
        return result

    async def sync_offline_operations(self) -> bool:
        """True only when every pending operation was applied."""
        if not self._online:
            return False

        async with self._replay_lock:
            return await self._replay_pending()

    async def _replay_pending(self) -> bool:
        if not self._online:
            return False

        try:
            operations = await self.store.get_offline_operations()
        except Exception as e:
            logger.error(f"❌ Could not read offline log: {e}")
            return False

        pending = sorted((op for op in operations if not op.synced), key=lambda op: ensure_utc(op.timestamp))
        if not pending:
            return True

        all_ok = True
        for op in pending:
            try:
                await self._dispatch(op.collection, op.kind, op.payload)
                await self.store.mark_synced(op.id)
            except Exception as e:
                all_ok = False
                logger.warning(f"⚠️ Replay of {op.kind} on {op.collection} ({op.id}) failed, will retry: {e}")

        try:
            purged = await self.store.purge_synced()
        except Exception as e:
            logger.error(f"❌ Could not purge synced operations: {e}")
        else:
            logger.info(f"🔁 Replayed {purged}/{len(pending)} offline operation(s)")
        return all_ok

    async def submit(self, collection: str, kind: str, payload: dict):
        """
        Apply a mutation now if online, otherwise queue it.
        A transport error flips the manager offline and queues the operation.
        Returns the handler's result, or None when the operation was queued.
        """
        if self._online:
            try:
                return await self._dispatch(collection, kind, payload)
            except httpx.TransportError as e:
                logger.warning(f"⚠️ Network error on {kind} {collection}, queueing: {e}")
                self._online = False

        await self.store.save_offline_operation(collection, kind, payload)
        return None

    async def check_connectivity(self):
        if self.probe is None:
            return
        await self.set_online(await self.probe())

    def start(self):
        """Schedule the startup replay and the connectivity probe."""
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self.sync_offline_operations,
            "date",
            run_date=utc_now() + timedelta(seconds=settings.OFFLINE_STARTUP_REPLAY_SECONDS),
            id="offline_startup_replay",
            replace_existing=True
        )
        if self.probe is not None:
            self.scheduler.add_job(
                self.check_connectivity,
                "interval",
                seconds=settings.CONNECTIVITY_PROBE_SECONDS,
                id="connectivity_probe",
                replace_existing=True
            )
        self.scheduler.start()
        logger.info("🚀 Offline sync manager started")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("🛑 Offline sync manager stopped")
