"""Orphaned-object log and the background task that cleans it up."""

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from vault.exceptions import StorageError
from vault.utils import utc_now

logger = logging.getLogger(__name__)


class OrphanLog:
    """
    JSON file listing object-store keys that have no metadata record.

    Thread-safe; entries are {"storage_key", "file_id", "reason", "recorded_at"}.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> List[Dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read orphaned objects log: {e}")
            return []
        return data if isinstance(data, list) else []

    def _write(self, entries: List[Dict]) -> None:
        if entries:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(entries, f, indent=2)
        elif self.path.exists():
            self.path.unlink()

    def record(self, storage_key: str, file_id: str, reason: str) -> None:
        """
        Append an orphan entry. Failures are logged, never raised.
        """
        entry = {
            "storage_key": storage_key,
            "file_id": file_id,
            "reason": reason,
            "recorded_at": utc_now().isoformat(),
        }
        try:
            with self._lock:
                entries = self._read()
                entries.append(entry)
                self._write(entries)
            logger.warning(f"Recorded orphaned object [key={storage_key}] [file_id={file_id}]: {reason}")
        except OSError as e:
            logger.error(f"Failed to record orphaned object {storage_key}: {e}", exc_info=True)

    def entries(self) -> List[Dict]:
        with self._lock:
            return self._read()

    def remove(self, storage_keys: List[str]) -> None:
        if not storage_keys:
            return
        drop = set(storage_keys)
        with self._lock:
            remaining = [e for e in self._read() if e.get("storage_key") not in drop]
            self._write(remaining)


class OrphanedObjectCleaner:
    """
    Background task that periodically deletes orphaned objects.
    """

    def __init__(self, orphan_log: OrphanLog, object_store, metadata_index, interval_seconds: int):
        """
        Initialize cleaner task.

        Args:
            orphan_log: Log of orphaned keys
            object_store: ObjectStoreGateway used for deletes
            metadata_index: Index consulted before deleting anything
            interval_seconds: Time between cleanup attempts
        """
        self.orphan_log = orphan_log
        self.object_store = object_store
        self.metadata_index = metadata_index
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Schedule periodic orphan sweeps on the running event loop."""
        if self.running:
            logger.warning("Orphan sweeper is already scheduled, ignoring start()")
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name="orphan-sweeper")
        logger.info(f"Orphan sweeper scheduled every {self.interval_seconds}s over {self.orphan_log.path}")

    async def stop(self) -> None:
        """Cancel the sweeper and wait for it to exit."""
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Orphan sweeper stopped")

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.cleanup_cycle()
            except Exception as e:
                logger.error(f"Orphan sweep failed, retrying next interval: {e}", exc_info=True)

    async def cleanup_cycle(self) -> int:
        """
        Execute one cleanup cycle.

        Entries whose file id is now indexed are dropped without touching the
        object store.

        Returns:
            Number of entries resolved
        """
        orphans = self.orphan_log.entries()
        if not orphans:
            logger.debug("No orphaned objects to clean")
            return 0

        logger.info(f"Starting cleanup cycle for {len(orphans)} orphaned objects")

        resolved = []
        for entry in orphans:
            storage_key = entry.get("storage_key")
            if not storage_key:
                continue

            file_id = entry.get("file_id")
            if file_id and self.metadata_index.exists(file_id):
                resolved.append(storage_key)
                continue

            try:
                await self.object_store.delete(storage_key)
                logger.info(f"Cleaned orphaned object {storage_key}")
                resolved.append(storage_key)
            except StorageError as e:
                logger.warning(f"Error cleaning orphaned object {storage_key}: {e}")

        self.orphan_log.remove(resolved)
        logger.info(
            f"Cleanup cycle complete: {len(resolved)} resolved, {len(orphans) - len(resolved)} remaining"
        )
        return len(resolved)
