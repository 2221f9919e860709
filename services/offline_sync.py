from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from typing import Callable, Dict, List, Optional, Sequence

from core.settings import SHEETS_SYNC, SYNC_LOG_PATH
from core.sheets import generate_id, is_valid_sheet_key
from datetime_utils import to_iso_utc, utc_now
from models.pending_op import (
    PendingOperation,
    STATUS_ERROR,
    STATUS_PENDING,
    STATUS_SYNCING,
)
from services.connectivity import EVENT_OFFLINE, EVENT_ONLINE, ConnectivityMonitor
from services.pending_store import PendingQueueStore


INTERRUPTED_MESSAGE = "Interrupted during sync"
UNKNOWN_ERROR_MESSAGE = "Erro desconhecido"


def _ensure_logger() -> logging.Logger:
    logger = logging.getLogger("apropriapp.sync")
    if not logger.handlers:
        SYNC_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(SYNC_LOG_PATH, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger


class OfflineSyncQueue:
    """Offline queue of spreadsheet appends and the engine that drains it.

    All mutations happen on one asyncio loop. Every change is written through
    to ``store`` and then announced to subscribers.
    """

    def __init__(
        self,
        bridge,
        store: Optional[PendingQueueStore] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        *,
        auto_sync_delay: float = SHEETS_SYNC.auto_sync_delay_sec,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.bridge = bridge
        self.store = store or PendingQueueStore()
        self.monitor = monitor or ConnectivityMonitor()
        self.auto_sync_delay = auto_sync_delay
        self.logger = _ensure_logger()
        self._loop = loop
        self._items: List[PendingOperation] = []
        self._syncing = False
        self._listeners: set[Callable[["OfflineSyncQueue"], None]] = set()
        self._auto_handle: Optional[asyncio.TimerHandle] = None
        self._auto_task: Optional[asyncio.Task] = None

        self.monitor.subscribe(EVENT_ONLINE, self._on_online)
        self.monitor.subscribe(EVENT_OFFLINE, self._on_offline)
        self.load()

    # ------------------------------------------------------------------
    # Observation
    @property
    def pending_items(self) -> List[PendingOperation]:
        return list(self._items)

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    def get(self, item_id: str) -> Optional[PendingOperation]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def counts(self) -> Dict[str, int]:
        counter = Counter(item.status for item in self._items)
        return {status: counter.get(status, 0) for status in (STATUS_PENDING, STATUS_SYNCING, STATUS_ERROR)}

    def has_retryable(self) -> bool:
        return any(item.is_retryable for item in self._items)

    def subscribe(self, callback: Callable[["OfflineSyncQueue"], None]) -> None:
        self._listeners.add(callback)

    def unsubscribe(self, callback: Callable[["OfflineSyncQueue"], None]) -> None:
        self._listeners.discard(callback)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                self.logger.exception("Queue listener failed")

    # ------------------------------------------------------------------
    # Persistence
    def load(self) -> None:
        items = self.store.load()
        swept = False
        for index, item in enumerate(items):
            # a process killed mid-request leaves its item stuck in "syncing"
            if item.status == STATUS_SYNCING:
                items[index] = replace(item, status=STATUS_ERROR, error=INTERRUPTED_MESSAGE)
                swept = True
        self._items = items
        if swept:
            self.logger.warning("Reset interrupted items to error on startup")
            self.store.save(self._items)
        self.logger.info("Loaded %d offline item(s)", len(self._items))
        self._emit()

    def _commit(self, items: List[PendingOperation]) -> None:
        self._items = items
        self.store.save(self._items)
        self._emit()

    def _update(self, item_id: str, change: Callable[[PendingOperation], PendingOperation]) -> None:
        self._commit([change(item) if item.id == item_id else item for item in self._items])

    # ------------------------------------------------------------------
    # Public API
    def add_pending_append(self, sheet_key: str, sheet_name: str, row_data: Sequence[str]) -> str:
        if not is_valid_sheet_key(sheet_key):
            raise ValueError(f"Unsupported sheet: {sheet_key}")
        item = PendingOperation(
            id=generate_id(),
            sheet_key=sheet_key,
            sheet_name=sheet_name,
            row_data=list(row_data),
            created_at=to_iso_utc(utc_now()) or "",
        )
        self._commit([*self._items, item])
        self.logger.info("Queued %s row %s for later sync", sheet_name, item.id)
        return item.id

    async def sync_item(self, item_id: str) -> None:
        item = self.get(item_id)
        if item is None:
            return

        self._update(item_id, lambda op: op.with_status(STATUS_SYNCING))
        try:
            await self.bridge.append(item.sheet_name, item.row_data)
        except Exception as exc:
            message = str(exc) or UNKNOWN_ERROR_MESSAGE
            self._update(item_id, lambda op: op.failed(message))
            self.logger.warning("Sync of %s (%s) failed: %s", item_id, item.sheet_name, message)
            raise

        self._commit([op for op in self._items if op.id != item_id])
        self.logger.info("Synced %s row %s", item.sheet_name, item_id)

    async def sync_all(self) -> None:
        if not self.is_online or self._syncing:
            return

        self._syncing = True
        self._emit()
        try:
            selected = [item.id for item in self._items if item.is_retryable]
            self.logger.info("Sync all: %d item(s)", len(selected))
            for item_id in selected:
                try:
                    await self.sync_item(item_id)
                except Exception as exc:
                    self.logger.error("Error syncing item %s: %s", item_id, exc)
        finally:
            self._syncing = False
            self._emit()

    def remove_item(self, item_id: str) -> None:
        self._commit([item for item in self._items if item.id != item_id])
        self.logger.info("Removed offline item %s", item_id)

    def clear_all(self) -> None:
        self._commit([])
        self.logger.info("Cleared offline queue")

    # ------------------------------------------------------------------
    # Automatic sync on reconnect
    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def _resolve_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _on_online(self) -> None:
        if not self.has_retryable():
            return
        loop = self._resolve_loop()
        if loop is None:
            self.logger.warning("No event loop available; automatic sync skipped")
            return
        self._cancel_auto_sync()
        self._auto_handle = loop.call_later(self.auto_sync_delay, self._fire_auto_sync, loop)

    def _on_offline(self) -> None:
        self._cancel_auto_sync()

    def _fire_auto_sync(self, loop: asyncio.AbstractEventLoop) -> None:
        self._auto_handle = None
        self._auto_task = loop.create_task(self.sync_all())

    def _cancel_auto_sync(self) -> None:
        if self._auto_handle is not None:
            self._auto_handle.cancel()
            self._auto_handle = None

    def close(self) -> None:
        self._cancel_auto_sync()
        self.monitor.unsubscribe(EVENT_ONLINE, self._on_online)
        self.monitor.unsubscribe(EVENT_OFFLINE, self._on_offline)
        self._listeners.clear()


__all__ = ["OfflineSyncQueue", "INTERRUPTED_MESSAGE"]
