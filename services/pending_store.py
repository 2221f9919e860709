"""Durable copy of the offline queue, kept under a single key."""
from __future__ import annotations

import json
import logging
from typing import List, Optional

from core.settings import SHEETS_SYNC
from models.pending_op import PendingOperation
from storage.kv_store import KeyValueStore


logger = logging.getLogger("apropriapp.sync.store")


class PendingQueueStore:
    def __init__(self, kv: Optional[KeyValueStore] = None, key: str = SHEETS_SYNC.storage_key):
        self.kv = kv or KeyValueStore()
        self.key = key

    def load(self) -> List[PendingOperation]:
        """Return the persisted queue in insertion order.

        Anything that cannot be decoded resets the whole queue to empty.
        """

        try:
            raw = self.kv.get(self.key)
            if raw is None:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [PendingOperation.from_dict(item) for item in data]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Error loading offline items from %s: %s", self.key, exc)
            return []

    def save(self, items: List[PendingOperation]) -> None:
        payload = json.dumps([item.to_dict() for item in items], ensure_ascii=False)
        self.kv.set(self.key, payload)


__all__ = ["PendingQueueStore"]
