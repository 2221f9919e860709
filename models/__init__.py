"""Records used by the offline sync layer."""
from .kv_entry import KeyValueEntry
from .pending_op import PendingOperation

__all__ = ["KeyValueEntry", "PendingOperation"]
