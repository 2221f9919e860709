"""Queued append waiting to reach the spreadsheet."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional


STATUS_PENDING = "pending"
STATUS_SYNCING = "syncing"
STATUS_ERROR = "error"
STATUS_SYNCED = "synced"

VALID_STATUSES = (STATUS_PENDING, STATUS_SYNCING, STATUS_ERROR, STATUS_SYNCED)

# Statuses picked up by a sync-all pass.
RETRYABLE_STATUSES = (STATUS_PENDING, STATUS_ERROR)


@dataclass(frozen=True)
class PendingOperation:
    id: str
    sheet_key: str
    sheet_name: str
    row_data: List[str] = field(default_factory=list)
    created_at: str = ""
    status: str = STATUS_PENDING
    error: Optional[str] = None
    retry_count: int = 0

    @property
    def is_retryable(self) -> bool:
        return self.status in RETRYABLE_STATUSES

    def with_status(self, status: str) -> "PendingOperation":
        # an error message only belongs to an item in the error state
        error = self.error if status == STATUS_ERROR else None
        return replace(self, status=status, error=error)

    def failed(self, message: str) -> "PendingOperation":
        return replace(
            self,
            status=STATUS_ERROR,
            error=message,
            retry_count=self.retry_count + 1,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "sheetKey": self.sheet_key,
            "sheetName": self.sheet_name,
            "rowData": list(self.row_data),
            "createdAt": self.created_at,
            "status": self.status,
            "retryCount": self.retry_count,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PendingOperation":
        """Build a record from its persisted form.

        Raises ``KeyError``/``TypeError``/``ValueError`` when the mapping does
        not describe a valid record.
        """

        row = data["rowData"]
        if not isinstance(row, list):
            raise TypeError("rowData must be a list")
        status = data["status"]
        if status not in VALID_STATUSES:
            raise ValueError(f"Unknown status: {status}")
        retry_count = int(data.get("retryCount", 0))
        if retry_count < 0:
            raise ValueError("retryCount must be non-negative")
        error = data.get("error")
        return cls(
            id=str(data["id"]),
            sheet_key=str(data["sheetKey"]),
            sheet_name=str(data["sheetName"]),
            row_data=[str(cell) for cell in row],
            created_at=str(data.get("createdAt") or ""),
            status=status,
            error=str(error) if error is not None else None,
            retry_count=retry_count,
        )


__all__ = [
    "PendingOperation",
    "RETRYABLE_STATUSES",
    "STATUS_ERROR",
    "STATUS_PENDING",
    "STATUS_SYNCED",
    "STATUS_SYNCING",
    "VALID_STATUSES",
]
