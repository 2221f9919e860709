"""Form submission: append straight to the sheet, or queue when that fails."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from core.sheets import format_row, generate_id, sheet_name_for
from datetime_utils import format_br_time, format_br_timestamp
from services.offline_sync import OfflineSyncQueue


logger = logging.getLogger("apropriapp.sync.append")

MESSAGE_SAVED = "Registro salvo com sucesso"
MESSAGE_QUEUED = "Sem conexão: registro salvo para sincronizar depois"


@dataclass(frozen=True)
class SecondaryRow:
    """Row written to a second sheet alongside the main one (carga + lançamento)."""

    sheet_key: str
    data: Mapping[str, Any]


@dataclass(frozen=True)
class AppendResult:
    id: str
    queued: bool
    message: str
    secondary_id: Optional[str] = None
    secondary_queued: bool = False


class SheetsAppendService:
    def __init__(self, queue: OfflineSyncQueue, operator: str = "Sistema", clock=datetime.now):
        self.queue = queue
        self.operator = operator
        self._clock = clock

    def _stamp(self, data: Mapping[str, Any], row_id: str, now: datetime) -> Dict[str, Any]:
        return {
            **data,
            "ID": row_id,
            "Sincronizado": "Sim",
            "Timestamp": format_br_timestamp(now),
            "Hora": format_br_time(now),
            "Apontador": self.operator or "Sistema",
        }

    async def _deliver(self, sheet_key: str, row: list[str]) -> bool:
        """Send ``row`` now when possible; return True when it had to be queued."""
        sheet_name = sheet_name_for(sheet_key)
        if self.queue.is_online:
            try:
                await self.queue.bridge.append(sheet_name, row)
                return False
            except Exception as exc:
                logger.warning("Direct append to %s failed, queueing: %s", sheet_name, exc)
        self.queue.add_pending_append(sheet_key, sheet_name, row)
        return True

    async def submit(
        self,
        sheet_key: str,
        data: Mapping[str, Any],
        also_save_to: Optional[SecondaryRow] = None,
    ) -> AppendResult:
        now = self._clock()
        row_id = str(data.get("ID") or data.get("id") or generate_id())
        row = format_row(sheet_key, self._stamp(data, row_id, now))
        queued = await self._deliver(sheet_key, row)

        secondary_id = None
        secondary_queued = False
        if also_save_to is not None:
            secondary_id = generate_id()
            extra = {**self._stamp(also_save_to.data, secondary_id, now), "Origem_Carga": row_id}
            try:
                secondary_queued = await self._deliver(
                    also_save_to.sheet_key, format_row(also_save_to.sheet_key, extra)
                )
            except ValueError as exc:
                logger.warning("Error appending secondary row: %s", exc)
                secondary_id = None

        return AppendResult(
            id=row_id,
            queued=queued,
            message=MESSAGE_QUEUED if queued else MESSAGE_SAVED,
            secondary_id=secondary_id,
            secondary_queued=secondary_queued,
        )


__all__ = ["AppendResult", "SecondaryRow", "SheetsAppendService"]
