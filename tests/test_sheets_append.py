from datetime import datetime

import pytest

from core.sheets import SHEET_COLUMNS
from services.connectivity import ConnectivityMonitor
from services.offline_sync import OfflineSyncQueue
from services.pending_store import PendingQueueStore
from services.sheets_append import (
    MESSAGE_QUEUED,
    MESSAGE_SAVED,
    SecondaryRow,
    SheetsAppendService,
)
from services.sheets_bridge import SheetsBridgeError


FIXED_NOW = datetime(2026, 1, 10, 8, 15, 42)


class RecordingBridge:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    async def append(self, sheet_name, row_data):
        self.calls.append((sheet_name, list(row_data)))
        if self.fail:
            raise SheetsBridgeError("Apps Script returned HTTP 503")
        return {"success": True}


def _service(kv, bridge, *, online=True):
    queue = OfflineSyncQueue(
        bridge,
        PendingQueueStore(kv, key="append_tests"),
        ConnectivityMonitor(probe=lambda: online),
        auto_sync_delay=60,
    )
    return SheetsAppendService(queue, operator="joao@obra.com", clock=lambda: FIXED_NOW)


def _column(sheet_key, row, name):
    return row[SHEET_COLUMNS[sheet_key].index(name)]


@pytest.mark.asyncio
async def test_online_submit_appends_directly(kv):
    bridge = RecordingBridge()
    service = _service(kv, bridge)

    result = await service.submit("mov_cal", {"Data": "10/01/2026", "Tipo": "Entrada", "Quantidade": "12"})

    assert result.queued is False
    assert result.message == MESSAGE_SAVED
    assert service.queue.pending_items == []
    sheet_name, row = bridge.calls[0]
    assert sheet_name == "Mov_Cal"
    assert _column("mov_cal", row, "ID") == result.id
    assert _column("mov_cal", row, "Apontador") == "joao@obra.com"
    assert _column("mov_cal", row, "Hora") == "08:15"
    assert _column("mov_cal", row, "Timestamp") == "10/01/2026 08:15:42"
    assert _column("mov_cal", row, "Sincronizado") == "Sim"


@pytest.mark.asyncio
async def test_explicit_id_is_kept(kv):
    bridge = RecordingBridge()
    result = await _service(kv, bridge).submit("mov_cal", {"ID": "fixed-1", "Tipo": "Saída"})

    assert result.id == "fixed-1"
    assert bridge.calls[0][1][0] == "fixed-1"


@pytest.mark.asyncio
async def test_failed_append_is_queued(kv):
    bridge = RecordingBridge(fail=True)
    service = _service(kv, bridge)

    result = await service.submit("mov_cal", {"Tipo": "Entrada"})

    assert result.queued is True
    assert result.message == MESSAGE_QUEUED
    [item] = service.queue.pending_items
    assert item.sheet_name == "Mov_Cal"
    assert item.status == "pending"
    assert item.row_data == bridge.calls[0][1]


@pytest.mark.asyncio
async def test_offline_submit_skips_bridge(kv):
    bridge = RecordingBridge()
    service = _service(kv, bridge, online=False)

    result = await service.submit("carga", {"Escavadeira": "EX-01", "Caminhao": "CB-02"})

    assert result.queued is True
    assert bridge.calls == []
    [item] = service.queue.pending_items
    assert item.sheet_key == "carga"
    assert _column("carga", item.row_data, "Escavadeira") == "EX-01"


@pytest.mark.asyncio
async def test_secondary_row_points_back_to_primary(kv):
    bridge = RecordingBridge()
    service = _service(kv, bridge)

    result = await service.submit(
        "carga",
        {"Local": "Trecho 2", "Caminhao": "CB-02"},
        also_save_to=SecondaryRow("descarga", {"Local": "Bota-fora 1", "Caminhao": "CB-02"}),
    )

    assert [name for name, _ in bridge.calls] == ["Carga", "Descarga"]
    secondary = bridge.calls[1][1]
    assert result.secondary_id and result.secondary_id != result.id
    assert _column("descarga", secondary, "ID") == result.secondary_id
    assert _column("descarga", secondary, "Origem_Carga") == result.id
    assert _column("descarga", secondary, "Local") == "Bota-fora 1"
    assert result.secondary_queued is False


@pytest.mark.asyncio
async def test_secondary_row_queued_when_offline(kv):
    service = _service(kv, RecordingBridge(), online=False)

    result = await service.submit(
        "carga",
        {"Caminhao": "CB-02"},
        also_save_to=SecondaryRow("descarga", {"Caminhao": "CB-02"}),
    )

    assert result.queued is True
    assert result.secondary_queued is True
    assert [item.sheet_key for item in service.queue.pending_items] == ["carga", "descarga"]


@pytest.mark.asyncio
async def test_unknown_secondary_sheet_is_skipped(kv):
    bridge = RecordingBridge()
    result = await _service(kv, bridge).submit(
        "carga", {"Caminhao": "CB-02"}, also_save_to=SecondaryRow("estoque", {})
    )

    assert result.secondary_id is None
    assert len(bridge.calls) == 1
