import asyncio
import inspect
from types import SimpleNamespace

import pytest

from services.connectivity import ConnectivityMonitor
from services.offline_sync import OfflineSyncQueue
from services.pending_store import PendingQueueStore
from ui.app_shell import AppShell
from ui.dialogs import confirm_dialog
from ui.pages.pending import PendingPage
from ui.pages.settings import SettingsPage


class FakePage:
    def __init__(self):
        self.opened = []
        self.closed = []

    def open(self, control):
        self.opened.append(control)

    def close(self, control):
        self.closed.append(control)

    def update(self):
        pass


class NullBridge:
    async def append(self, sheet_name, row_data):
        return {"success": True}


def test_queue_mutating_handlers_run_on_the_loop():
    # Flet dispatches plain functions to a worker thread; coroutines stay on the page loop
    assert inspect.iscoroutinefunction(PendingPage.remove_item)
    assert inspect.iscoroutinefunction(PendingPage.sync_item)
    assert inspect.iscoroutinefunction(SettingsPage.save)
    assert inspect.iscoroutinefunction(AppShell._on_disconnect)


@pytest.mark.asyncio
async def test_confirm_dialog_confirms_on_the_loop():
    page = FakePage()
    calls = []

    dlg = confirm_dialog(page, title="Limpar?", message="...", on_confirm=lambda: calls.append("ok"))

    assert page.opened == [dlg]
    handler = dlg.actions[1].on_click
    assert asyncio.iscoroutinefunction(handler)
    await handler(None)
    assert calls == ["ok"]
    assert page.closed == [dlg]


@pytest.mark.asyncio
async def test_pending_page_discard_removes_item(kv):
    queue = OfflineSyncQueue(
        NullBridge(),
        PendingQueueStore(kv, key="ui_tests"),
        ConnectivityMonitor(probe=lambda: False),
        auto_sync_delay=60,
    )
    item_id = queue.add_pending_append("carga", "Carga", ["a"])
    messages = []
    app = SimpleNamespace(queue=queue, page=FakePage(), toast=messages.append)
    page = PendingPage(app)

    await page.remove_item(item_id)

    assert queue.pending_items == []
    assert messages == ["Item removido"]
