# ui/app_shell.py
from __future__ import annotations

import asyncio
import logging

import flet as ft

from core.settings import CONNECTIVITY, SYNC_LOG_PATH, UI
from storage.config import load_config, resolve_sheets_settings

from .pages.carga import CargaPage
from .pages.pending import PendingPage
from .pages.settings import SettingsPage

from services.connectivity import EVENT_OFFLINE, EVENT_ONLINE, ConnectivityMonitor
from services.offline_sync import OfflineSyncQueue
from services.pending_store import PendingQueueStore
from services.sheets_append import SheetsAppendService
from services.sheets_bridge import build_bridge


logger = logging.getLogger(__name__)


class AppShell:
    def __init__(self, page: ft.Page):
        self.page = page

        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        # --- sync stack (before the pages, they read from it) ---
        self.settings = resolve_sheets_settings(load_config())
        self.monitor = ConnectivityMonitor()
        self.queue = OfflineSyncQueue(
            build_bridge(self.settings),
            PendingQueueStore(key=self.settings.storage_key),
            self.monitor,
            auto_sync_delay=self.settings.auto_sync_delay_sec,
        )
        self.appender = SheetsAppendService(self.queue, operator=self.settings.default_operator)

        # --- pages ---
        self._carga = CargaPage(self)
        self._pending = PendingPage(self)
        self._settings = SettingsPage(self)

        self.content = ft.Container(expand=True)
        self.status_chip = ft.Text(size=12)

        self.nav = ft.NavigationBar(
            selected_index=0,
            on_change=self.on_nav_change,
            destinations=[
                ft.NavigationBarDestination(icon=ft.Icons.LOCAL_SHIPPING_OUTLINED, label="Apontamento"),
                ft.NavigationBarDestination(icon=ft.Icons.CLOUD_OFF_OUTLINED, label="Pendências"),
                ft.NavigationBarDestination(icon=ft.Icons.SETTINGS_OUTLINED, label="Configurações"),
            ],
        )

        self.queue.subscribe(self._on_queue_changed)

    # ---------- helpers for pages ----------
    def toast(self, message: str) -> None:
        self.page.open(ft.SnackBar(ft.Text(message)))

    def apply_settings(self) -> None:
        """Rebuild the bridge after the connection settings were edited."""
        self.settings = resolve_sheets_settings(load_config())
        self.queue.bridge = build_bridge(self.settings)
        self.appender.operator = self.settings.default_operator

    def read_sync_log(self, lines: int = 100) -> str:
        try:
            with open(SYNC_LOG_PATH, "r", encoding="utf-8") as fh:
                content = fh.readlines()
        except FileNotFoundError:
            return "O log de sincronização ainda não foi criado."
        return "\n".join(line.rstrip("\n") for line in content[-lines:])

    def _refresh_status(self) -> None:
        counts = self.queue.counts()
        waiting = counts["pending"] + counts["error"]
        state = "Online" if self.queue.is_online else "Offline"
        self.status_chip.value = f"{state} · {waiting} pendente(s)"
        self.nav.destinations[1].label = f"Pendências ({waiting})" if waiting else "Pendências"

    def _on_queue_changed(self, _queue) -> None:
        self._refresh_status()
        self._pending.load()
        try:
            self.page.update()
        except Exception as exc:
            # page already torn down
            logger.debug("Page update skipped: %s", exc)

    # ---------- mount ----------
    def mount(self):
        self.page.controls.clear()
        self.page.appbar.actions = [ft.Container(self.status_chip, padding=ft.padding.only(right=16))]
        self.page.navigation_bar = self.nav
        self.page.add(self.content)
        self.content.content = self._carga.view
        self._refresh_status()
        self.page.on_disconnect = self._on_disconnect
        self.page.update()

        async def _start():
            self.queue.attach_loop(asyncio.get_running_loop())
            self.monitor.subscribe(EVENT_ONLINE, self._on_connectivity)
            self.monitor.subscribe(EVENT_OFFLINE, self._on_connectivity)
            self.monitor.start(CONNECTIVITY.poll_interval_sec)
            if self.queue.is_online and self.queue.has_retryable():
                await self.queue.sync_all()

        self.page.run_task(_start)

    async def _on_disconnect(self, _) -> None:
        self.close()

    def _on_connectivity(self) -> None:
        self._on_queue_changed(self.queue)

    def close(self) -> None:
        self.queue.close()
        self.monitor.close()

    # ---------- navigation ----------
    def on_nav_change(self, e: ft.ControlEvent):
        idx = int(e.control.selected_index)
        if idx == 0:
            self.content.content = self._carga.view
        elif idx == 1:
            self._pending.load()
            self.content.content = self._pending.view
        else:
            self._settings.refresh()
            self.content.content = self._settings.view
        self.page.update()
