# ui/pages/pending.py
from __future__ import annotations

import flet as ft

from core.settings import UI
from core.sheets import sheet_label
from datetime_utils import parse_iso
from models.pending_op import STATUS_ERROR, STATUS_PENDING, STATUS_SYNCING, PendingOperation
from ui.dialogs import confirm_dialog


STATUS_LABELS = {
    STATUS_PENDING: ("Pendente", "#A16207", "#FEF9C3"),
    STATUS_SYNCING: ("Sincronizando", "#1D4ED8", "#DBEAFE"),
    STATUS_ERROR: ("Erro", "#B91C1C", "#FEE2E2"),
}


class PendingPage:
    """Offline pendências: what is waiting, and manual retry/discard."""

    def __init__(self, app):
        self.app = app
        self._busy_id: str | None = None

        self.banner_text = ft.Text(weight=ft.FontWeight.W_600)
        self.banner_hint = ft.Text(size=12)
        self.banner = ft.Container(
            content=ft.Column([self.banner_text, self.banner_hint], spacing=2),
            padding=12,
            border_radius=8,
        )
        self.summary = ft.Text(color=UI.theme.text_subtle)
        self.sync_all_btn = ft.ElevatedButton(
            "Sincronizar tudo", icon=ft.Icons.SYNC, on_click=self.sync_all
        )
        self.clear_btn = ft.OutlinedButton(
            "Limpar tudo", icon=ft.Icons.DELETE_SWEEP_OUTLINED, on_click=self.confirm_clear
        )
        self.items = ft.ListView(spacing=8, expand=True)

        content = ft.Column(
            controls=[
                ft.Text("Pendências Offline", size=22, weight=ft.FontWeight.BOLD),
                self.banner,
                self.summary,
                ft.Row([self.sync_all_btn, self.clear_btn], spacing=8),
                self.items,
            ],
            spacing=12,
            expand=True,
        )
        self.view = ft.Container(content=content, expand=True, padding=16)
        self.load()

    # ---------- rendering ----------
    def _format_created(self, item: PendingOperation) -> str:
        dt = parse_iso(item.created_at)
        if dt is None:
            return "—"
        return dt.astimezone().strftime("%d/%m/%Y %H:%M")

    def _status_badge(self, status: str) -> ft.Control:
        label, color, bgcolor = STATUS_LABELS.get(status, (status, "#334155", "#E2E8F0"))
        return ft.Container(
            ft.Text(label, size=11, color=color),
            bgcolor=bgcolor,
            padding=ft.padding.symmetric(horizontal=8, vertical=2),
            border_radius=10,
        )

    def _item_card(self, item: PendingOperation) -> ft.Control:
        online = self.app.queue.is_online
        busy = self._busy_id == item.id or item.status == STATUS_SYNCING
        preview = " · ".join(cell for cell in item.row_data[1:6] if cell)
        lines = [
            ft.Row(
                [
                    ft.Text(sheet_label(item.sheet_key), weight=ft.FontWeight.BOLD),
                    self._status_badge(item.status),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            ft.Text(preview or "—", size=12),
            ft.Text(
                f"Criado em {self._format_created(item)} · tentativas: {item.retry_count}",
                size=11,
                color=UI.theme.text_subtle,
            ),
        ]
        if item.error:
            lines.append(ft.Text(item.error, size=11, color=UI.theme.offline_text))
        lines.append(
            ft.Row(
                [
                    ft.TextButton(
                        "Tentar novamente",
                        icon=ft.Icons.SEND,
                        disabled=not online or busy,
                        on_click=lambda e, item_id=item.id: self.app.page.run_task(self.sync_item, item_id),
                    ),
                    ft.TextButton(
                        "Descartar",
                        icon=ft.Icons.DELETE_OUTLINE,
                        disabled=busy,
                        on_click=lambda e, item_id=item.id: self.app.page.run_task(self.remove_item, item_id),
                    ),
                ],
                alignment=ft.MainAxisAlignment.END,
            )
        )
        return ft.Card(ft.Container(ft.Column(lines, spacing=4), padding=12))

    def load(self):
        queue = self.app.queue
        online = queue.is_online
        theme = UI.theme
        if online:
            self.banner_text.value = "Conexão ativa"
            self.banner_hint.value = "Pronto para sincronizar"
            self.banner.bgcolor = theme.online_bg
            self.banner_text.color = theme.online_text
        else:
            self.banner_text.value = "Sem conexão"
            self.banner_hint.value = "Os dados serão salvos localmente"
            self.banner.bgcolor = theme.offline_bg
            self.banner_text.color = theme.offline_text

        items = queue.pending_items
        counts = queue.counts()
        self.summary.value = (
            f"{len(items)} item(ns) · {counts[STATUS_PENDING]} pendente(s) · "
            f"{counts[STATUS_ERROR]} com erro"
        )
        self.sync_all_btn.disabled = not items or not online or queue.is_syncing
        self.sync_all_btn.text = "Sincronizando..." if queue.is_syncing else "Sincronizar tudo"
        self.clear_btn.disabled = not items

        self.items.controls = [self._item_card(item) for item in items]
        if not items:
            self.items.controls = [
                ft.Container(
                    ft.Text("Nenhuma pendência. Tudo sincronizado!", color=theme.text_subtle),
                    padding=24,
                    alignment=ft.alignment.center,
                )
            ]

    # ---------- actions ----------
    async def sync_item(self, item_id: str):
        self._busy_id = item_id
        self.load()
        self.app.page.update()
        try:
            await self.app.queue.sync_item(item_id)
        except Exception:
            self.app.toast("Erro ao sincronizar item")
        else:
            self.app.toast("Item sincronizado com sucesso!")
        finally:
            self._busy_id = None
            self.load()
            self.app.page.update()

    async def sync_all(self, _):
        await self.app.queue.sync_all()
        remaining = self.app.queue.counts()[STATUS_ERROR]
        if remaining:
            self.app.toast(f"{remaining} item(ns) não sincronizado(s)")
        else:
            self.app.toast("Todos os itens sincronizados!")

    async def remove_item(self, item_id: str):
        self.app.queue.remove_item(item_id)
        self.app.toast("Item removido")

    def confirm_clear(self, _):
        def _do_clear():
            self.app.queue.clear_all()
            self.app.toast("Todas as pendências foram removidas")

        confirm_dialog(
            self.app.page,
            title="Limpar todas as pendências?",
            message="Os registros não sincronizados serão perdidos.",
            on_confirm=_do_clear,
            confirm_label="Limpar",
        )
