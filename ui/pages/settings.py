# ui/pages/settings.py
import flet as ft

from core.settings import BACKEND_APPS_SCRIPT, BACKEND_SHEETS_API
from storage.config import load_config, update_config


class SettingsPage:
    def __init__(self, app):
        self.app = app

        self.backend = ft.Dropdown(
            label="Destino",
            options=[
                ft.dropdown.Option(BACKEND_APPS_SCRIPT, "Apps Script (Web App)"),
                ft.dropdown.Option(BACKEND_SHEETS_API, "Google Sheets API"),
            ],
        )
        self.url = ft.TextField(label="URL do Apps Script")
        self.secret = ft.TextField(label="Chave do Apps Script", password=True, can_reveal_password=True)
        self.spreadsheet = ft.TextField(label="ID da planilha")
        self.operator = ft.TextField(label="E-mail do apontador")
        self.status = ft.Text()

        self.save_btn = ft.ElevatedButton("Salvar", icon=ft.Icons.SAVE, on_click=self.save)
        self.test_btn = ft.OutlinedButton(
            "Testar conexão", icon=ft.Icons.NETWORK_CHECK, on_click=self.test_connection
        )
        self.refresh_log_btn = ft.TextButton(
            "Atualizar log", icon=ft.Icons.ARTICLE, on_click=self.refresh_log
        )
        self.log_view = ft.Text("", selectable=True, size=11)

        content = ft.Column(
            controls=[
                ft.Text("Configurações", size=22, weight=ft.FontWeight.BOLD),
                self.backend,
                self.url,
                self.secret,
                self.spreadsheet,
                self.operator,
                ft.Row([self.save_btn, self.test_btn], spacing=12),
                self.status,
                ft.Column([
                    ft.Text("Log de sincronização", size=16, weight=ft.FontWeight.W_600),
                    ft.Container(self.log_view, height=200, padding=10, bgcolor=ft.Colors.SURFACE_VARIANT),
                    self.refresh_log_btn,
                ], spacing=8),
            ],
            expand=True,
            spacing=12,
            scroll=ft.ScrollMode.AUTO,
        )

        self.view = ft.Container(content=content, expand=True, padding=16)
        self.refresh()

    def refresh(self):
        cfg = load_config()
        current = self.app.settings
        self.backend.value = cfg.backend or current.backend
        self.url.value = cfg.apps_script_url or current.apps_script_url
        self.secret.value = cfg.apps_script_secret or ""
        self.spreadsheet.value = cfg.spreadsheet_id or current.spreadsheet_id
        self.operator.value = cfg.operator_email or ""
        self.log_view.value = self.app.read_sync_log()

    async def save(self, _):
        try:
            update_config(
                backend=self.backend.value,
                apps_script_url=(self.url.value or "").strip() or None,
                apps_script_secret=self.secret.value or None,
                spreadsheet_id=(self.spreadsheet.value or "").strip() or None,
                operator_email=(self.operator.value or "").strip() or None,
            )
            self.app.apply_settings()
            self.status.value = ""
            self.app.toast("Configurações salvas")
        except Exception as e:
            self.status.value = f"Erro ao salvar: {e}"
            self.app.page.update()

    async def test_connection(self, _):
        self.status.value = "Testando..."
        self.app.page.update()
        result = await self.app.queue.bridge.health_check()
        self.status.value = result.message
        self.status.color = "#047857" if result.success else "#B91C1C"
        self.app.page.update()

    def refresh_log(self, _):
        self.log_view.value = self.app.read_sync_log()
        self.app.page.update()
