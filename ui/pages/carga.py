# ui/pages/carga.py
from __future__ import annotations

from datetime import date

import flet as ft

from datetime_utils import format_br_date, parse_br_date
from services.sheets_append import SecondaryRow


class CargaPage:
    """Carga entry form, optionally writing the matching lançamento row."""

    def __init__(self, app):
        self.app = app

        self.data = ft.TextField(label="Data", value=format_br_date(date.today()), width=160)
        self.local = ft.TextField(label="Local")
        self.estaca = ft.TextField(label="Estaca")
        self.escavadeira = ft.TextField(label="Escavadeira")
        self.empresa_esc = ft.TextField(label="Empresa (escavadeira)")
        self.operador = ft.TextField(label="Operador")
        self.caminhao = ft.TextField(label="Caminhão")
        self.empresa_cam = ft.TextField(label="Empresa (caminhão)")
        self.motorista = ft.TextField(label="Motorista")
        self.material = ft.TextField(label="Material")
        self.volume = ft.TextField(label="Volume (m³)", keyboard_type=ft.KeyboardType.NUMBER)
        self.viagens = ft.TextField(label="Nº de viagens", value="1", keyboard_type=ft.KeyboardType.NUMBER)
        self.lancamento = ft.Switch(label="Lançar descarga automaticamente", value=False)
        self.local_lancamento = ft.TextField(label="Local de lançamento")
        self.submit_btn = ft.ElevatedButton("Salvar", icon=ft.Icons.SAVE, on_click=self.submit)

        content = ft.Column(
            controls=[
                ft.Text("Apontamento de Carga", size=22, weight=ft.FontWeight.BOLD),
                self.data,
                ft.Row([self.local, self.estaca], spacing=8),
                ft.Row([self.escavadeira, self.empresa_esc], spacing=8),
                self.operador,
                ft.Row([self.caminhao, self.empresa_cam], spacing=8),
                self.motorista,
                self.material,
                ft.Row([self.volume, self.viagens], spacing=8),
                self.lancamento,
                self.local_lancamento,
                self.submit_btn,
            ],
            spacing=12,
            scroll=ft.ScrollMode.AUTO,
            expand=True,
        )
        self.view = ft.Container(content=content, expand=True, padding=16)

    def _collect(self) -> dict:
        return {
            "Data": (self.data.value or "").strip(),
            "Local": (self.local.value or "").strip(),
            "Estaca": (self.estaca.value or "").strip(),
            "Escavadeira": (self.escavadeira.value or "").strip(),
            "Empresa_Esc": (self.empresa_esc.value or "").strip(),
            "Operador": (self.operador.value or "").strip(),
            "Caminhao": (self.caminhao.value or "").strip(),
            "Empresa_Cam": (self.empresa_cam.value or "").strip(),
            "Motorista": (self.motorista.value or "").strip(),
            "Volume": (self.volume.value or "").strip(),
            "Material": (self.material.value or "").strip(),
            "N_Viagens": (self.viagens.value or "1").strip(),
            "Lancamento_Auto": "Sim" if self.lancamento.value else "Não",
            "Lancamento_Local": (self.local_lancamento.value or "").strip(),
        }

    def _secondary(self, row: dict) -> SecondaryRow | None:
        if not (self.lancamento.value and row["Lancamento_Local"]):
            return None
        return SecondaryRow(
            "descarga",
            {
                "Data": row["Data"],
                "Local": row["Lancamento_Local"],
                "Estaca": "",
                "Caminhao": row["Caminhao"],
                "Empresa": row["Empresa_Cam"],
                "Motorista": row["Motorista"],
                "Volume": row["Volume"],
                "Material": row["Material"],
                "N_Viagens": row["N_Viagens"],
            },
        )

    def _reset(self) -> None:
        for field in (self.caminhao, self.empresa_cam, self.motorista, self.volume):
            field.value = ""
        self.viagens.value = "1"

    async def submit(self, _):
        row = self._collect()
        if parse_br_date(row["Data"]) is None:
            self.app.toast("Data inválida (use dd/mm/aaaa)")
            return
        if not row["Caminhao"] or not row["Escavadeira"]:
            self.app.toast("Informe escavadeira e caminhão")
            return

        self.submit_btn.disabled = True
        self.app.page.update()
        try:
            result = await self.app.appender.submit("carga", row, self._secondary(row))
        except Exception as exc:
            self.app.toast(f"Erro ao salvar: {exc}")
        else:
            self._reset()
            self.app.toast(result.message)
        finally:
            self.submit_btn.disabled = False
            self.app.page.update()
