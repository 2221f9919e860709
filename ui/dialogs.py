from typing import Callable

import flet as ft


def close_alert_dialog(page: ft.Page, dlg: ft.AlertDialog):
    page.close(dlg)


def confirm_dialog(
    page: ft.Page,
    *,
    title: str,
    message: str,
    on_confirm: Callable[[], None],
    confirm_label: str = "Confirmar",
    cancel_label: str = "Cancelar",
) -> ft.AlertDialog:
    """Modal yes/no dialog; ``on_confirm`` runs on the page loop after the dialog is closed."""

    async def _confirm(_):
        close_alert_dialog(page, dlg)
        on_confirm()

    dlg = ft.AlertDialog(
        modal=True,
        title=ft.Text(title),
        content=ft.Text(message),
        actions=[
            ft.TextButton(cancel_label, on_click=lambda _: close_alert_dialog(page, dlg)),
            ft.TextButton(confirm_label, on_click=_confirm),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.open(dlg)
    return dlg
