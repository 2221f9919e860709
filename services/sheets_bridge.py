"""Clients that append rows to the production spreadsheet.

Two backends share the same ``append`` coroutine:

* :class:`AppsScriptBridge` posts to the Apps Script web app that owns the
  spreadsheet (the default deployment).
* :class:`SheetsApiBridge` talks to the Google Sheets API directly with the
  operator's OAuth credentials.

Every failure surfaces as :class:`SheetsBridgeError`; callers do not need to
tell validation, transport and script errors apart.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.settings import BACKEND_SHEETS_API, SHEETS_SYNC, SheetsSyncSettings


logger = logging.getLogger("apropriapp.sync.bridge")


class SheetsBridgeError(RuntimeError):
    """Raised when the remote side did not confirm the write."""


@dataclass(frozen=True)
class HealthCheckResult:
    success: bool
    message: str


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:20].lower()
    return head.startswith("<!") or head.startswith("<html")


class AppsScriptBridge:
    """POSTs JSON commands to the Apps Script web app."""

    def __init__(
        self,
        url: Optional[str] = None,
        secret: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        *,
        timeout: float = SHEETS_SYNC.request_timeout_sec,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = (url if url is not None else SHEETS_SYNC.apps_script_url).strip()
        self.secret = secret if secret is not None else SHEETS_SYNC.apps_script_secret
        self.spreadsheet_id = (
            spreadsheet_id if spreadsheet_id is not None else SHEETS_SYNC.spreadsheet_id
        )
        self.timeout = timeout
        self._transport = transport
        if not self.url:
            logger.warning("Google Apps Script URL not configured")

    def _client(self) -> httpx.AsyncClient:
        # Apps Script answers POSTs with a 302 to script.googleusercontent.com
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )

    async def _post(self, body: Dict[str, Any]) -> str:
        if not self.url:
            raise SheetsBridgeError("Google Apps Script URL not configured")
        payload = {"authToken": self.secret, "spreadsheetId": self.spreadsheet_id, **body}
        try:
            async with self._client() as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise SheetsBridgeError(f"Erro de conexão: {exc}") from exc
        if response.status_code >= 400:
            raise SheetsBridgeError(
                f"Apps Script returned HTTP {response.status_code}: {response.text[:200]}"
            )
        return response.text

    async def append(self, sheet_name: str, row_data: Sequence[str]) -> Dict[str, Any]:
        logger.debug("Appending row to %s", sheet_name)
        text = await self._post(
            {"action": "append", "sheetName": sheet_name, "rowData": list(row_data)}
        )
        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            logger.error("Failed to parse Apps Script response: %s", text[:200])
            raise SheetsBridgeError("Invalid response from Apps Script") from None
        if not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else None
            raise SheetsBridgeError(str(error or "Apps Script did not confirm the append"))
        return result

    async def health_check(self) -> HealthCheckResult:
        try:
            text = await self._post({"action": "healthcheck"})
        except SheetsBridgeError as exc:
            return HealthCheckResult(False, str(exc))

        if _looks_like_html(text):
            return HealthCheckResult(
                False,
                "Apps Script retornou página HTML. Verifique se o script está "
                "implantado corretamente como Web App.",
            )
        try:
            json.loads(text)
        except json.JSONDecodeError:
            return HealthCheckResult(False, f"Resposta inválida do Apps Script: {text[:100]}")
        return HealthCheckResult(True, "Apps Script está respondendo corretamente")


class SheetsApiBridge:
    """Appends through ``spreadsheets.values.append`` of the Sheets API."""

    def __init__(self, auth, spreadsheet_id: Optional[str] = None) -> None:
        self.auth = auth
        self.spreadsheet_id = spreadsheet_id or SHEETS_SYNC.spreadsheet_id
        self.service = None

    def connect(self) -> None:
        if self.service is not None:
            return
        self.auth.ensure_credentials()
        creds = self.auth.get_credentials()
        if not creds:
            raise SheetsBridgeError("Google credentials are not available")
        self.service = build("sheets", "v4", credentials=creds, cache_discovery=False)

    def _append_sync(self, sheet_name: str, row_data: List[str]) -> Dict[str, Any]:
        if not self.spreadsheet_id:
            raise SheetsBridgeError("Spreadsheet id not configured")
        self.connect()
        try:
            return (
                self.service.spreadsheets()
                .values()
                .append(
                    spreadsheetId=self.spreadsheet_id,
                    range=f"'{sheet_name}'!A1",
                    valueInputOption="USER_ENTERED",
                    insertDataOption="INSERT_ROWS",
                    body={"values": [row_data]},
                )
                .execute()
            )
        except HttpError as exc:
            status = getattr(exc, "resp", None) and getattr(exc.resp, "status", None)
            raise SheetsBridgeError(f"Sheets API error {status}: {exc}") from exc

    async def append(self, sheet_name: str, row_data: Sequence[str]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._append_sync, sheet_name, list(row_data))

    async def health_check(self) -> HealthCheckResult:
        def _probe():
            self.connect()
            return self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id).execute()

        try:
            meta = await asyncio.to_thread(_probe)
        except (HttpError, SheetsBridgeError, OSError, RuntimeError) as exc:
            return HealthCheckResult(False, f"Erro de conexão: {exc}")
        title = (meta.get("properties") or {}).get("title") or self.spreadsheet_id
        return HealthCheckResult(True, f"Planilha acessível: {title}")


def build_bridge(settings: SheetsSyncSettings = SHEETS_SYNC, auth=None):
    if settings.backend == BACKEND_SHEETS_API:
        if auth is None:
            from services.google_auth import GoogleAuth

            auth = GoogleAuth()
        return SheetsApiBridge(auth, spreadsheet_id=settings.spreadsheet_id)
    return AppsScriptBridge(
        settings.apps_script_url,
        settings.apps_script_secret,
        settings.spreadsheet_id,
        timeout=settings.request_timeout_sec,
    )


__all__ = [
    "AppsScriptBridge",
    "HealthCheckResult",
    "SheetsApiBridge",
    "SheetsBridgeError",
    "build_bridge",
]
