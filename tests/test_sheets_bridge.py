"""Tests for the spreadsheet bridges."""

import json
from unittest.mock import MagicMock

import httpx
import httplib2
import pytest
from googleapiclient.errors import HttpError

from core.settings import BACKEND_SHEETS_API, SheetsSyncSettings
from services.sheets_bridge import (
    AppsScriptBridge,
    SheetsApiBridge,
    SheetsBridgeError,
    build_bridge,
)


URL = "https://script.google.com/macros/s/deploy-id/exec"


def _bridge(handler):
    return AppsScriptBridge(URL, "s3cret", "sheet-123", transport=httpx.MockTransport(handler))


class TestAppsScriptBridge:
    @pytest.mark.asyncio
    async def test_append_posts_command(self):
        seen = []

        def handler(request: httpx.Request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "row": 42})

        result = await _bridge(handler).append("Carga", ["10/01/2026", "EX-01"])

        assert result["row"] == 42
        assert seen == [
            {
                "authToken": "s3cret",
                "spreadsheetId": "sheet-123",
                "action": "append",
                "sheetName": "Carga",
                "rowData": ["10/01/2026", "EX-01"],
            }
        ]

    @pytest.mark.asyncio
    async def test_script_error_is_raised_with_message(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "Sheet not found: Carga"})

        with pytest.raises(SheetsBridgeError, match="Sheet not found: Carga"):
            await _bridge(handler).append("Carga", [])

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request):
            return httpx.Response(500, text="internal")

        with pytest.raises(SheetsBridgeError, match="HTTP 500"):
            await _bridge(handler).append("Carga", [])

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<!DOCTYPE html><html></html>")

        with pytest.raises(SheetsBridgeError, match="Invalid response"):
            await _bridge(handler).append("Carga", [])

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        with pytest.raises(SheetsBridgeError, match="Erro de conexão"):
            await _bridge(handler).append("Carga", [])

    @pytest.mark.asyncio
    async def test_follows_apps_script_redirect(self):
        def handler(request):
            if request.url.host == "script.google.com":
                return httpx.Response(302, headers={"Location": "https://script.googleusercontent.com/echo"})
            return httpx.Response(200, json={"success": True})

        result = await _bridge(handler).append("Carga", ["x"])
        assert result == {"success": True}

    @pytest.mark.asyncio
    async def test_missing_url(self):
        bridge = AppsScriptBridge("", "s3cret", "sheet-123")
        with pytest.raises(SheetsBridgeError, match="not configured"):
            await bridge.append("Carga", [])

    @pytest.mark.asyncio
    async def test_health_check_ok(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["action"])
            return httpx.Response(200, json={"success": True, "status": "ok"})

        result = await _bridge(handler).health_check()

        assert result.success is True
        assert seen == ["healthcheck"]

    @pytest.mark.asyncio
    async def test_health_check_html_page(self):
        def handler(request):
            return httpx.Response(200, text="<html><body>Sign in</body></html>")

        result = await _bridge(handler).health_check()

        assert result.success is False
        assert "HTML" in result.message

    @pytest.mark.asyncio
    async def test_health_check_connection_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        result = await _bridge(handler).health_check()

        assert result.success is False
        assert result.message.startswith("Erro de conexão")


class FakeAuth:
    def __init__(self):
        self.ensure_calls = 0

    def ensure_credentials(self):
        self.ensure_calls += 1
        return True

    def get_credentials(self):
        return object()


class TestSheetsApiBridge:
    @pytest.mark.asyncio
    async def test_append_uses_values_append(self):
        bridge = SheetsApiBridge(FakeAuth(), spreadsheet_id="sheet-123")
        service = MagicMock()
        service.spreadsheets.return_value.values.return_value.append.return_value.execute.return_value = {
            "updates": {"updatedRows": 1}
        }
        bridge.service = service

        result = await bridge.append("Mov_Cal", ["10/01/2026", "Entrada"])

        assert result["updates"]["updatedRows"] == 1
        service.spreadsheets.return_value.values.return_value.append.assert_called_once_with(
            spreadsheetId="sheet-123",
            range="'Mov_Cal'!A1",
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": [["10/01/2026", "Entrada"]]},
        )

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self):
        bridge = SheetsApiBridge(FakeAuth(), spreadsheet_id="sheet-123")
        service = MagicMock()
        resp = httplib2.Response({"status": 403, "reason": "Forbidden"})
        service.spreadsheets.return_value.values.return_value.append.return_value.execute.side_effect = HttpError(
            resp, b"denied"
        )
        bridge.service = service

        with pytest.raises(SheetsBridgeError, match="403"):
            await bridge.append("Carga", [])

    @pytest.mark.asyncio
    async def test_missing_spreadsheet_id(self, monkeypatch):
        monkeypatch.setattr("services.sheets_bridge.SHEETS_SYNC", SheetsSyncSettings())
        bridge = SheetsApiBridge(FakeAuth(), spreadsheet_id="")
        with pytest.raises(SheetsBridgeError, match="Spreadsheet id"):
            await bridge.append("Carga", [])


def test_build_bridge_picks_backend():
    apps = build_bridge(SheetsSyncSettings(apps_script_url=URL, spreadsheet_id="sheet-123"))
    assert isinstance(apps, AppsScriptBridge)
    assert apps.url == URL

    api = build_bridge(
        SheetsSyncSettings(backend=BACKEND_SHEETS_API, spreadsheet_id="sheet-123"),
        auth=FakeAuth(),
    )
    assert isinstance(api, SheetsApiBridge)
    assert api.spreadsheet_id == "sheet-123"
