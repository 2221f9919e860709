# apropriapp/services/google_auth.py
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from core.settings import CLIENT_SECRET_PATH, TOKEN_PATH


logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]


class GoogleAuth:
    """OAuth credentials for the direct Sheets API backend."""

    def __init__(
        self,
        secrets_path: str | Path = CLIENT_SECRET_PATH,
        token_path: str | Path = TOKEN_PATH,
    ):
        self.secrets_path = Path(secrets_path)
        self.token_path = Path(token_path)
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.creds: Optional[Credentials] = None

    def ensure_credentials(self) -> bool:
        if self.creds and self.creds.valid and self._has_required_scopes(self.creds):
            return True

        if self.token_path.exists():
            try:
                self.creds = Credentials.from_authorized_user_file(str(self.token_path))
            except (ValueError, json.JSONDecodeError) as exc:
                logger.warning("Failed to load %s: %s; triggering reauth", self.token_path, exc)
                self.reset_credentials()

        if self.creds and not self._has_required_scopes(self.creds):
            logger.info("Token is missing the spreadsheets scope; requesting consent")
            self.reset_credentials()

        if self.creds and not self.creds.valid and self.creds.expired and self.creds.refresh_token:
            try:
                self.creds.refresh(Request())
            except RefreshError as exc:
                logger.warning("Token refresh failed: %s; forcing reauth", exc)
                self.reset_credentials()

        if not self.creds or not self.creds.valid:
            if not self.secrets_path.exists():
                raise FileNotFoundError(
                    f"Arquivo {self.secrets_path} não encontrado. "
                    "Crie um cliente OAuth (Desktop) no Google Cloud e baixe o JSON."
                )
            flow = InstalledAppFlow.from_client_secrets_file(str(self.secrets_path), SCOPES)
            logger.info("Running OAuth consent flow (local server)")
            self.creds = flow.run_local_server(port=0, access_type="offline", prompt="consent")

        if not self.creds:
            raise RuntimeError("Não foi possível obter credenciais do Google")

        self._persist_credentials(self.creds)
        self._log_active_scopes(self.creds.scopes)
        return True

    def get_credentials(self) -> Optional[Credentials]:
        return self.creds

    def reset_credentials(self) -> None:
        self.creds = None
        try:
            if self.token_path.exists():
                self.token_path.unlink()
                logger.info("Removed cached Google token")
        except OSError as exc:
            logger.warning("Failed to remove cached token: %s", exc)

    # ----- helpers -----
    def _persist_credentials(self, creds: Credentials) -> None:
        tmp_path = self.token_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(creds.to_json(), encoding="utf-8")
            os.replace(tmp_path, self.token_path)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    @staticmethod
    def _has_required_scopes(creds: Credentials) -> bool:
        current = set(creds.scopes or [])
        return all(scope in current for scope in SCOPES)

    def _log_active_scopes(self, scopes: Iterable[str] | None) -> None:
        scopes_list = sorted(set(scopes or []))
        logger.info("Active scopes: %s", ", ".join(scopes_list) if scopes_list else "—")


__all__ = ["GoogleAuth", "SCOPES"]
