"""
Google Sheets logging sink for finished transcriptions
"""

from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

import httpx

from scribeai.config import settings
from scribeai.core.logging import get_logger, preview
from scribeai.services.google_api import GoogleApiClient, TokenProvider
from scribeai.services.property_store import PropertyStore, LOG_SPREADSHEET_ID_KEY

logger = get_logger(__name__)

HEADER_ROW = [
    "Timestamp", "Specialty", "Detail Level", "Template",
    "Transcript Preview", "Note Preview", "Full Transcript", "Full Note",
]


class SheetLogger(GoogleApiClient):
    """Appends one row per transcription. Failures never reach the caller."""

    service_name = "sheets"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider,
        store: PropertyStore,
        base_url: Optional[str] = None,
        enabled: Optional[bool] = None,
    ):
        super().__init__(http_client, token_provider)
        self.store = store
        self.base_url = (base_url or settings.sheets_api_base_url).rstrip("/")
        self.enabled = settings.sheet_logging_enabled if enabled is None else enabled
        self.sheet_name = settings.log_sheet_name

    async def _create_spreadsheet(self) -> str:
        response = await self._request(
            "POST",
            f"{self.base_url}/spreadsheets",
            json={
                "properties": {"title": settings.log_spreadsheet_title},
                "sheets": [{"properties": {"title": self.sheet_name}}],
            },
        )
        response.raise_for_status()
        spreadsheet_id = response.json()["spreadsheetId"]

        await self._append(spreadsheet_id, [HEADER_ROW])
        self.store.set(LOG_SPREADSHEET_ID_KEY, spreadsheet_id)
        logger.info(f"Created new log spreadsheet with ID: {spreadsheet_id}")
        return spreadsheet_id

    async def _append(self, spreadsheet_id: str, rows: List[list]) -> httpx.Response:
        cell_range = quote(f"'{self.sheet_name}'!A1", safe="")
        response = await self._request(
            "POST",
            f"{self.base_url}/spreadsheets/{spreadsheet_id}/values/{cell_range}:append",
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"values": rows},
        )
        response.raise_for_status()
        return response

    async def append_row(
        self,
        transcript: str,
        note: str,
        specialty: str,
        detail_level: str,
        template: str = "none",
    ) -> bool:
        """Returns True when the row was written."""
        if not self.enabled:
            return False

        row = [
            datetime.now(timezone.utc).isoformat(),
            specialty,
            detail_level,
            template,
            preview(transcript),
            preview(note),
            transcript,
            note,
        ]
        try:
            spreadsheet_id = self.store.get(LOG_SPREADSHEET_ID_KEY) or await self._create_spreadsheet()
            await self._append(spreadsheet_id, [row])
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                # spreadsheet was removed; recreate on next call
                self.store.delete(LOG_SPREADSHEET_ID_KEY)
            logger.warning(f"Failed to log to spreadsheet: {e}")
            return False
        except Exception as e:
            logger.warning(f"Failed to log to spreadsheet: {e}")
            return False

        logger.info(f"Logged transcription to spreadsheet: {spreadsheet_id}")
        return True
