import logging

import httpx
from fastapi import HTTPException, status

from storefront.core.config import settings

logger = logging.getLogger(__name__)


class SheetSyncClient:
    """
    Pushes a whole table to the external spreadsheet service, replacing the
    target sheet's contents.
    """

    def __init__(self, url: str, token: str | None = None, timeout: float = 30.0):
        self.url = url
        self.token = token
        self.timeout = timeout

    def replace_all(self, *, sheet_name: str, values: list[list[str]]) -> None:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        payload = {"sheet": sheet_name, "mode": "replace", "values": values}
        try:
            r = httpx.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Sheet sync to %s failed: %s", self.url, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Spreadsheet sync failed",
            ) from e
        logger.info("Synced %d row(s) to sheet %r", max(len(values) - 1, 0), sheet_name)


def get_sheet_client() -> SheetSyncClient:
    if not settings.SHEETS_SYNC_URL:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Spreadsheet sync is not configured",
        )
    return SheetSyncClient(
        settings.SHEETS_SYNC_URL,
        token=settings.SHEETS_SYNC_TOKEN,
        timeout=settings.SHEETS_SYNC_TIMEOUT,
    )
