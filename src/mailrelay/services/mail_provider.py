"""FireMail API client: create mailboxes, list and read their messages."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from mailrelay.services.http_client import HttpClient
from mailrelay.utils.logging import get_logger


class MailProviderError(RuntimeError):
    """Transport or decoding failure talking to the mail provider."""


def is_success(response: Dict[str, Any]) -> bool:
    return isinstance(response, dict) and response.get("status") == "success"


class FireMailClient:
    """Thin async wrapper over the FireMail REST endpoints.

    Responses are returned verbatim; callers decide what a non-``success``
    status means for them.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self.http_client = http_client
        self.logger = get_logger(self.__class__.__name__)

    async def _request(self, method: str, path: str, *, json: Optional[dict] = None) -> Dict[str, Any]:
        try:
            async with self.http_client.session() as client:
                response = await client.request(method, path, json=json)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MailProviderError(f"{method} {path} failed: {exc}") from exc
        if not isinstance(data, dict):
            raise MailProviderError(f"{method} {path} returned unexpected payload: {data!r}")
        return data

    async def create(self, local_part: str) -> Dict[str, Any]:
        return await self._request("POST", "/email/create", json={"email": local_part})

    async def check(self, mailbox: str) -> Dict[str, Any]:
        return await self._request("GET", f"/email/check/{mailbox}")

    async def message(self, mailbox: str, message_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/email/message/{mailbox}/{message_id}")
