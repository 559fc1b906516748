"""Minimal Telegram Bot API client over httpx."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx

from mailrelay.services.http_client import HttpClient
from mailrelay.utils.logging import get_logger


class TelegramError(RuntimeError):
    """Raised when the Bot API cannot be reached or answers ``ok: false``."""


class TelegramClient:
    """Wraps the handful of Bot API methods the relay needs."""

    def __init__(self, http_client: HttpClient, token: str) -> None:
        self.http_client = http_client
        self._token = token
        self.logger = get_logger(self.__class__.__name__)

    async def _call(self, method: str, payload: Dict[str, Any], *, timeout: Optional[float] = None) -> Any:
        url = f"/bot{self._token}/{method}"
        try:
            async with self.http_client.session() as client:
                kwargs: Dict[str, Any] = {"json": payload}
                if timeout is not None:
                    kwargs["timeout"] = timeout
                response = await client.post(url, **kwargs)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            # Never leak the token through exception text.
            raise TelegramError(f"{method} failed: {type(exc).__name__}") from exc
        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else data
            raise TelegramError(f"{method} rejected: {description}")
        return data.get("result")

    async def get_updates(self, offset: int, *, timeout: int = 20) -> List[Dict[str, Any]]:
        result = await self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout},
            timeout=timeout + 10,
        )
        return list(result or [])

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = json.dumps(reply_markup)
        return await self._call("sendMessage", payload)

    async def answer_callback_query(self, callback_query_id: str, *, text: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)
