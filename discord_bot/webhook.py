from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Set

import aiohttp
import structlog

from .config import WebhookConfig
from .diagnostics import LogRecord

logger = structlog.get_logger(__name__)

TITLE_LIMIT = 256
FIELD_VALUE_LIMIT = 1024
FIELD_LIMIT = 25
ALERT_COLOR = 0xE74C3C


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def build_alert_payload(record: LogRecord, username: Optional[str] = None) -> Dict[str, Any]:
    fields = [
        {"name": str(name), "value": _truncate(str(value) or "-", FIELD_VALUE_LIMIT), "inline": False}
        for name, value in list(record.fields.items())[:FIELD_LIMIT]
    ]
    data: Dict[str, Any] = {
        "embeds": [
            {
                "title": _truncate(record.message, TITLE_LIMIT),
                "description": f"Severity: **{record.severity.value}**",
                "color": ALERT_COLOR,
                "fields": fields,
            }
        ],
    }
    if username:
        data["username"] = username
    return data


class ErrorWebhook:
    """Forwards error records to an operator webhook without blocking the caller."""

    def __init__(self, config: WebhookConfig) -> None:
        self._config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._pending: Set[asyncio.Task] = set()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=30)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def submit(self, record: LogRecord) -> None:
        if not self._config.enabled or not self._config.url:
            return
        task = asyncio.get_running_loop().create_task(self._post(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, record: LogRecord) -> None:
        try:
            session = await self._ensure_session()
            data = build_alert_payload(record, self._config.username)
            async with session.post(self._config.url, json=data) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.warning(
                        "Alert webhook rejected the request",
                        status=response.status,
                        body=_truncate(body, 200),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Alert webhook request failed", error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Alert webhook post crashed", error=repr(exc))

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._session and not self._session.closed:
            await self._session.close()
