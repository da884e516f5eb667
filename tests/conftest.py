"""Shared fixtures for the error pipeline tests."""

from __future__ import annotations

import datetime as _dt
from types import SimpleNamespace
from typing import Any, List, Optional
from unittest.mock import AsyncMock

import discord
import pytest

from discord_bot.router import ErrorRouter

FIXED_NOW = _dt.datetime(2024, 1, 1, 12, 0, 0, tzinfo=_dt.timezone.utc)


def http_error(
    status: int,
    message: Any,
    *,
    cls: type = discord.HTTPException,
    reason: str = "Error",
) -> discord.HTTPException:
    response = SimpleNamespace(status=status, reason=reason)
    return cls(response, message)


class RecordingTarget:
    """A reply target that records what would have been sent."""

    def __init__(
        self,
        command_name: Optional[str] = "slowmode",
        *,
        interactive: bool = False,
        fail_with: Optional[BaseException] = None,
    ) -> None:
        self._command_name = command_name
        self._interactive = interactive
        self.errors: List[str] = []
        self.private: List[str] = []
        self.send_error = AsyncMock(side_effect=self._record(self.errors, fail_with))
        self.send_private = AsyncMock(side_effect=self._record(self.private, fail_with))

    @staticmethod
    def _record(sink: List[str], fail_with: Optional[BaseException]):
        async def _send(text: str) -> None:
            if fail_with is not None:
                raise fail_with
            sink.append(text)

        return _send

    @property
    def command_name(self) -> Optional[str]:
        return self._command_name

    @property
    def interactive(self) -> bool:
        return self._interactive

    @property
    def sent(self) -> int:
        return self.send_error.await_count + self.send_private.await_count


@pytest.fixture
def router() -> ErrorRouter:
    return ErrorRouter(clock=lambda: FIXED_NOW, reply_timeout=1.0)


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()
