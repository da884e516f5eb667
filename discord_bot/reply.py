from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import aiohttp
import discord
import structlog
from discord.ext import commands

from .diagnostics import LogRecord

logger = structlog.get_logger(__name__)

ERROR_COLOR = discord.Color.red()


@dataclass(frozen=True, slots=True)
class ErrorReply:
    """A user-facing error message. ``private`` replies are author-only."""

    text: str
    private: bool = False


@dataclass(frozen=True, slots=True)
class Resolution:
    """What the pipeline decided to do about one failure."""

    reply: Optional[ErrorReply]
    record: LogRecord


class ReplyTarget(Protocol):
    @property
    def command_name(self) -> Optional[str]: ...

    @property
    def interactive(self) -> bool: ...

    async def send_error(self, text: str) -> None: ...

    async def send_private(self, text: str) -> None: ...


def error_embed(text: str) -> discord.Embed:
    return discord.Embed(description=text, color=ERROR_COLOR)


class ContextTarget:
    """Replies to a text (or hybrid) command invocation."""

    def __init__(self, ctx: commands.Context) -> None:
        self._ctx = ctx

    @property
    def command_name(self) -> Optional[str]:
        command = self._ctx.command
        return command.qualified_name if command is not None else None

    @property
    def interactive(self) -> bool:
        return self._ctx.interaction is not None

    async def send_error(self, text: str) -> None:
        await self._ctx.send(embed=error_embed(text))

    async def send_private(self, text: str) -> None:
        await self._ctx.send(text, ephemeral=True)


class InteractionTarget:
    """Replies to a slash command interaction, responding or following up."""

    def __init__(self, interaction: discord.Interaction) -> None:
        self._interaction = interaction

    @property
    def command_name(self) -> Optional[str]:
        command = self._interaction.command
        return command.qualified_name if command is not None else None

    @property
    def interactive(self) -> bool:
        return True

    async def send_error(self, text: str) -> None:
        await self._send(embed=error_embed(text))

    async def send_private(self, text: str) -> None:
        await self._send(content=text, ephemeral=True)

    async def _send(self, **kwargs) -> None:
        if self._interaction.response.is_done():
            await self._interaction.followup.send(**kwargs)
        else:
            await self._interaction.response.send_message(**kwargs)


async def deliver(target: ReplyTarget, reply: ErrorReply, *, timeout: float = 10.0) -> bool:
    """Best-effort delivery of ``reply``. Never raises; returns whether it was sent."""
    send = target.send_private if reply.private else target.send_error
    try:
        await asyncio.wait_for(send(reply.text), timeout=timeout)
    except (discord.DiscordException, aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning(
            "Failed to deliver error reply",
            command_name=target.command_name,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return False
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Unexpected failure while delivering error reply",
            command_name=target.command_name,
            error=repr(exc),
        )
        return False
    return True
