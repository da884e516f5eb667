from __future__ import annotations

import datetime as _dt
import functools
import re
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import discord
from discord.ext import commands

from .errors import CheckErrored, InvalidDuration

T = TypeVar("T")

DURATION_PART_REGEX = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)", re.IGNORECASE)

_UNIT_SECONDS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}

_DISPLAY_UNITS = (("w", 604800), ("d", 86400), ("h", 3600), ("m", 60), ("s", 1))


def parse_duration(text: str) -> _dt.timedelta:
    """Parse compound human durations such as ``1h30m``, ``90s`` or ``2 days``."""
    cleaned = text.strip()
    if not cleaned:
        raise InvalidDuration(text)

    total = 0.0
    position = 0
    for match in DURATION_PART_REGEX.finditer(cleaned):
        if cleaned[position:match.start()].strip(" ,"):
            raise InvalidDuration(text)
        amount, unit = match.groups()
        factor = _UNIT_SECONDS.get(unit.lower())
        if factor is None:
            raise InvalidDuration(text)
        total += float(amount) * factor
        position = match.end()

    if position == 0 or cleaned[position:].strip(" ,"):
        raise InvalidDuration(text)
    try:
        return _dt.timedelta(seconds=total)
    except (OverflowError, ValueError) as exc:
        raise InvalidDuration(text) from exc


class Duration(commands.Converter[_dt.timedelta]):
    """Converter for duration arguments, usable by text and slash commands."""

    async def convert(self, ctx: commands.Context, argument: str) -> _dt.timedelta:
        return parse_duration(argument)


def format_duration(seconds: float) -> str:
    remaining = max(0, int(round(seconds)))
    if remaining == 0:
        return "0s"
    parts: List[str] = []
    for suffix, size in _DISPLAY_UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount}{suffix}")
    return " ".join(parts)


def time_after(seconds: float, now: Optional[_dt.datetime] = None) -> _dt.datetime:
    now = now or discord.utils.utcnow()
    return now + _dt.timedelta(seconds=seconds)


def guarded_check(
    predicate: Callable[[commands.Context], Awaitable[bool]],
) -> Callable[[T], T]:
    """Like ``commands.check`` but reports a predicate that raises as ``CheckErrored``.

    Plain ``commands.CheckFailure`` raised by the predicate keeps its meaning
    ("check said no"); any other exception means the check itself broke.
    """

    @functools.wraps(predicate)
    async def _wrapped(ctx: Any) -> bool:
        try:
            return await predicate(ctx)
        except (commands.CheckFailure, discord.app_commands.CheckFailure):
            raise
        except Exception as exc:  # noqa: BLE001
            raise CheckErrored(exc) from exc

    return commands.check(_wrapped)
