from __future__ import annotations

from typing import Optional

from discord import app_commands
from discord.ext import commands


class DiscordBotError(Exception):
    """Base exception for the Discord bot."""


class ConfigurationError(DiscordBotError):
    """Raised when the provided configuration is invalid."""


class UserError(DiscordBotError):
    """Raised by command handlers for expected, user-facing failures.

    Anything a handler raises that is not a ``UserError`` is treated as an
    internal failure and never shown to the user verbatim.
    """

    def user_message(self) -> str:
        return f"Error: {self}"


class ReferenceNotFound(UserError):
    """A mentioned or named user could not be resolved."""

    def __init__(self, reference: Optional[str] = None) -> None:
        super().__init__(f"No user found matching {reference!r}" if reference else "No user found")
        self.reference = reference

    def user_message(self) -> str:
        return "No user found with that name"


class Reported(UserError):
    """The handler understands the problem and tells the user about it."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidDuration(commands.BadArgument):
    """Raised when a duration argument cannot be parsed."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"{argument!r} is not a valid duration")
        self.argument = argument


class CheckErrored(commands.CheckFailure, app_commands.CheckFailure):
    """A check predicate raised instead of returning a verdict."""

    def __init__(self, original: BaseException) -> None:
        super().__init__(f"Check raised {type(original).__name__}: {original}")
        self.original = original
