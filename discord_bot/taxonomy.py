"""The closed set of failure kinds the error pipeline understands.

Every exception that surfaces from command dispatch is turned into exactly
one ``ErrorKind`` by :func:`classify_failure`. The router matches the union
exhaustively, so a new kind without a routing branch fails type checking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from discord import app_commands
from discord.ext import commands

from .errors import CheckErrored, UserError


@dataclass(frozen=True, slots=True)
class SetupFailure:
    error: BaseException


@dataclass(frozen=True, slots=True)
class ListenerFailure:
    event: str
    error: BaseException


@dataclass(frozen=True, slots=True)
class ArgumentParseFailure:
    error: BaseException
    raw_input: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StructuralMismatch:
    description: str


@dataclass(frozen=True, slots=True)
class CooldownActive:
    remaining: float


@dataclass(frozen=True, slots=True)
class MissingBotCapability:
    capability_name: str


@dataclass(frozen=True, slots=True)
class MissingUserCapability:
    capability_name: str


@dataclass(frozen=True, slots=True)
class NotOwner:
    pass


@dataclass(frozen=True, slots=True)
class GuildOnlyViolation:
    pass


@dataclass(frozen=True, slots=True)
class DmOnlyViolation:
    pass


@dataclass(frozen=True, slots=True)
class RestrictedContextViolation:
    pass


@dataclass(frozen=True, slots=True)
class CheckFailed:
    underlying: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class CommandFailure:
    underlying: BaseException


@dataclass(frozen=True, slots=True)
class DynamicResolutionFailure:
    error: BaseException


@dataclass(frozen=True, slots=True)
class Unclassified:
    underlying: BaseException


ErrorKind = Union[
    SetupFailure,
    ListenerFailure,
    ArgumentParseFailure,
    StructuralMismatch,
    CooldownActive,
    MissingBotCapability,
    MissingUserCapability,
    NotOwner,
    GuildOnlyViolation,
    DmOnlyViolation,
    RestrictedContextViolation,
    CheckFailed,
    CommandFailure,
    DynamicResolutionFailure,
    Unclassified,
]


def kind_name(kind: ErrorKind) -> str:
    return type(kind).__name__


def format_permissions(names: Iterable[str]) -> str:
    return ", ".join(
        name.replace("_", " ").replace("guild", "server").title() for name in names
    )


def _format_roles(roles: Iterable[Union[str, int]]) -> str:
    return ", ".join(str(role) for role in roles)


def unwrap(error: BaseException) -> BaseException:
    """Strip the hybrid command wrapper so text and slash failures look alike."""
    while isinstance(error, commands.HybridCommandError):
        error = error.original
    return error


def _raw_input(error: BaseException, current_argument: Optional[str]) -> Optional[str]:
    for attribute in ("argument", "value"):
        value = getattr(error, attribute, None)
        if isinstance(value, str):
            return value
    return current_argument


def classify_failure(
    error: BaseException,
    *,
    current_argument: Optional[str] = None,
) -> ErrorKind:
    """Map an exception raised during command dispatch to its ``ErrorKind``.

    ``current_argument`` is the raw text of the argument being parsed when the
    failure happened, if the caller knows it.

    The order of the checks matters: most framework check failures subclass
    ``CheckFailure`` and must be recognised before the generic case.
    """
    error = unwrap(error)

    if isinstance(error, (commands.CommandInvokeError, app_commands.CommandInvokeError)):
        return CommandFailure(error.original)
    if isinstance(error, UserError):
        return CommandFailure(error)
    if isinstance(error, app_commands.CommandSignatureMismatch):
        return StructuralMismatch(str(error))
    if isinstance(error, (commands.CommandOnCooldown, app_commands.CommandOnCooldown)):
        return CooldownActive(error.retry_after)

    if isinstance(error, (commands.BotMissingPermissions, app_commands.BotMissingPermissions)):
        return MissingBotCapability(format_permissions(error.missing_permissions))
    if isinstance(error, commands.BotMissingRole):
        return MissingBotCapability(str(error.missing_role))
    if isinstance(error, commands.BotMissingAnyRole):
        return MissingBotCapability(_format_roles(error.missing_roles))

    if isinstance(error, (commands.MissingPermissions, app_commands.MissingPermissions)):
        return MissingUserCapability(format_permissions(error.missing_permissions))
    if isinstance(error, (commands.MissingRole, app_commands.MissingRole)):
        return MissingUserCapability(str(error.missing_role))
    if isinstance(error, (commands.MissingAnyRole, app_commands.MissingAnyRole)):
        return MissingUserCapability(_format_roles(error.missing_roles))

    if isinstance(error, commands.NotOwner):
        return NotOwner()
    if isinstance(error, (commands.NoPrivateMessage, app_commands.NoPrivateMessage)):
        return GuildOnlyViolation()
    if isinstance(error, commands.PrivateMessageOnly):
        return DmOnlyViolation()
    if isinstance(error, commands.NSFWChannelRequired):
        return RestrictedContextViolation()

    if isinstance(error, CheckErrored):
        return CheckFailed(error.original)
    if isinstance(error, (commands.CheckFailure, app_commands.CheckFailure)):
        return CheckFailed(None)

    if isinstance(error, app_commands.TransformerError):
        cause = error.__cause__
        if isinstance(cause, commands.UserInputError):
            return ArgumentParseFailure(cause, _raw_input(cause, str(error.value)))
        return ArgumentParseFailure(error, str(error.value))
    if isinstance(error, (commands.UserInputError, commands.ConversionError)):
        return ArgumentParseFailure(error, _raw_input(error, current_argument))

    return Unclassified(error)
