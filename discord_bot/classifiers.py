"""Turn argument-parsing and command-body failures into replies and log records."""

from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

import discord
from discord.ext import commands

from .diagnostics import LogRecord, Severity
from .errors import InvalidDuration, ReferenceNotFound, Reported, UserError
from .reply import ErrorReply, Resolution

GENERIC_FAILURE = "Something went wrong"
USER_NOT_FOUND = "User not found"


def _fields(command_name: Optional[str], kind: str, **extra: Any) -> Dict[str, Any]:
    fields: Dict[str, Any] = {"error_kind": kind}
    if command_name is not None:
        fields["command_name"] = command_name
    fields.update(extra)
    return fields


def argument_error_message(error: BaseException, raw_input: Optional[str]) -> str:
    # First match wins; UserNotFound and MemberNotFound are both BadArgument.
    raw = raw_input or ""
    if isinstance(error, InvalidDuration):
        return f"'{raw}' is not a valid duration"
    if isinstance(error, commands.UserNotFound):
        return f"I couldn't find any user '{raw}'"
    if isinstance(error, commands.MemberNotFound):
        return f"I couldn't find any member '{raw}'"
    if isinstance(error, commands.TooManyArguments):
        return "Too many arguments"
    if isinstance(error, commands.MissingRequiredArgument):
        return "Too few arguments"
    if raw_input is not None:
        return f"Malformed argument '{raw_input}'"
    return "Command used incorrectly"


def classify_argument_error(
    error: BaseException,
    raw_input: Optional[str],
    command_name: Optional[str] = None,
) -> Resolution:
    message = argument_error_message(error, raw_input)
    record = LogRecord(
        Severity.INFO,
        "Argument parse failure",
        _fields(
            command_name,
            "ArgumentParseFailure",
            error_type=type(error).__name__,
            user_message=message,
        ),
    )
    return Resolution(ErrorReply(message), record)


def _classify_user_error(error: UserError, command_name: Optional[str]) -> Resolution:
    if isinstance(error, ReferenceNotFound):
        detail = {"user_error": "ReferenceNotFound"}
    elif isinstance(error, Reported):
        detail = {"user_error": "Reported", "user_error_message": error.message}
    else:
        detail = {"user_error": type(error).__name__, "user_error_message": str(error)}
    record = LogRecord(Severity.INFO, "User error", _fields(command_name, "CommandFailure", **detail))
    return Resolution(ErrorReply(error.user_message()), record)


def client_error_message(error: discord.DiscordException) -> str:
    if isinstance(error, discord.HTTPException):
        if error.status == 404 and "unknown user" in (error.text or "").lower():
            return USER_NOT_FOUND
        return GENERIC_FAILURE
    if isinstance(error, discord.ClientException):
        return str(error)
    return GENERIC_FAILURE


def classify_command_error(error: BaseException, command_name: Optional[str] = None) -> Resolution:
    """Classify an exception raised by a command body.

    Domain errors win outright. Errors from discord.py itself are reported
    generically, except for ``ClientException`` whose message is meant for
    users. Anything else is internal: the user gets the generic message and the
    log gets everything.
    """
    if isinstance(error, UserError):
        return _classify_user_error(error, command_name)

    if isinstance(error, discord.DiscordException):
        detail: Dict[str, Any] = {
            "error": str(error),
            "error_debug": repr(error),
            "error_type": type(error).__name__,
        }
        if isinstance(error, discord.HTTPException):
            detail["http_status"] = error.status
            detail["discord_code"] = error.code
        record = LogRecord(
            Severity.WARN,
            f"Discord error [handling {command_name}]: {error}",
            _fields(command_name, "CommandFailure", **detail),
        )
        return Resolution(ErrorReply(client_error_message(error)), record)

    record = LogRecord(
        Severity.WARN,
        f"Internal error [handling {command_name}]: {error}",
        _fields(
            command_name,
            "CommandFailure",
            error=str(error),
            error_debug=repr(error),
            error_type=type(error).__name__,
            traceback="".join(traceback.format_exception(error)),
        ),
    )
    return Resolution(ErrorReply(GENERIC_FAILURE), record)
