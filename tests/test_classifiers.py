"""Tests for the argument and command error classifiers."""

from __future__ import annotations

from types import SimpleNamespace

import discord
import pytest
from discord.ext import commands

from conftest import http_error
from discord_bot.classifiers import (
    GENERIC_FAILURE,
    argument_error_message,
    classify_argument_error,
    classify_command_error,
)
from discord_bot.diagnostics import Severity
from discord_bot.errors import InvalidDuration, ReferenceNotFound, Reported


class _DurationAndUser(InvalidDuration, commands.UserNotFound):
    """Satisfies both the duration and the user predicate."""


class _ManyAndFew(commands.TooManyArguments, commands.MissingRequiredArgument):
    def __init__(self) -> None:
        commands.TooManyArguments.__init__(self, "too many")


@pytest.mark.parametrize(
    ("error", "raw", "expected"),
    [
        (InvalidDuration("abc"), "abc", "'abc' is not a valid duration"),
        (commands.UserNotFound("bob"), "bob", "I couldn't find any user 'bob'"),
        (commands.MemberNotFound("alice"), "alice", "I couldn't find any member 'alice'"),
        (commands.TooManyArguments(), "extra words", "Too many arguments"),
        (
            commands.MissingRequiredArgument(SimpleNamespace(name="duration", displayed_name=None)),
            None,
            "Too few arguments",
        ),
        (commands.BadArgument("nope"), "12x", "Malformed argument '12x'"),
        (commands.BadArgument("nope"), None, "Command used incorrectly"),
    ],
)
def test_argument_messages(error, raw, expected):
    """Each argument failure maps to its fixed message."""
    assert argument_error_message(error, raw) == expected


def test_argument_priority_first_match_wins():
    """When several predicates match, the earlier one decides."""
    assert argument_error_message(_DurationAndUser("abc"), "abc") == "'abc' is not a valid duration"
    assert argument_error_message(_ManyAndFew(), "whatever") == "Too many arguments"


def test_argument_missing_raw_input_renders_empty():
    """Reference failures without raw input still render."""
    assert argument_error_message(commands.UserNotFound("x"), None) == "I couldn't find any user ''"


def test_argument_resolution_is_info():
    """Argument failures are user-caused and logged at info."""
    resolution = classify_argument_error(InvalidDuration("abc"), "abc", "slowmode")
    assert resolution.reply.text == "'abc' is not a valid duration"
    assert not resolution.reply.private
    assert resolution.record.severity is Severity.INFO
    assert resolution.record.fields["command_name"] == "slowmode"
    assert resolution.record.fields["error_kind"] == "ArgumentParseFailure"


def test_reference_not_found():
    """ReferenceNotFound has a fixed message and an info record."""
    resolution = classify_command_error(ReferenceNotFound("ghost"), "find")
    assert resolution.reply.text == "No user found with that name"
    assert resolution.record.severity is Severity.INFO


def test_reported_error_includes_message():
    """Reported errors show the handler's message and log the command name."""
    resolution = classify_command_error(Reported("duration too long"), "slowmode")
    assert resolution.reply.text == "Error: duration too long"
    assert resolution.record.severity is Severity.INFO
    assert resolution.record.fields["command_name"] == "slowmode"
    assert resolution.record.fields["user_error_message"] == "duration too long"


def test_unknown_user_http_error():
    """A 404 mentioning an unknown user becomes 'User not found'."""
    error = http_error(404, {"code": 10013, "message": "Unknown User"}, cls=discord.NotFound)
    resolution = classify_command_error(error, "avatar")
    assert resolution.reply.text == "User not found"
    assert resolution.record.severity is Severity.WARN
    assert resolution.record.fields["http_status"] == 404


def test_unknown_user_match_is_case_insensitive():
    """The unknown user match ignores case."""
    error = http_error(404, "UNKNOWN USER")
    assert classify_command_error(error, "avatar").reply.text == "User not found"


def test_other_not_found_is_generic():
    """Other 404s do not reveal anything."""
    error = http_error(404, {"code": 10003, "message": "Unknown Channel"}, cls=discord.NotFound)
    assert classify_command_error(error, "avatar").reply.text == GENERIC_FAILURE


def test_other_http_status_is_generic():
    """Non-404 transport failures are generic even when they mention users."""
    error = http_error(500, "unknown user")
    assert classify_command_error(error, "avatar").reply.text == GENERIC_FAILURE


def test_client_exception_passes_through():
    """Client-side validation messages are safe to show verbatim."""
    resolution = classify_command_error(discord.ClientException("invalid channel"), "say")
    assert resolution.reply.text == "invalid channel"
    assert resolution.record.severity is Severity.WARN
    assert resolution.record.fields["error_debug"] == repr(discord.ClientException("invalid channel"))


def test_other_discord_exception_is_generic():
    """Library errors outside the known sub-cases are generic."""
    resolution = classify_command_error(discord.DiscordException("secret detail"), "say")
    assert resolution.reply.text == GENERIC_FAILURE
    assert "secret detail" not in resolution.reply.text


def test_internal_error_never_leaks():
    """Unclassified errors show the generic message and log full detail."""
    try:
        raise KeyError("database password")
    except KeyError as exc:
        error = exc

    resolution = classify_command_error(error, "whois")
    assert resolution.reply.text == GENERIC_FAILURE
    assert resolution.record.severity is Severity.WARN
    assert "database password" in resolution.record.fields["error_debug"]
    assert "KeyError" in resolution.record.fields["traceback"]
    assert resolution.record.fields["command_name"] == "whois"


def test_classification_is_idempotent():
    """Classifying equivalent errors twice gives equal results."""
    error = http_error(404, "Unknown User")
    assert classify_command_error(error, "avatar") == classify_command_error(error, "avatar")
    first = classify_argument_error(commands.TooManyArguments(), "x", "say")
    second = classify_argument_error(commands.TooManyArguments(), "x", "say")
    assert first == second
