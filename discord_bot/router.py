from __future__ import annotations

import datetime as _dt
from typing import Any, Callable, Optional, Protocol, assert_never

import discord
import structlog

from .classifiers import GENERIC_FAILURE, classify_argument_error, classify_command_error
from .diagnostics import LogRecord, Severity, emit
from .reply import ErrorReply, ReplyTarget, Resolution, deliver
from .taxonomy import (
    ArgumentParseFailure,
    CheckFailed,
    CommandFailure,
    CooldownActive,
    DmOnlyViolation,
    DynamicResolutionFailure,
    ErrorKind,
    GuildOnlyViolation,
    ListenerFailure,
    MissingBotCapability,
    MissingUserCapability,
    NotOwner,
    RestrictedContextViolation,
    SetupFailure,
    StructuralMismatch,
    Unclassified,
    kind_name,
)
from .utils import format_duration, time_after

logger = structlog.get_logger(__name__)


class AlertSink(Protocol):
    def submit(self, record: LogRecord) -> None: ...


class ErrorRouter:
    """Single entry point for every failure the framework reports.

    ``resolve`` is a pure routing table from ``ErrorKind`` to a reply and a
    log record; ``dispatch`` commits both. Nothing here is per-invocation
    state, so one router serves every concurrent invocation.
    """

    def __init__(
        self,
        *,
        log: Optional[Any] = None,
        reply_timeout: float = 10.0,
        clock: Callable[[], _dt.datetime] = discord.utils.utcnow,
        alerts: Optional[AlertSink] = None,
    ) -> None:
        self._log = log or logger
        self._reply_timeout = reply_timeout
        self._clock = clock
        self._alerts = alerts

    def resolve(
        self,
        kind: ErrorKind,
        *,
        command_name: Optional[str] = None,
        interactive: bool = False,
    ) -> Resolution:
        def record(severity: Severity, message: str, **extra: Any) -> LogRecord:
            fields = {"error_kind": kind_name(kind)}
            if command_name is not None:
                fields["command_name"] = command_name
            fields.update(extra)
            return LogRecord(severity, message, fields)

        match kind:
            case SetupFailure(error=error):
                return Resolution(
                    None, record(Severity.ERROR, f"Error during setup: {error}", error=str(error))
                )
            case ListenerFailure(event=event, error=error):
                return Resolution(
                    None,
                    record(
                        Severity.ERROR,
                        f"Error in event listener: {error}",
                        listener_event=event,
                        error=str(error),
                        error_debug=repr(error),
                    ),
                )
            case DynamicResolutionFailure(error=error):
                return Resolution(
                    None, record(Severity.ERROR, "Error in dynamic prefix", error=str(error))
                )
            case StructuralMismatch(description=description):
                return Resolution(
                    ErrorReply(GENERIC_FAILURE),
                    record(
                        Severity.ERROR,
                        f"Error in command structure: {description}",
                        description=description,
                    ),
                )
            case CooldownActive(remaining=remaining):
                available_at = time_after(remaining, self._clock())
                return Resolution(
                    ErrorReply(
                        "You're doing this too much. Try again "
                        f"{discord.utils.format_dt(available_at, style='R')}"
                    ),
                    record(
                        Severity.INFO,
                        "Cooldown hit",
                        remaining=format_duration(remaining),
                        remaining_seconds=remaining,
                    ),
                )
            case MissingBotCapability(capability_name=name):
                return Resolution(
                    ErrorReply(f"It seems like I am lacking the {name} permission"),
                    record(
                        Severity.ERROR,
                        f"Bot missing permissions: {name}",
                        missing_permissions=name,
                    ),
                )
            case MissingUserCapability(capability_name=name):
                # The user is not told which permission they lack.
                return Resolution(
                    ErrorReply("Missing permissions"),
                    record(
                        Severity.ERROR,
                        f"User missing permissions: {name}",
                        missing_permissions=name,
                    ),
                )
            case NotOwner():
                return Resolution(
                    ErrorReply("You need to be an owner to do this"),
                    record(Severity.INFO, "Owner check failed"),
                )
            case GuildOnlyViolation():
                return Resolution(
                    ErrorReply("This can only be ran in a server"),
                    record(Severity.INFO, "Guild-only command used outside a server"),
                )
            case DmOnlyViolation():
                return Resolution(
                    ErrorReply("This can only be used in DMs"),
                    record(Severity.INFO, "DM-only command used in a server"),
                )
            case RestrictedContextViolation():
                return Resolution(
                    ErrorReply("This can only be used in NSFW channels"),
                    record(Severity.INFO, "NSFW-only command used outside an NSFW channel"),
                )
            case CheckFailed(underlying=None):
                reply = ErrorReply("Insufficient permissions", private=True) if interactive else None
                return Resolution(reply, record(Severity.INFO, "Command check failed"))
            case CheckFailed(underlying=underlying):
                return Resolution(
                    ErrorReply("Something went wrong while checking your permissions"),
                    record(
                        Severity.ERROR,
                        f"Error while running command check: {underlying}",
                        error=str(underlying),
                        error_debug=repr(underlying),
                    ),
                )
            case ArgumentParseFailure(error=error, raw_input=raw_input):
                return classify_argument_error(error, raw_input, command_name)
            case CommandFailure(underlying=underlying):
                return classify_command_error(underlying, command_name)
            case Unclassified(underlying=underlying):
                return Resolution(
                    None,
                    record(
                        Severity.ERROR,
                        "Unhandled error received from the command framework",
                        error_debug=repr(underlying),
                    ),
                )
            case _:
                assert_never(kind)

    async def dispatch(self, kind: ErrorKind, target: Optional[ReplyTarget] = None) -> Resolution:
        """Resolve ``kind``, log it, then send the reply if there is somewhere to send it.

        This is the end of the line for a failure: it never raises.
        """
        resolution = self.resolve(
            kind,
            command_name=target.command_name if target is not None else None,
            interactive=target.interactive if target is not None else False,
        )
        emit(resolution.record, self._log)
        if self._alerts is not None and resolution.record.severity is Severity.ERROR:
            self._alerts.submit(resolution.record)
        if resolution.reply is not None and target is not None:
            await deliver(target, resolution.reply, timeout=self._reply_timeout)
        return resolution
