from __future__ import annotations

import datetime as _dt
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

import discord

from .errors import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class WebhookConfig:
    """Configuration for optional operator alerts sent to a webhook."""

    enabled: bool
    url: Optional[str] = None
    username: Optional[str] = None


@dataclass(slots=True)
class BotConfig:
    """Runtime configuration for the bot."""

    token: str
    prefix: str = "!"
    owner_ids: FrozenSet[int] = frozenset()
    log_level: str = "INFO"
    json_logs: bool = False
    reply_timeout: float = 10.0
    alert_webhook: Optional[WebhookConfig] = None
    sync_commands: bool = False
    repo_url: Optional[str] = None
    invite_url: Optional[str] = None
    started_at: _dt.datetime = field(default_factory=discord.utils.utcnow)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean (got {raw!r}).")


def _parse_owner_ids(raw: str) -> FrozenSet[int]:
    owner_ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ConfigurationError(f"BOT_OWNER_IDS must be numeric user IDs (got {part!r}).")
        owner_ids.add(int(part))
    return frozenset(owner_ids)


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"BOT_REPLY_TIMEOUT must be a number (got {raw!r}).") from exc
    if timeout <= 0:
        raise ConfigurationError("BOT_REPLY_TIMEOUT must be positive.")
    return timeout


def load_config(environ: Optional[Mapping[str, str]] = None, *, token: Optional[str] = None) -> BotConfig:
    """Build a ``BotConfig`` from environment variables.

    ``token`` overrides ``DISCORD_TOKEN``; it is how an interactively entered
    token reaches the config.
    """
    env = os.environ if environ is None else environ

    token = (token or env.get("DISCORD_TOKEN", "")).strip()
    if not token:
        raise ConfigurationError("DISCORD_TOKEN is not set.")

    prefix = env.get("BOT_PREFIX", "!").strip()
    if not prefix:
        raise ConfigurationError("BOT_PREFIX cannot be empty.")

    log_level = env.get("BOT_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(
            f"BOT_LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))} (got {log_level!r})."
        )

    webhook = None
    webhook_url = env.get("BOT_ALERT_WEBHOOK_URL", "").strip()
    if webhook_url:
        if not webhook_url.startswith(("https://", "http://")):
            raise ConfigurationError("BOT_ALERT_WEBHOOK_URL must be an http(s) URL.")
        username = env.get("BOT_ALERT_WEBHOOK_USERNAME", "").strip()
        webhook = WebhookConfig(enabled=True, url=webhook_url, username=username or None)

    return BotConfig(
        token=token,
        prefix=prefix,
        owner_ids=_parse_owner_ids(env.get("BOT_OWNER_IDS", "")),
        log_level=log_level,
        json_logs=_parse_bool("BOT_JSON_LOGS", env.get("BOT_JSON_LOGS", "")),
        reply_timeout=_parse_timeout(env.get("BOT_REPLY_TIMEOUT", "10")),
        alert_webhook=webhook,
        sync_commands=_parse_bool("BOT_SYNC_COMMANDS", env.get("BOT_SYNC_COMMANDS", "")),
        repo_url=env.get("BOT_REPO_URL", "").strip() or None,
        invite_url=env.get("BOT_INVITE_URL", "").strip() or None,
    )
