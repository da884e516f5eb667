"""Discord command bot with a unified error handling pipeline."""

from .bot import Bot
from .config import BotConfig, WebhookConfig, load_config
from .errors import ReferenceNotFound, Reported, UserError
from .router import ErrorRouter
from .taxonomy import ErrorKind, classify_failure

__all__ = [
    "Bot",
    "BotConfig",
    "WebhookConfig",
    "load_config",
    "ReferenceNotFound",
    "Reported",
    "UserError",
    "ErrorRouter",
    "ErrorKind",
    "classify_failure",
]
