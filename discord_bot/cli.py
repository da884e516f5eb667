from __future__ import annotations

import getpass
import os
import sys
from typing import Mapping, Optional

from .config import BotConfig, load_config
from .errors import ConfigurationError

WARNING_BANNER = "=" * 72


def display_intro() -> None:
    warning = (
        "No DISCORD_TOKEN found in the environment.\n"
        "The bot token will not be displayed and is only kept in memory for this run.\n"
        "Never share your token and keep it secure."
    )
    print(f"{WARNING_BANNER}\n{warning}\n{WARNING_BANNER}")


def _prompt_token() -> str:
    return getpass.getpass("Enter the bot token: ").strip()


def collect_configuration(
    environ: Optional[Mapping[str, str]] = None,
    *,
    interactive: Optional[bool] = None,
) -> BotConfig:
    """Load configuration, prompting for the token when it is missing and a terminal is attached."""
    env = os.environ if environ is None else environ
    if interactive is None:
        interactive = sys.stdin.isatty()

    token = env.get("DISCORD_TOKEN", "").strip()
    if not token and interactive:
        display_intro()
        token = _prompt_token()
        while not token:
            print("Token cannot be empty. Please try again.")
            token = _prompt_token()
    if not token:
        raise ConfigurationError("DISCORD_TOKEN is not set and no terminal is available to prompt for it.")

    return load_config(env, token=token)
