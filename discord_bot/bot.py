from __future__ import annotations

import sys
from typing import List, Optional, Sequence, cast

import discord
import structlog
from discord import app_commands
from discord.ext import commands

from .config import BotConfig
from .reply import ContextTarget, InteractionTarget
from .router import ErrorRouter
from .taxonomy import DynamicResolutionFailure, ListenerFailure, SetupFailure, classify_failure
from .webhook import ErrorWebhook

logger = structlog.get_logger(__name__)

DEFAULT_EXTENSIONS = ("discord_bot.cogs.general",)


def resolve_prefix(bot: "Bot", message: discord.Message) -> List[str]:
    return commands.when_mentioned_or(bot.config.prefix)(bot, message)


class ErrorHandlingTree(app_commands.CommandTree):
    """Routes slash command failures through the bot's error router."""

    async def on_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        client = cast(Bot, self.client)
        await client.router.dispatch(classify_failure(error), InteractionTarget(interaction))


class Bot(commands.Bot):
    def __init__(
        self,
        config: BotConfig,
        *,
        router: Optional[ErrorRouter] = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        intents: Optional[discord.Intents] = None,
    ) -> None:
        intents = intents or discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(
            command_prefix=resolve_prefix,
            intents=intents,
            owner_ids=set(config.owner_ids),
            tree_cls=ErrorHandlingTree,
        )
        self.config = config
        self._extensions = tuple(extensions)
        self._alerts: Optional[ErrorWebhook] = None
        if router is None:
            if config.alert_webhook:
                self._alerts = ErrorWebhook(config.alert_webhook)
            router = ErrorRouter(reply_timeout=config.reply_timeout, alerts=self._alerts)
        self.router = router

    async def setup_hook(self) -> None:
        for extension in self._extensions:
            try:
                await self.load_extension(extension)
            except commands.ExtensionError as exc:
                await self.router.dispatch(SetupFailure(exc))

        if self.config.sync_commands:
            try:
                synced = await self.tree.sync()
            except discord.HTTPException as exc:
                await self.router.dispatch(SetupFailure(exc))
            else:
                logger.info("Synced application commands", count=len(synced))

    async def on_ready(self) -> None:
        logger.info("Connected to Discord", user=str(self.user), guilds=len(self.guilds))

    async def get_prefix(self, message: discord.Message):
        try:
            return await super().get_prefix(message)
        except Exception as exc:  # noqa: BLE001
            await self.router.dispatch(DynamicResolutionFailure(exc))
            return commands.when_mentioned(self, message)

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.CommandNotFound):
            logger.debug("Ignoring unknown command", invoked_with=ctx.invoked_with)
            return
        kind = classify_failure(error, current_argument=ctx.current_argument)
        await self.router.dispatch(kind, ContextTarget(ctx))

    async def on_error(self, event_method: str, /, *args, **kwargs) -> None:
        error = sys.exc_info()[1]
        if error is None:
            error = RuntimeError(f"{event_method} failed without an active exception")
        await self.router.dispatch(ListenerFailure(event_method, error))

    async def close(self) -> None:
        try:
            if self._alerts:
                await self._alerts.close()
        finally:
            await super().close()
