from __future__ import annotations

import datetime as _dt
import math
import re
from typing import TYPE_CHECKING, List, Optional, Tuple

import discord
from discord.ext import commands

from ..errors import ReferenceNotFound, Reported
from ..utils import Duration, format_duration, guarded_check

if TYPE_CHECKING:
    from ..bot import Bot

MAX_SLOWMODE = _dt.timedelta(hours=6)
MAX_QUESTION_LENGTH = 255

# Regional indicators A to S; with the shrug that is Discord's 20 reaction cap.
SELECTION_EMOJI = tuple(chr(0x1F1E6 + offset) for offset in range(19))
SHRUG = "🤷"
YES_NO_REACTIONS = ("✅", SHRUG, "❎")

POLL_OPTION_MARKER_REGEX = re.compile(r"^\s*(?:-|\*|\d+\.)\s*")


async def _can_speak_here(ctx: commands.Context) -> bool:
    return ctx.channel.permissions_for(ctx.me).send_messages


def find_member(guild: discord.Guild, name: str) -> Optional[discord.Member]:
    """Exact ``name``/``name#1234`` match first, then a case-insensitive prefix match."""
    member = guild.get_member_named(name)
    if member is not None:
        return member
    needle = name.lower()
    return discord.utils.find(
        lambda m: m.name.lower().startswith(needle) or m.display_name.lower().startswith(needle),
        guild.members,
    )


def is_multi_poll(text: str) -> bool:
    words = text.split(maxsplit=1)
    return bool(words) and words[0] == "multi"


def parse_multi_poll(text: str) -> Tuple[Optional[str], List[str]]:
    """Split ``multi [title]`` plus one option per line into a title and options.

    List markers (``-``, ``*``, ``1.``) at the start of an option are dropped.
    """
    first, *lines = text.splitlines()
    title = first.strip()[len("multi"):].strip() or None
    options = [POLL_OPTION_MARKER_REGEX.sub("", line, count=1).strip() for line in lines]
    options = [option for option in options if option]
    if not 2 <= len(options) <= len(SELECTION_EMOJI):
        raise Reported(f"There must be between 2 and {len(SELECTION_EMOJI)} options")
    return title, options


class General(commands.Cog):
    """Everyday commands."""

    def __init__(self, bot: "Bot") -> None:
        self.bot = bot

    @commands.hybrid_command()
    async def uptime(self, ctx: commands.Context) -> None:
        """Show when the bot was started."""
        started = self.bot.config.started_at
        embed = discord.Embed(
            title="Uptime",
            description=(
                f"Started {discord.utils.format_dt(started, 'F')} "
                f"({discord.utils.format_dt(started, 'R')})"
            ),
        )
        await ctx.send(embed=embed)

    @commands.hybrid_command()
    async def latency(self, ctx: commands.Context) -> None:
        """Show gateway and message latency."""
        embed = discord.Embed(title="Latency information")
        if not math.isnan(self.bot.latency) and not math.isinf(self.bot.latency):
            embed.add_field(
                name="Gateway latency (heartbeat → ACK)",
                value=f"{self.bot.latency * 1000:.0f}ms",
                inline=False,
            )
        if ctx.interaction is None:
            delay = discord.utils.utcnow() - ctx.message.created_at
            embed.add_field(
                name="Message latency (message timestamp → received)",
                value=f"{abs(delay.total_seconds()) * 1000:.0f}ms",
                inline=False,
            )
        await ctx.send(embed=embed)

    @commands.hybrid_command()
    async def repo(self, ctx: commands.Context) -> None:
        """Link the bot's source repository."""
        if not self.bot.config.repo_url:
            raise Reported("No repository link is configured")
        await ctx.send(self.bot.config.repo_url)

    @commands.hybrid_command()
    async def invite(self, ctx: commands.Context) -> None:
        """Get the server invite link."""
        if not self.bot.config.invite_url:
            raise Reported("No invite link is configured")
        await ctx.send(self.bot.config.invite_url)

    @commands.hybrid_command()
    async def avatar(self, ctx: commands.Context, user: Optional[discord.User] = None) -> None:
        """Show a user's avatar."""
        user = user or ctx.author
        embed = discord.Embed(title=f"Avatar of {user}")
        embed.set_image(url=user.display_avatar.url)
        await ctx.send(embed=embed)

    @commands.hybrid_command()
    @commands.guild_only()
    async def whois(self, ctx: commands.Context, member: Optional[discord.Member] = None) -> None:
        """Show information about a member."""
        member = member or ctx.author
        embed = discord.Embed(title=str(member))
        embed.set_thumbnail(url=member.display_avatar.url)
        embed.add_field(name="Account created", value=discord.utils.format_dt(member.created_at, "D"))
        if member.joined_at is not None:
            embed.add_field(name="Joined", value=discord.utils.format_dt(member.joined_at, "D"))
        roles = [role.mention for role in reversed(member.roles) if not role.is_default()]
        if roles:
            embed.add_field(name="Roles", value=" ".join(roles[:20]), inline=False)
        await ctx.send(embed=embed)

    @commands.hybrid_command()
    @commands.guild_only()
    async def find(self, ctx: commands.Context, *, name: str) -> None:
        """Look up a member by (the start of) their name."""
        member = find_member(ctx.guild, name)
        if member is None:
            raise ReferenceNotFound(name)
        await ctx.send(f"{member} ({member.id})")

    @commands.hybrid_command()
    @commands.guild_only()
    @commands.has_permissions(manage_channels=True)
    @commands.bot_has_permissions(manage_channels=True)
    @commands.cooldown(1, 10, commands.BucketType.user)
    async def slowmode(self, ctx: commands.Context, duration: Duration) -> None:
        """Set this channel's slowmode, e.g. ``30s`` or ``1h30m``."""
        if duration > MAX_SLOWMODE:
            raise Reported(f"Slowmode can be at most {format_duration(MAX_SLOWMODE.total_seconds())}")
        await ctx.channel.edit(slowmode_delay=int(duration.total_seconds()))
        await ctx.send(f"Slowmode set to {format_duration(duration.total_seconds())}")

    @commands.hybrid_command(usage="<question> | multi [title] <one option per line>")
    @commands.guild_only()
    @commands.bot_has_permissions(add_reactions=True)
    async def poll(self, ctx: commands.Context, *, question: str) -> None:
        """Get people to vote on your question."""
        embed = discord.Embed(title="Poll")
        embed.set_footer(text=f"from: {ctx.author}")
        if is_multi_poll(question):
            title, options = parse_multi_poll(question)
            embed.description = title
            for emoji, option in zip(SELECTION_EMOJI, options):
                embed.add_field(name=f"Option {emoji}", value=option, inline=False)
            reactions = (*SELECTION_EMOJI[: len(options)], SHRUG)
        else:
            if len(question) > MAX_QUESTION_LENGTH:
                raise Reported("The question is too long :(")
            embed.description = question
            reactions = YES_NO_REACTIONS

        message = await ctx.send(embed=embed)
        for emoji in reactions:
            await message.add_reaction(emoji)
        if ctx.interaction is None and ctx.channel.permissions_for(ctx.me).manage_messages:
            await ctx.message.delete()

    @commands.hybrid_command()
    @commands.is_owner()
    @guarded_check(_can_speak_here)
    async def say(self, ctx: commands.Context, *, message: str) -> None:
        """Make the bot say something."""
        if ctx.interaction is not None:
            await ctx.send("Sure thing!", ephemeral=True)
        await ctx.channel.send(message)


async def setup(bot: "Bot") -> None:
    await bot.add_cog(General(bot))
