import discord

from fmbot.context import respond
from fmbot.registry import USER, CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import LASTFM_RED

schema = CommandSchema(
    name="crowns",
    description="View the artist crowns you or another member hold in this server",
    options=[CommandOption("user", "Whose crowns to show", type=USER)],
)

MAX_LINES = 15


async def execute(ctx):
    if ctx.guild is None:
        return Err(ErrorKind.NOT_FOUND, "This command only works in a server.")

    target = ctx.options.get_user("user") or ctx.user
    held = await ctx.client.storage.crowns_for(ctx.guild.id, target.id)
    if not held:
        return Err(ErrorKind.NOT_FOUND, f"{target.display_name} doesn't hold any crowns here yet.")

    lines = [f"**{i}.** {artist} - **{plays}** plays" for i, (artist, plays) in enumerate(held[:MAX_LINES], start=1)]
    if len(held) > MAX_LINES:
        lines.append(f"... and {len(held) - MAX_LINES} more")

    embed = discord.Embed(
        title=f"👑 Crowns for {target.display_name}",
        description="\n".join(lines),
        color=LASTFM_RED
    )
    embed.set_footer(text=f"{len(held)} crowns in {ctx.guild.name}")
    await respond(ctx, {"embeds": [embed]})
