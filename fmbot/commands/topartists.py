import discord

from fmbot.context import respond
from fmbot.lastfm import PERIOD_NAMES, format_period, to_int
from fmbot.registry import USER, CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import LASTFM_RED, linked_account, prepare, user_url

schema = CommandSchema(
    name="topartists",
    description="View your top artists for a time period",
    options=[
        CommandOption("period", "7day, 1month, 3month, 6month, 12month or overall"),
        CommandOption("user", "Whose top artists to show", type=USER),
    ],
)

PAGE_SIZE = 10


def artist_lines(artists, page=1, limit=PAGE_SIZE):
    lines = []
    for index, artist in enumerate(artists):
        rank = (page - 1) * limit + 1 + index
        plays = to_int(artist.get("playcount"))
        lines.append(f"**{rank}.** [**{artist.get('name')}**]({artist.get('url')}) - *{plays:,} plays*")
    return lines


async def execute(ctx):
    period = format_period(ctx.options.get_string("period") or "overall")
    target = ctx.options.get_user("user") or ctx.user
    await prepare(ctx)

    account = await linked_account(ctx, target)
    if isinstance(account, Err):
        return account
    username = account.value.username

    data = await ctx.client.lastfm.get_top_artists(username, period, limit=PAGE_SIZE)
    top = (data or {}).get("topartists")
    if not top:
        return Err(ErrorKind.UPSTREAM, "⚠️ Failed to fetch top artists.")

    artists = top.get("artist", [])
    if isinstance(artists, dict):
        artists = [artists]
    if not artists:
        return Err(ErrorKind.NOT_FOUND, f"`{username}` has no scrobbles for this period.")

    total = to_int(top.get("@attr", {}).get("total"))
    embed = discord.Embed(
        title=f"Top {PERIOD_NAMES[period]} Artists for {target.display_name}",
        url=user_url(username),
        description="\n".join(artist_lines(artists)),
        color=LASTFM_RED
    )
    embed.set_footer(text=f"{username} has {total:,} artists in this period")
    await respond(ctx, {"embeds": [embed]})
