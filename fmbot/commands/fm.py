import datetime

import discord

from fmbot.context import respond
from fmbot.lastfm import is_placeholder
from fmbot.registry import USER, CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import LASTFM_RED, artist_url, linked_account, prepare, user_url


schema = CommandSchema(
    name="fm",
    description="Show your currently playing or last scrobbled track",
    options=[
        CommandOption("user", "The user to show the recent track for (defaults to yourself)", type=USER),
    ],
)


def format_time(uts, now=None):
    """Render a scrobble timestamp as 'Today 09:15 PM', 'Yesterday ...' or 'Mon, Jan 06 ...'"""
    if not uts:
        return "Unknown"
    now = now or datetime.datetime.now()
    played = datetime.datetime.fromtimestamp(uts)
    days = (now.date() - played.date()).days

    if days == 0:
        day = "Today"
    elif days == 1:
        day = "Yesterday"
    else:
        day = played.strftime("%a, %b %d")
    return f"{day} {played.strftime('%I:%M %p')}"


def now_playing_embed(target, username, track, cover):
    embed = discord.Embed(
        description=f"**[{track['track']}]({track['url']})**\nby **[{track['artist']}]({artist_url(track['artist'])})**",
        color=LASTFM_RED
    )
    avatar = getattr(getattr(target, "display_avatar", None), "url", None)
    embed.set_author(name=f"{target.display_name} ({username})", url=user_url(username), icon_url=avatar)
    if track["album"]:
        embed.add_field(name="Album", value=track["album"], inline=True)
    if cover:
        embed.set_thumbnail(url=cover)

    if track["now_playing"]:
        embed.set_footer(text="Now playing")
    else:
        embed.set_footer(text=f"Last scrobbled {format_time(track['uts'])}")
    return embed


async def execute(ctx):
    target = ctx.options.get_user("user") or ctx.user
    await prepare(ctx)

    account = await linked_account(ctx, target)
    if isinstance(account, Err):
        return account
    linked = account.value

    track = await ctx.client.lastfm.get_recent_track(linked.username, linked.session_key)
    if not track:
        return Err(ErrorKind.NOT_FOUND, f"No recently played tracks found for `{linked.username}`.")

    cover = None
    if track["album"]:
        cover = await ctx.client.spotify.get_image("album", track["artist"], album=track["album"])
    if not cover and not is_placeholder(track["image"]):
        cover = track["image"]

    await respond(ctx, {"embeds": [now_playing_embed(target, linked.username, track, cover)]})
