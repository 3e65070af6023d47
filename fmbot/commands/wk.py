import asyncio
import logging
from dataclasses import dataclass

import discord

from fmbot.context import respond
from fmbot.registry import CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import SPOTIFY_GREEN, artist_url, isolate, linked_account, prepare, user_url

logger = logging.getLogger('bot')

schema = CommandSchema(
    name="wk",
    description="Who knows this artist in the server?",
    options=[CommandOption("artist", "The artist to check")],
)


@dataclass
class Listener:
    user_id: int
    display_name: str
    username: str
    plays: int


def rank_listeners(listeners, caller_id):
    """Drop people with no plays (except the caller) and sort by plays"""
    ranked = [l for l in listeners if l.plays > 0 or l.user_id == caller_id]
    return sorted(ranked, key=lambda l: l.plays, reverse=True)


async def update_crown(storage, guild_id, artist, ranks):
    """Give the crown to the top listener if they beat the holder.

    Returns (holder listener or None, whether the crown changed hands).
    """
    if not ranks or sum(l.plays for l in ranks) == 0:
        return None, False

    top = ranks[0]
    crown = await storage.get_crown(guild_id, artist)
    claimed = False
    if crown is None or top.plays > crown.plays:
        claimed = crown is None or crown.holder_id != str(top.user_id)
        await storage.set_crown(guild_id, artist, top.user_id, top.plays)
        crown = await storage.get_crown(guild_id, artist)

    holder = next((l for l in ranks if str(l.user_id) == crown.holder_id), top)
    return holder, claimed


async def linked_members(guild, storage):
    """Guild members that have a linked Last.fm account"""
    members = []
    for user_id in await storage.linked_user_ids():
        member = guild.get_member(int(user_id))
        if member is None or member.bot:
            continue
        linked = await storage.get_user(user_id)
        if linked:
            members.append((member, linked))
    return members


def listener_line(rank, listener, crown=False):
    name = f"[**{isolate(listener.display_name)}**]({user_url(listener.username)})"
    marker = "👑" if crown else f"{rank}."
    return f"\u200e{marker} {name} - **{listener.plays}** plays"


def wk_embed(artist, guild_name, ranks, holder, claimed, genres, image):
    lines = []
    rest = ranks
    if holder is not None:
        lines.append(listener_line(1, holder, crown=True))
        rest = [l for l in ranks if l is not holder]
    start = len(lines) + 1
    lines.extend(listener_line(i, l) for i, l in enumerate(rest, start=start))
    if claimed and holder is not None:
        lines.append(f"\nCrown claimed by {holder.display_name}!")

    listeners = len(ranks)
    total = sum(l.plays for l in ranks)
    average = round(total / listeners) if listeners else 0
    footer = f"Artist - {listeners} {'listener' if listeners == 1 else 'listeners'} - {total} plays - {average} avg"
    if genres:
        footer = f"{' - '.join(genres)}\n{footer}"

    embed = discord.Embed(
        title=f"{artist} in {guild_name}",
        url=artist_url(artist),
        description="\n".join(lines) or "Nobody here has listened to this artist.",
        color=SPOTIFY_GREEN
    )
    if image:
        embed.set_thumbnail(url=image)
    embed.set_footer(text=footer)
    return embed


async def execute(ctx):
    if ctx.guild is None:
        return Err(ErrorKind.NOT_FOUND, "This command only works in a server.")
    await prepare(ctx)

    client = ctx.client
    artist = ctx.options.get_string("artist")
    if not artist:
        account = await linked_account(ctx)
        if isinstance(account, Err):
            return account
        recent = await client.lastfm.get_recent_track(account.value.username, account.value.session_key)
        if not recent:
            return Err(ErrorKind.MISSING_ARGUMENT, "Give an artist name, nothing is playing right now.")
        artist = recent["artist"]

    members = await linked_members(ctx.guild, client.storage)
    if not members:
        return Err(ErrorKind.NOT_FOUND, "No one in this server has linked their Last.fm account.")

    logger.info(f"Fetching playcounts for {len(members)} users...")
    playcounts = await asyncio.gather(
        *(client.lastfm.get_user_playcount("artist", linked.username, artist, session_key=linked.session_key)
          for _, linked in members),
        return_exceptions=True
    )

    listeners = []
    for (member, linked), plays in zip(members, playcounts):
        if isinstance(plays, Exception):
            logger.warning(f"Playcount lookup failed for {linked.username}: {plays}")
            plays = 0
        listeners.append(Listener(member.id, member.display_name, linked.username, plays))

    ranks = rank_listeners(listeners, ctx.user.id)
    holder, claimed = await update_crown(client.storage, ctx.guild.id, artist, ranks)
    image, genres = await asyncio.gather(
        client.spotify.get_image("artist", artist),
        client.lastfm.get_artist_tags(artist),
    )

    await respond(ctx, {"embeds": [wk_embed(artist, ctx.guild.name, ranks, holder, claimed, genres, image)]})
