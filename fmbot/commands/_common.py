"""Helpers shared by command modules."""

import re
from urllib.parse import quote

from fmbot.result import Ok, not_linked

LASTFM_RED = 0xd51007
SPOTIFY_GREEN = 0x1DB954

RTL_PATTERN = re.compile(r"[\u0600-\u06FF]")


def user_url(username):
    return f"https://www.last.fm/user/{quote(username)}"


def artist_url(artist):
    return f"https://www.last.fm/music/{quote(artist)}"


def isolate(name):
    """Wrap right-to-left names so they don't flip the surrounding line"""
    if RTL_PATTERN.search(name):
        return f"\u2067{name}\u2069"
    return name


async def linked_account(ctx, user=None):
    """Ok(LinkedUser) for the given user (default: the caller) or a not-linked Err"""
    target = user or ctx.user
    linked = await ctx.client.storage.get_user(target.id)
    if linked is None:
        return not_linked(is_self=target.id == ctx.user.id)
    return Ok(linked)


async def prepare(ctx, ephemeral=False):
    """Show activity before slow work: typing for prefix, a deferral for slash"""
    if ctx.is_prefix:
        await ctx.send_typing()
    else:
        await ctx.defer_reply(ephemeral=ephemeral)
