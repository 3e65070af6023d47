"""Shared body of the artistplays, albumplays and trackplays commands."""

import asyncio

from fmbot.context import respond
from fmbot.lastfm import to_int
from fmbot.result import Err, ErrorKind

from ._common import linked_account, prepare

# Top-list method and response key per kind
TOP_LISTS = {
    "artist": ("get_top_artists", "topartists"),
    "album": ("get_top_albums", "topalbums"),
    "track": ("get_top_tracks", "toptracks"),
}
TOP_LIMIT = 1000


def split_query(query):
    """Read 'Artist - Name' into (artist, name); artist is None without a dash"""
    artist, separator, name = query.partition(" - ")
    if not separator:
        return None, query.strip()
    return artist.strip() or None, name.strip()


def period_plays(data, kind, name, artist=None):
    """Playcount of one artist/album/track in a top list, 0 when absent"""
    _, key = TOP_LISTS[kind]
    items = (data or {}).get(key, {}).get(kind, [])
    if isinstance(items, dict):
        items = [items]

    for item in items:
        if str(item.get("name", "")).lower() != name.lower():
            continue
        if kind != "artist" and artist:
            owner = item.get("artist", {})
            owner = owner.get("name") if isinstance(owner, dict) else owner
            if str(owner or "").lower() != artist.lower():
                continue
        return to_int(item.get("playcount"))
    return 0


def plays_message(display_name, kind, plays, name, artist, week=0, month=0):
    subject = f"**{name}**" if kind == "artist" else f"**{name}** by **{artist}**"
    line = f"**{display_name}** has **{plays}** plays for {subject}"
    recent = []
    if week:
        recent.append(f"{week} plays last week")
    if month:
        recent.append(f"{month} plays last month")
    if recent:
        line += "\n-# " + " - ".join(recent)
    return line


async def run(ctx, kind):
    query = ctx.options.get_string(kind)
    artist = ctx.options.get_string("artist") if kind != "artist" else None
    # Prefix positionals fill every string option, so an equal artist came from the same words
    if artist and artist == query:
        artist = None
    await prepare(ctx)

    account = await linked_account(ctx)
    if isinstance(account, Err):
        return account
    linked = account.value
    lastfm = ctx.client.lastfm

    if kind == "artist":
        name = artist = query
    elif query:
        dashed_artist, name = split_query(query)
        artist = artist or dashed_artist
    else:
        name = None

    if not name:
        recent = await lastfm.get_recent_track(linked.username, linked.session_key)
        if not recent:
            return Err(ErrorKind.MISSING_ARGUMENT, f"Give a {kind} name, nothing is playing right now.")
        artist = recent["artist"]
        name = {"artist": recent["artist"], "album": recent["album"], "track": recent["track"]}[kind]
        if not name:
            return Err(ErrorKind.NOT_FOUND, f"Your current track has no {kind} information.")
    elif not artist:
        return Err(ErrorKind.MISSING_ARGUMENT, f"Give the artist too, like `Artist - {name}`.")

    extra = {kind: name} if kind != "artist" else {}
    method, _ = TOP_LISTS[kind]
    top = getattr(lastfm, method)
    plays, week, month = await asyncio.gather(
        lastfm.get_user_playcount(kind, linked.username, artist, session_key=linked.session_key, **extra),
        top(linked.username, "7day", limit=TOP_LIMIT),
        top(linked.username, "1month", limit=TOP_LIMIT),
    )

    await respond(ctx, plays_message(
        ctx.user.display_name,
        kind,
        plays,
        name,
        artist,
        week=period_plays(week, kind, name, artist),
        month=period_plays(month, kind, name, artist),
    ))
