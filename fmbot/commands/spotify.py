from fmbot.context import respond
from fmbot.registry import CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import linked_account, prepare

schema = CommandSchema(
    name="spotify",
    description="Get a Spotify link for a song or your current track",
    options=[CommandOption("query", "Song to search for (defaults to what you're playing)")],
)


async def execute(ctx):
    client = ctx.client
    if not client.spotify.configured:
        return Err(ErrorKind.UPSTREAM, "❌ Spotify is not configured for this bot.")

    query = ctx.options.get_string("query")
    await prepare(ctx)

    if not query:
        account = await linked_account(ctx)
        if isinstance(account, Err):
            return account
        track = await client.lastfm.get_recent_track(account.value.username, account.value.session_key)
        if not track:
            return Err(ErrorKind.MISSING_ARGUMENT, "Give a song to search for, nothing is playing right now.")
        query = f"{track['track']} {track['artist']}"

    url = await client.spotify.find_track_url(query)
    if not url:
        return Err(ErrorKind.NOT_FOUND, f"No Spotify results for `{query}`.")
    await respond(ctx, url)
