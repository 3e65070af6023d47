from fmbot.registry import CommandOption, CommandSchema

from ._plays import run

schema = CommandSchema(
    name="trackplays",
    description="Show how many times you played a track",
    options=[
        CommandOption("track", "The track, or 'Artist - Track' (defaults to what you're playing)"),
        CommandOption("artist", "Artist of the track"),
    ],
)


async def execute(ctx):
    return await run(ctx, "track")
