from fmbot.registry import CommandOption, CommandSchema

from ._plays import run

schema = CommandSchema(
    name="albumplays",
    description="Show how many times you played an album",
    options=[
        CommandOption("album", "The album, or 'Artist - Album' (defaults to what you're playing)"),
        CommandOption("artist", "Artist of the album"),
    ],
)


async def execute(ctx):
    return await run(ctx, "album")
