from fmbot.registry import CommandOption, CommandSchema

from ._plays import run

schema = CommandSchema(
    name="artistplays",
    description="Show how many times you played an artist",
    options=[CommandOption("artist", "The artist (defaults to what you're playing)")],
)


async def execute(ctx):
    return await run(ctx, "artist")
