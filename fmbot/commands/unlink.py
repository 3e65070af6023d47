from fmbot.context import respond
from fmbot.registry import CommandSchema

schema = CommandSchema(name="unlink", description="Unlink your Last.fm account")


async def execute(ctx):
    if ctx.is_prefix:
        await ctx.send_typing()

    removed = await ctx.client.storage.unlink_user(ctx.user.id)
    if not removed:
        await respond(ctx, "ℹ️ You don't have a linked Last.fm account.", ephemeral=True)
        return

    await respond(ctx, "🧹 Successfully unlinked your Last.fm account.", ephemeral=True)
