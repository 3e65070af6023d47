import discord

from fmbot.context import create_interaction_from_message, respond
from fmbot.registry import CommandSchema

schema = CommandSchema(name="help", description="List all available commands.")


def command_lines(registry, prefix=None):
    """One line per command, as prefix usage when a prefix is given"""
    entries = registry.prefix_commands if prefix else registry.commands
    if prefix:
        return [f"**{prefix} {entry.name}**: {entry.schema.description}" for entry in entries.values()]
    return [f"**/{entry.name}**: {entry.schema.description}" for entry in entries.values()]


def help_embed(registry, prefix=None):
    lines = command_lines(registry, prefix)
    if prefix:
        header = f"Here are the available commands (prefix: `{prefix}`):"
    else:
        header = "Here are the available slash commands:"
    body = "\n".join(lines) or "No commands available."
    return discord.Embed(title="Bot Commands", description=f"{header}\n{body}", color=0xff0000)


async def execute(ctx):
    registry = ctx.client.registry
    prefix = ctx.client.settings.prefix if ctx.is_prefix else None
    await respond(ctx, {"embeds": [help_embed(registry, prefix)]}, ephemeral=True)


async def prefix_execute(message, args):
    ctx = create_interaction_from_message(message, args, message.client.settings)
    await ctx.send_typing()
    await execute(ctx)
