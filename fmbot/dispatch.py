import logging

import discord

from .args import tokenize
from .context import NativeContext, create_interaction_from_message, respond
from .result import Err

logger = logging.getLogger('bot')

GENERIC_ERROR = "Error executing command."

# Discord component types
BUTTON = 2
STRING_SELECT = 3


class Dispatcher:
    """Routes prefix messages and interactions to registered commands"""

    def __init__(self, registry, settings):
        self.registry = registry
        self.settings = settings

    @property
    def prefix(self):
        return self.settings.prefix

    def parse_message(self, content):
        """Split a prefixed message into (command name, args); None when not a command"""
        if not content or not content.startswith(self.prefix):
            return None
        args = tokenize(content[len(self.prefix):])
        if not args:
            return None
        return args[0].lower(), args[1:]

    async def handle_message(self, message):
        if message.author.bot:
            return
        parsed = self.parse_message(message.content)
        if parsed is None:
            return
        name, args = parsed

        command = self.registry.prefix_commands.get(name)
        if command is None:
            await self._safe_reply(message, f"Unknown command: {self.prefix}{name}")
            return

        try:
            if command.prefix_execute is not None:
                result = await command.prefix_execute(message, args)
                if isinstance(result, Err):
                    await self._safe_reply(message, result.message)
                return

            ctx = create_interaction_from_message(message, args, self.settings)
            result = await command.execute(ctx)
            if isinstance(result, Err):
                await respond(ctx, result.message, ephemeral=True)
        except Exception:
            logger.exception(f"Prefix command {name} failed")
            await self._safe_reply(message, GENERIC_ERROR)

    async def handle_interaction(self, interaction):
        if interaction.type == discord.InteractionType.application_command:
            await self._handle_chat_command(interaction)
        elif interaction.type == discord.InteractionType.component:
            data = interaction.data or {}
            component_type = data.get("component_type")
            if component_type == BUTTON:
                await self._handle_button(interaction, data.get("custom_id", ""))
            elif component_type == STRING_SELECT:
                await self._handle_select(interaction, data.get("custom_id", ""))

    async def _handle_chat_command(self, interaction):
        name = (interaction.data or {}).get("name")
        command = self.registry.commands.get(name)
        if command is None:
            return

        ctx = NativeContext(interaction)
        try:
            result = await command.execute(ctx)
            if isinstance(result, Err):
                await respond(ctx, result.message, ephemeral=True)
        except Exception:
            logger.exception(f"Slash command {name} failed")
            if not ctx.replied and not ctx.deferred:
                try:
                    await ctx.reply({"content": GENERIC_ERROR, "ephemeral": True})
                except Exception as e:
                    logger.error(f"Failed to send error reply: {e}")

    async def _handle_button(self, interaction, custom_id):
        key, *args = custom_id.split(":")
        handler = self.registry.buttons.get(key)
        if handler is None:
            logger.debug(f"No button handler for {custom_id}")
            return
        await self._run_component(handler, interaction, args, custom_id)

    async def _handle_select(self, interaction, custom_id):
        handler = self.registry.selects.get(custom_id)
        if handler is None:
            logger.debug(f"No select handler for {custom_id}")
            return
        await self._run_component(handler, interaction, [], custom_id)

    async def _run_component(self, handler, interaction, args, custom_id):
        try:
            await handler(interaction, args)
        except Exception:
            logger.exception(f"Component handler for {custom_id} failed")

    async def _safe_reply(self, message, content):
        try:
            await message.reply(content)
        except Exception as e:
            logger.error(f"Failed to reply to message {message.id}: {e}")
