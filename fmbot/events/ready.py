import logging

import discord
from discord.ext import commands

from fmbot.registry import sync_commands

logger = logging.getLogger('bot')


class Ready(commands.Cog):
    """Registers slash commands once the bot has logged in"""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self):
        logger.info(f'Logged in as {self.bot.user} (ID: {self.bot.user.id})')
        await self.bot.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name=f"{self.bot.settings.prefix} help")
        )

        # on_ready fires again after reconnects
        if self.bot.commands_synced:
            return
        settings = self.bot.settings
        application_id = self.bot.application_id or settings.client_id
        self.bot.commands_synced = await sync_commands(
            self.bot.http,
            application_id,
            self.bot.registry.schemas(),
            guild_id=settings.guild_id,
        )


async def setup(bot):
    await bot.add_cog(Ready(bot))
