from discord.ext import commands


class InteractionCreate(commands.Cog):
    """Routes slash commands, buttons and select menus"""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_interaction(self, interaction):
        await self.bot.dispatcher.handle_interaction(interaction)


async def setup(bot):
    await bot.add_cog(InteractionCreate(bot))
