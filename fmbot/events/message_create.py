from discord.ext import commands


class MessageCreate(commands.Cog):
    """Routes prefix messages to commands"""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message):
        await self.bot.dispatcher.handle_message(message)


async def setup(bot):
    await bot.add_cog(MessageCreate(bot))
