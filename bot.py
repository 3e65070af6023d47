import logging
import os

import discord
from dotenv import load_dotenv

from fmbot.client import FMBot
from fmbot.config import load_settings

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('bot')

# Load environment variables
load_dotenv()

# Create necessary directories
os.makedirs('data', exist_ok=True)
os.makedirs('config', exist_ok=True)


def main():
    settings = load_settings()
    if not settings.discord_token:
        logger.error("No token found in .env file. Please add DISCORD_TOKEN.")
        return

    bot = FMBot(settings)
    try:
        bot.run(settings.discord_token, log_handler=None)
    except discord.errors.LoginFailure:
        logger.error("Invalid token. Please check your .env file.")


# Run the bot
if __name__ == "__main__":
    main()
