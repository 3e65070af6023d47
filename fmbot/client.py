import logging
import os

import discord
from discord import app_commands
from discord.ext import commands

from .dispatch import Dispatcher
from .lastfm import LastFMAPI
from .registry import load_commands
from .spotify import SpotifyAPI
from .storage import Storage

logger = logging.getLogger('bot')

EVENTS_PACKAGE = "fmbot.events"


class PassthroughTree(app_commands.CommandTree):
    """Leaves every application command to the Dispatcher"""

    async def interaction_check(self, interaction):
        return False


class FMBot(commands.Bot):
    """Discord client holding the command registry and service clients"""

    def __init__(self, settings, registry=None, storage=None, lastfm=None, spotify=None):
        super().__init__(
            command_prefix=settings.prefix,
            intents=discord.Intents.all(),
            help_command=None,
            tree_cls=PassthroughTree,
        )
        self.settings = settings
        self.storage = storage or Storage(settings.db_path)
        self.lastfm = lastfm or LastFMAPI(settings.lastfm_api_key, settings.lastfm_shared_secret)
        self.spotify = spotify or SpotifyAPI(settings.spotify_client_id, settings.spotify_client_secret)
        self.registry = registry or load_commands()
        self.dispatcher = Dispatcher(self.registry, settings)
        self.commands_synced = False

    async def setup_hook(self):
        try:
            await self.storage.initialize()
            await self.load_events()
            logger.info("Setup hook completed")
        except Exception as e:
            logger.error(f"Error in setup hook: {e}")

    async def load_events(self):
        """Load every event cog in the events package"""
        folder = os.path.join(os.path.dirname(__file__), "events")
        loaded = 0
        failed = []

        for file in sorted(os.listdir(folder)):
            if file.endswith(".py") and not file.startswith("_"):
                extension_name = f"{EVENTS_PACKAGE}.{file[:-3]}"
                try:
                    await self.load_extension(extension_name)
                    logger.info(f"Loaded extension: {extension_name}")
                    loaded += 1
                except commands.ExtensionError as e:
                    logger.error(f"Failed to load extension {extension_name}: {e}")
                    failed.append(extension_name)

        logger.info(f"Extension loading complete. Loaded: {loaded}, Failed: {len(failed)}")

    async def on_message(self, message):
        # Prefix messages are routed by the message_create cog
        return
