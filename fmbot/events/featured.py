import logging
import random
from urllib.parse import quote

import aiohttp
import discord
from discord.ext import commands, tasks

from fmbot.lastfm import is_placeholder, largest_image

logger = logging.getLogger('bot')

PERIODS = ["7day", "1month"]
MAX_TRIES = 3


class FeaturedTrack(commands.Cog):
    """Periodically features a random linked user's top track"""

    def __init__(self, bot):
        self.bot = bot

    async def cog_load(self):
        settings = self.bot.settings
        if not settings.feature_channel_id:
            logger.info("No FEATURE_CHANNEL_ID set, featured tracks disabled")
            return
        self.feature_loop.change_interval(minutes=settings.feature_interval_minutes)
        self.feature_loop.start()

    async def cog_unload(self):
        self.feature_loop.cancel()

    @tasks.loop(minutes=30)
    async def feature_loop(self):
        await self.post_featured_track()

    @feature_loop.before_loop
    async def before_feature_loop(self):
        await self.bot.wait_until_ready()

    async def pick_track(self):
        """Pick (lastfm username, period, track dict, image url) or None"""
        storage = self.bot.storage
        user_ids = await storage.linked_user_ids()
        if not user_ids:
            return None

        for _ in range(MAX_TRIES):
            linked = await storage.get_user(random.choice(user_ids))
            if not linked:
                continue

            period = random.choice(PERIODS)
            data = await self.bot.lastfm.get_top_tracks(linked.username, period, limit=50)
            tracks = (data or {}).get("toptracks", {}).get("track", [])
            if not tracks or not isinstance(tracks, list):
                continue

            track = random.choice(tracks)
            artist = track.get("artist", {}).get("name") or "Unknown"
            name = track.get("name") or "Unknown"

            image = await self.bot.spotify.get_image("track", artist, track=name)
            if not image:
                image = largest_image(track.get("image", []))
            if is_placeholder(image):
                continue

            return linked.username, period, {"artist": artist, "track": name}, image
        return None

    async def post_featured_track(self):
        try:
            picked = await self.pick_track()
            if picked is None:
                return
            username, period, track, image = picked
            logger.info(f"Featuring {track['track']} by {track['artist']} (User: {username}, Period: {period})")

            await self.set_avatar(image)

            channel = self.bot.get_channel(self.bot.settings.feature_channel_id)
            if channel is None:
                logger.warning("Featured track channel not found")
                return
            await channel.send(embed=featured_embed(username, period, track, image))
        except (discord.HTTPException, aiohttp.ClientError) as e:
            logger.error(f"Error cycling featured track: {e}")

    async def set_avatar(self, image_url):
        async with aiohttp.ClientSession() as session:
            async with session.get(image_url) as response:
                if response.status != 200:
                    logger.warning(f"Could not download avatar image: {response.status}")
                    return
                avatar = await response.read()
        try:
            await self.bot.user.edit(avatar=avatar)
        except discord.HTTPException as e:
            # Avatar changes are heavily rate limited
            logger.warning(f"Failed to set avatar: {e}")


def featured_embed(username, period, track, image):
    artist_url = f"https://www.last.fm/music/{quote(track['artist'])}"
    track_url = f"{artist_url}/_/{quote(track['track'])}"
    period_text = "weekly" if period == "7day" else "monthly"

    embed = discord.Embed(color=0xBA2000)
    embed.set_thumbnail(url=image)
    embed.add_field(
        name="Featured:",
        value=f"[{track['track']}]({track_url})\nby [{track['artist']}]({artist_url})\n\nRandom {period_text} pick from {username}",
        inline=False
    )
    return embed


async def setup(bot):
    await bot.add_cog(FeaturedTrack(bot))
