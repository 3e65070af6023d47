import asyncio
import io
import logging
import re

import aiohttp
import discord
from PIL import Image, ImageDraw, UnidentifiedImageError

from fmbot.context import respond
from fmbot.lastfm import PERIOD_NAMES, format_period, is_placeholder, largest_image
from fmbot.registry import CommandOption, CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import linked_account, prepare

logger = logging.getLogger('bot')

schema = CommandSchema(
    name="chart",
    description="Generate a grid of your top album covers",
    options=[
        CommandOption("period", "7day, 1month, 3month, 6month, 12month or overall"),
        CommandOption("size", "Grid size such as 3x3 (max 5x5)"),
    ],
)

CELL = 300
DEFAULT_SIZE = 3
MAX_SIZE = 5
SIZE_PATTERN = re.compile(r"\b(\d+)(?:x\d+)?\b")


def parse_size(text):
    """Read a grid size like '4' or '4x4', clamped to 1..MAX_SIZE"""
    match = SIZE_PATTERN.search(text or "")
    if not match:
        return DEFAULT_SIZE
    return max(1, min(MAX_SIZE, int(match.group(1))))


def placeholder_tile(size=CELL):
    """Checkerboard for albums without artwork"""
    tile = Image.new("RGB", (size, size), (24, 24, 24))
    draw = ImageDraw.Draw(tile)
    step = max(4, size // 10)
    for y in range(0, size, step):
        for x in range(0, size, step):
            if (x // step + y // step) % 2 == 0:
                draw.rectangle([x, y, x + step - 1, y + step - 1], fill=(36, 36, 36))
    return tile


def square(image, size=CELL):
    """Center-crop to a square and resize to size x size"""
    width, height = image.size
    if width > height:
        left = (width - height) // 2
        image = image.crop((left, 0, left + height, height))
    elif height > width:
        top = (height - width) // 2
        image = image.crop((0, top, width, top + width))
    return image.resize((size, size), Image.LANCZOS)


def compose_grid(covers, columns, cell=CELL):
    """Paste covers (raw bytes or None) row by row and return PNG bytes"""
    rows = max(1, -(-len(covers) // columns))
    canvas = Image.new("RGB", (columns * cell, rows * cell), (18, 18, 18))

    for index, cover in enumerate(covers):
        tile = None
        if cover:
            try:
                tile = square(Image.open(io.BytesIO(cover)).convert("RGB"), cell)
            except (UnidentifiedImageError, OSError) as e:
                logger.warning(f"Unreadable cover image: {e}")
        canvas.paste(tile or placeholder_tile(cell), ((index % columns) * cell, (index // columns) * cell))

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


async def fetch_cover(session, url):
    if not url or is_placeholder(url):
        return None
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=20)) as response:
            if response.status != 200:
                return None
            return await response.read()
    except (aiohttp.ClientError, TimeoutError) as e:
        logger.warning(f"Cover download failed for {url}: {e}")
        return None


async def execute(ctx):
    period = format_period(ctx.options.get_string("period") or "7day")
    size = parse_size(ctx.options.get_string("size"))
    await prepare(ctx)

    account = await linked_account(ctx)
    if isinstance(account, Err):
        return account
    username = account.value.username

    data = await ctx.client.lastfm.get_top_albums(username, period, limit=size * size)
    albums = (data or {}).get("topalbums", {}).get("album", [])
    if isinstance(albums, dict):
        albums = [albums]
    if not albums:
        return Err(ErrorKind.NOT_FOUND, f"`{username}` has no top albums for this period.")

    async with aiohttp.ClientSession() as session:
        covers = await asyncio.gather(*(fetch_cover(session, largest_image(a.get("image", []))) for a in albums))

    png = await asyncio.to_thread(compose_grid, covers, size)
    embed = discord.Embed(title=f"{PERIOD_NAMES[period]} {size}x{size} chart for {username}", color=0xd51007)
    embed.set_image(url="attachment://chart.png")
    await respond(ctx, {"embeds": [embed], "file": discord.File(io.BytesIO(png), filename="chart.png")})
