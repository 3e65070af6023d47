import logging

import aiohttp
import discord

from fmbot.context import respond
from fmbot.lastfm import LastFMError
from fmbot.registry import CommandSchema
from fmbot.result import Err, ErrorKind

from ._common import LASTFM_RED, prepare

logger = logging.getLogger('bot')

schema = CommandSchema(name="link", description="Link your Last.fm account to the bot.")

# Last.fm auth.getSession error codes
NOT_AUTHORIZED = 14
EXPIRED = (4, 15)


def link_view(auth_url, token):
    view = discord.ui.View(timeout=None)
    view.add_item(discord.ui.Button(label="Login with Last.fm", style=discord.ButtonStyle.link, url=auth_url))
    view.add_item(discord.ui.Button(
        label="Verify Login",
        style=discord.ButtonStyle.success,
        custom_id=f"verify_login:{token}"
    ))
    return view


async def execute(ctx):
    await prepare(ctx, ephemeral=True)

    lastfm = ctx.client.lastfm
    if not lastfm.api_key:
        return Err(ErrorKind.UPSTREAM, "❌ Bot configuration error: LASTFM_API_KEY is missing.")

    token = await lastfm.get_token()
    if not token:
        return Err(ErrorKind.UPSTREAM, "❌ Failed to contact Last.fm. Please try again later.")

    embed = discord.Embed(
        title="Connect your Last.fm Account",
        description=(
            "To link your account, follow these steps:\n\n"
            "1. Click **Login with Last.fm** below.\n"
            "2. Click **'Yes, Allow Access'** in the browser window.\n"
            "3. Come back here and click **'Verify Login'**."
        ),
        color=LASTFM_RED
    )
    embed.set_footer(text="This link expires in 60 minutes.")

    await respond(ctx, {"embeds": [embed], "view": link_view(lastfm.auth_url(token), token)}, ephemeral=True)


def session_error_message(error):
    if error.code == NOT_AUTHORIZED:
        return "❌ You haven't authorized the app in your browser yet. Click the link, allow access, then click 'Verify' again."
    if error.code in EXPIRED:
        return "❌ Token expired. Please run `link` again."
    return f"❌ Last.fm Error: {error.message}"


async def verify_login(interaction, args):
    """Button handler: trade the token for a session and store it"""
    await interaction.response.defer(ephemeral=True, thinking=True)
    bot = interaction.client

    if not args or not args[0]:
        await interaction.edit_original_response(content="❌ Missing login token. Please run `link` again.")
        return
    if not bot.lastfm.api_secret:
        await interaction.edit_original_response(content="❌ Bot configuration error: Missing Shared Secret.")
        return

    try:
        session = await bot.lastfm.get_session(args[0])
    except LastFMError as e:
        await interaction.edit_original_response(content=session_error_message(e))
        return
    except (aiohttp.ClientError, TimeoutError, ValueError) as e:
        logger.error(f"Login verify error: {e}")
        await interaction.edit_original_response(content="❌ Internal error verifying login.")
        return

    await bot.storage.link_user(interaction.user.id, session["name"], session["key"])
    logger.info(f"Linked {interaction.user.id} to Last.fm user {session['name']}")
    await interaction.edit_original_response(content=f"✅ Success! Linked **{session['name']}** to your Discord account.")

    if interaction.message is not None:
        try:
            await interaction.message.edit(view=None)
        except discord.HTTPException as e:
            logger.warning(f"Could not remove login buttons: {e}")


buttons = {"verify_login": verify_login}
