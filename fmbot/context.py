"""
Command invocation contexts.

Every command is written against ``CommandContext``. Slash commands get a
``NativeContext`` wrapping the real ``discord.Interaction``; prefix messages
get a ``PrefixContext`` that rebuilds the same surface (options, reply,
defer, edit) on top of a plain chat message.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod

import discord

from .args import parse_args

logger = logging.getLogger('bot')

MENTION_PATTERN = re.compile(r"<@!?(\d+)>")

# Keyword arguments that only make sense for interaction responses
INTERACTION_ONLY_KWARGS = ("ephemeral", "thinking")

TRUE_WORDS = {"true", "1", "yes"}
FALSE_WORDS = {"false", "0", "no"}


def _message_kwargs(payload):
    """Turn a reply payload (str or dict) into Messageable.send kwargs"""
    if isinstance(payload, str):
        return {"content": payload}
    return {key: value for key, value in payload.items() if key not in INTERACTION_ONLY_KWARGS}


def degrade_payload(payload):
    """Reduce a payload to its plain text content"""
    if isinstance(payload, str):
        return payload
    return payload.get("content") or ""


async def send_with_retry(channel, payload, attempts=3, base_delay=2.0):
    """Send to a channel, retrying with exponential backoff.

    Waits ``base_delay * 2 ** (attempt - 1)`` seconds after each failed
    attempt (2s then 4s with the defaults) and re-raises the last error
    once every attempt has failed.
    """
    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            return await channel.send(**_message_kwargs(payload))
        except Exception as e:
            last_error = e
            logger.warning(f"Send attempt {attempt}/{attempts} failed: {e}")
            if attempt < attempts:
                await asyncio.sleep(base_delay * 2 ** (attempt - 1))
    raise last_error or RuntimeError("All send retries failed")


class UserView:
    """The invoking user, with display_name pinned to the guild nickname when set"""

    def __init__(self, user, display_name):
        self._user = user
        self.display_name = display_name

    def __getattr__(self, name):
        return getattr(self._user, name)

    def __eq__(self, other):
        return getattr(other, "id", None) == self._user.id

    def __hash__(self):
        return hash(self._user.id)

    def __repr__(self):
        return f"<UserView id={self._user.id} display_name={self.display_name!r}>"


class CommandContext(ABC):
    """What a command can rely on, however it was invoked"""

    is_prefix = False

    def __init__(self):
        self._deferred = False
        self._replied = False

    @property
    def deferred(self):
        return self._deferred

    @property
    def replied(self):
        return self._replied

    def is_chat_input_command(self):
        return True

    @abstractmethod
    async def reply(self, payload):
        ...

    @abstractmethod
    async def defer_reply(self, ephemeral=False):
        ...

    @abstractmethod
    async def edit_reply(self, payload):
        ...

    async def send_typing(self):
        pass


class PrefixOptions:
    """Option accessors backed by parsed prefix arguments"""

    def __init__(self, message, parsed, positional_first=("period",)):
        self._message = message
        self._map = parsed.map
        self._unnamed = parsed.unnamed
        self._positional_first = tuple(positional_first)

    def get_string(self, name):
        value = self._map.get(name)
        if value is None and self._unnamed:
            if name in self._positional_first:
                value = self._unnamed[0]
            else:
                value = " ".join(self._unnamed)
        return value.strip() if value is not None else None

    def get_boolean(self, name):
        value = self._map.get(name)
        if value is None:
            return None
        value = value.lower()
        if value in TRUE_WORDS:
            return True
        if value in FALSE_WORDS:
            return False
        return None

    def get_user(self, name):
        # Reply pings are ignored on purpose, only typed mentions count
        author = self._message.author
        mention = MENTION_PATTERN.search(self._message.content or "")
        if mention:
            return self._cached_user(mention.group(1)) or author

        raw = self._map.get(name)
        if raw is None and self._unnamed:
            raw = self._unnamed[0]
        if raw:
            return self._cached_user(re.sub(r"\D", "", raw)) or author

        return author

    def _cached_user(self, user_id):
        if not user_id:
            return None
        return self._message.client.get_user(int(user_id))


class PrefixContext(CommandContext):
    """A slash-command lookalike built from a prefix message"""

    is_prefix = True

    def __init__(self, message, args, settings=None):
        super().__init__()
        self.message = message
        self.id = message.id
        self.guild = message.guild
        self.channel = message.channel
        self.client = message.client

        author = message.author
        self.member = author if getattr(author, "guild", None) is not None else None
        nickname = getattr(self.member, "nick", None)
        self.user = UserView(author, nickname or author.name)

        positional_first = settings.positional_first_options if settings else ("period",)
        self.options = PrefixOptions(message, parse_args(args or []), positional_first)

        self._attempts = settings.send_retry_attempts if settings else 3
        self._base_delay = settings.send_retry_base_delay if settings else 2.0
        self._reply_message = None

    async def _send(self, payload):
        sent = await send_with_retry(self.channel, payload, self._attempts, self._base_delay)
        if self._reply_message is None:
            self._reply_message = sent
        return sent

    async def _send_fallback(self, payload, error):
        logger.warning(f"Reply failed, sending plain text instead: {error}")
        try:
            return await send_with_retry(
                self.channel, degrade_payload(payload), self._attempts, self._base_delay
            )
        except Exception as e:
            logger.error(f"Fallback reply failed: {e}")
            return None

    async def defer_reply(self, ephemeral=False):
        # No placeholder message for prefix commands, the real content follows
        self._deferred = True

    async def edit_reply(self, payload):
        self._replied = True
        try:
            if self._reply_message is not None:
                return await self._reply_message.edit(**_message_kwargs(payload))
            return await self._send(payload)
        except Exception as e:
            return await self._send_fallback(payload, e)

    async def reply(self, payload):
        self._replied = True
        try:
            return await self._send(payload)
        except Exception as e:
            return await self._send_fallback(payload, e)

    async def send_typing(self):
        try:
            await self.channel.typing()
        except Exception as e:
            logger.warning(f"Typing indicator failed: {e}")


def create_interaction_from_message(message, args, settings=None):
    """Build a fresh PrefixContext for one prefix invocation"""
    return PrefixContext(message, args, settings)


class NativeOptions:
    """Option accessors backed by the interaction payload"""

    def __init__(self, interaction):
        self._interaction = interaction
        data = interaction.data or {}
        self._values = {option["name"]: option.get("value") for option in data.get("options", [])}
        self._resolved = data.get("resolved", {})

    def get_string(self, name):
        value = self._values.get(name)
        return str(value) if value is not None else None

    def get_boolean(self, name):
        value = self._values.get(name)
        return bool(value) if value is not None else None

    def get_user(self, name):
        value = self._values.get(name)
        if value is None:
            return None
        user_id = int(value)
        guild = self._interaction.guild
        user = guild.get_member(user_id) if guild else None
        if user is None:
            user = self._resolved_user(str(user_id))
        if user is None:
            user = self._interaction.client.get_user(user_id)
        if user is None:
            logger.warning(f"User option {name}={value} is not cached or resolved")
        return user

    def _resolved_user(self, user_id):
        """Build the user Discord sent along with the interaction"""
        user_data = self._resolved.get("users", {}).get(user_id)
        if user_data is None:
            return None
        state = self._interaction._state
        guild = self._interaction.guild
        member_data = self._resolved.get("members", {}).get(user_id)
        if member_data is not None and guild is not None:
            return discord.Member(data={**member_data, "user": user_data}, guild=guild, state=state)
        return discord.User(state=state, data=user_data)


def _response_kwargs(payload):
    if isinstance(payload, str):
        return {"content": payload}
    return dict(payload)


def _edit_kwargs(payload):
    kwargs = _message_kwargs(payload)
    # edit_original_response takes attachments rather than file/files
    files = list(kwargs.pop("files", []))
    if "file" in kwargs:
        files.append(kwargs.pop("file"))
    if files:
        kwargs["attachments"] = files
    return kwargs


class NativeContext(CommandContext):
    """CommandContext over a real slash-command interaction"""

    def __init__(self, interaction):
        super().__init__()
        self.interaction = interaction
        self.id = interaction.id
        self.user = interaction.user
        self.guild = interaction.guild
        self.member = interaction.user if interaction.guild else None
        self.channel = interaction.channel
        self.client = interaction.client
        self.command_name = (interaction.data or {}).get("name")
        self.options = NativeOptions(interaction)

    async def reply(self, payload):
        self._replied = True
        kwargs = _response_kwargs(payload)
        if self.interaction.response.is_done():
            return await self.interaction.followup.send(**kwargs)
        await self.interaction.response.send_message(**kwargs)
        return await self.interaction.original_response()

    async def defer_reply(self, ephemeral=False):
        self._deferred = True
        if not self.interaction.response.is_done():
            await self.interaction.response.defer(ephemeral=ephemeral, thinking=True)

    async def edit_reply(self, payload):
        self._replied = True
        if not self.interaction.response.is_done():
            await self.interaction.response.send_message(**_response_kwargs(payload))
            return await self.interaction.original_response()
        return await self.interaction.edit_original_response(**_edit_kwargs(payload))


async def respond(ctx, payload, ephemeral=False):
    """Deliver a command's answer the right way for its invocation.

    Prefix invocations always send a new message. Native invocations edit
    the deferred/earlier response when there is one, otherwise reply.
    """
    if ctx.is_prefix:
        return await ctx.reply(payload)
    if ctx.deferred or ctx.replied:
        return await ctx.edit_reply(payload)
    if ephemeral:
        payload = {**_response_kwargs(payload), "ephemeral": True}
    return await ctx.reply(payload)
