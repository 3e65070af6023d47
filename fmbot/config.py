import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger('bot')

CONFIG_FILE = os.path.join('config', 'config.json')

# Keys in config.json that may override the defaults below, with their types
TUNABLES = {
    "prefix": str,
    "send_retry_attempts": int,
    "send_retry_base_delay": float,
    "positional_first_options": list,
    "feature_interval_minutes": float,
}


@dataclass
class Settings:
    """Runtime configuration for the bot"""
    discord_token: str = ""
    client_id: str = ""
    guild_id: Optional[str] = None
    lastfm_api_key: str = ""
    lastfm_shared_secret: str = ""
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    prefix: str = ".fm"
    db_path: str = os.path.join('data', 'fmbot.db')
    feature_channel_id: Optional[int] = None
    feature_interval_minutes: float = 30
    send_retry_attempts: int = 3
    send_retry_base_delay: float = 2.0
    # Options that read the first positional word instead of all of them
    positional_first_options: List[str] = field(default_factory=lambda: ["period"])


def _env(name):
    value = os.getenv(name)
    if not value:
        logger.warning(f"Missing env var: {name}")
        return ""
    return value


def _coerce(key, value):
    """Convert a config.json value to the type of its setting, or raise ValueError"""
    kind = TUNABLES[key]
    if kind is list:
        if not isinstance(value, list):
            raise ValueError(f"expected a list, got {value!r}")
        return [str(item) for item in value]
    if kind is str:
        if not isinstance(value, str) or not value:
            raise ValueError(f"expected a non-empty string, got {value!r}")
        return value
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    return kind(value)


def _load_overrides(path):
    """Read tunables from config.json, creating a default file when absent"""
    try:
        if os.path.exists(path):
            with open(path, 'r') as f:
                data = json.load(f)
            logger.info(f"Loaded configuration from {path}")
            return {key: value for key, value in data.items() if key in TUNABLES}

        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump({"prefix": Settings.prefix}, f, indent=4)
        logger.info(f"Created default {path}")
    except (OSError, ValueError) as e:
        logger.error(f"Error loading configuration: {e}")
    return {}


def load_settings(config_file=CONFIG_FILE):
    """Build Settings from the environment plus config.json overrides"""
    channel = os.getenv("FEATURE_CHANNEL_ID")
    settings = Settings(
        discord_token=_env("DISCORD_TOKEN"),
        client_id=_env("CLIENT_ID"),
        guild_id=os.getenv("GUILD_ID") or None,
        lastfm_api_key=_env("LASTFM_API_KEY"),
        lastfm_shared_secret=_env("LASTFM_SHARED_SECRET"),
        spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
        spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
        prefix=os.getenv("PREFIX") or Settings.prefix,
        db_path=os.getenv("DB_PATH") or Settings.db_path,
        feature_channel_id=int(channel) if channel and channel.isdigit() else None,
    )

    interval = os.getenv("FEATURE_INTERVAL_MINUTES")
    if interval:
        try:
            settings.feature_interval_minutes = float(interval)
        except ValueError:
            logger.warning(f"Ignoring invalid FEATURE_INTERVAL_MINUTES: {interval}")

    for key, value in _load_overrides(config_file).items():
        # The environment wins for the prefix
        if key == "prefix" and os.getenv("PREFIX"):
            continue
        try:
            setattr(settings, key, _coerce(key, value))
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring config.json {key}: {e}")

    return settings
