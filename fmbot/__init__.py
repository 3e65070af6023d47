"""Last.fm and Spotify stats bot for Discord, usable through slash and prefix commands."""

__version__ = "1.0.0"
