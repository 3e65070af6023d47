import logging
import os
from dataclasses import dataclass

import aiosqlite

logger = logging.getLogger('bot')


@dataclass(frozen=True)
class LinkedUser:
    username: str
    session_key: str


@dataclass(frozen=True)
class Crown:
    holder_id: str
    plays: int


class Storage:
    """Handles database operations for linked accounts and crowns"""

    def __init__(self, db_path=os.path.join('data', 'fmbot.db')):
        self.db_path = db_path

    async def initialize(self):
        """Create the tables if they don't exist"""
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute('''
                CREATE TABLE IF NOT EXISTS linked_users (
                    user_id TEXT PRIMARY KEY,
                    username TEXT NOT NULL,
                    session_key TEXT NOT NULL,
                    linked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            await db.execute('''
                CREATE TABLE IF NOT EXISTS crowns (
                    guild_id TEXT,
                    artist TEXT,
                    holder_id TEXT NOT NULL,
                    plays INTEGER NOT NULL,
                    PRIMARY KEY (guild_id, artist)
                )
            ''')

            await db.commit()

    async def link_user(self, user_id, username, session_key):
        """Store (or replace) a user's Last.fm session"""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO linked_users (user_id, username, session_key) VALUES (?, ?, ?)",
                (str(user_id), username, session_key)
            )
            await db.commit()

    async def get_user(self, user_id):
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT username, session_key FROM linked_users WHERE user_id = ?",
                (str(user_id),)
            ) as cursor:
                row = await cursor.fetchone()
                return LinkedUser(*row) if row else None

    async def unlink_user(self, user_id):
        """Remove a user's link, returning whether one existed"""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM linked_users WHERE user_id = ?",
                (str(user_id),)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def linked_user_ids(self):
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT user_id FROM linked_users") as cursor:
                return [row[0] for row in await cursor.fetchall()]

    async def get_crown(self, guild_id, artist):
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT holder_id, plays FROM crowns WHERE guild_id = ? AND artist = ?",
                (str(guild_id), artist.lower().strip())
            ) as cursor:
                row = await cursor.fetchone()
                return Crown(row[0], row[1]) if row else None

    async def set_crown(self, guild_id, artist, holder_id, plays):
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO crowns (guild_id, artist, holder_id, plays) VALUES (?, ?, ?, ?)",
                (str(guild_id), artist.lower().strip(), str(holder_id), plays)
            )
            await db.commit()

    async def crowns_for(self, guild_id, holder_id):
        """List (artist, plays) crowns a user holds in a guild, most plays first"""
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT artist, plays FROM crowns WHERE guild_id = ? AND holder_id = ? ORDER BY plays DESC",
                (str(guild_id), str(holder_id))
            ) as cursor:
                return [(row[0], row[1]) for row in await cursor.fetchall()]
