import base64
import logging
import time

import aiohttp

logger = logging.getLogger('bot')

API_URL = "https://api.spotify.com/v1"
TOKEN_URL = "https://accounts.spotify.com/api/token"


class SpotifyAPI:
    """Handles Spotify API interactions with client credentials"""

    def __init__(self, client_id, client_secret):
        self.client_id = client_id
        self.client_secret = client_secret
        self._token = None
        self._token_expires = 0.0

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    async def get_access_token(self):
        """Fetch an app token, reusing the cached one until it expires"""
        if not self.configured:
            return None
        if self._token and time.monotonic() < self._token_expires:
            return self._token

        auth_string = f"{self.client_id}:{self.client_secret}"
        auth_base64 = base64.b64encode(auth_string.encode('utf-8')).decode('utf-8')

        headers = {
            'Authorization': f"Basic {auth_base64}",
            'Content-Type': 'application/x-www-form-urlencoded'
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(TOKEN_URL, headers=headers, data={'grant_type': 'client_credentials'}) as response:
                    if response.status != 200:
                        error_data = await response.text()
                        logger.error(f"Error getting Spotify token: {error_data}")
                        return None
                    data = await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Spotify token request failed: {e}")
            return None

        self._token = data.get('access_token')
        # Refresh a minute early
        self._token_expires = time.monotonic() + data.get('expires_in', 3600) - 60
        return self._token

    async def search(self, query, kind="track", limit=5):
        """Search Spotify; returns the items list for the requested kind"""
        token = await self.get_access_token()
        if not token:
            return []

        headers = {'Authorization': f'Bearer {token}'}
        params = {'q': query, 'type': kind, 'limit': limit}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(f"{API_URL}/search", headers=headers, params=params) as response:
                    if response.status != 200:
                        error_data = await response.text()
                        logger.error(f"Error searching Spotify: {error_data}")
                        return []
                    data = await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Spotify search failed: {e}")
            return []

        return data.get(f"{kind}s", {}).get('items', [])

    async def get_image(self, kind, artist, track=None, album=None):
        """Best cover or portrait for an artist, track or album"""
        if kind == "artist":
            items = await self.search(artist, "artist")
            match = next((item for item in items if item.get('name', '').lower() == artist.lower()), None)
            item = match or (items[0] if items else None)
            images = (item or {}).get('images', [])
        elif kind == "track":
            items = await self.search(f"{track} {artist}", "track", limit=1)
            images = items[0].get('album', {}).get('images', []) if items else []
        else:
            items = await self.search(f"{album} {artist}", "album", limit=1)
            images = items[0].get('images', []) if items else []

        return images[0].get('url') if images else None

    async def find_track_url(self, query):
        items = await self.search(query, "track", limit=1)
        if not items:
            return None
        return items[0].get('external_urls', {}).get('spotify')
