"""
Spotify Song Lookup
===================

Autocomplete backend for the song inputs:
- client-credentials token exchange with an in-instance token cache
- track search returning at most a handful of candidates

Autocomplete is a convenience. Every failure here (missing credentials,
network trouble, API errors) ends in an empty suggestion list so manual
typing is never blocked.
"""

import logging
import time
from typing import Callable, List, Optional

import requests
import spotipy

from .config import (
    SEARCH_MIN_QUERY_LENGTH,
    SEARCH_RESULT_LIMIT,
    TOKEN_REFRESH_MARGIN_SECONDS,
    SpotifyConfig,
)
from .models import Song

logger = logging.getLogger(__name__)


class SongLookupClient:
    """
    Spotify track search with its own access-token cache.

    Create one instance per process and pass it around; the token and its
    expiry live on the instance.

    Attributes:
        config: Client id / secret and token endpoint
        session: requests session used for the token exchange
    """

    def __init__(
        self,
        config: Optional[SpotifyConfig] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            config: Spotify credentials (read from the environment if None)
            session: HTTP session for the token endpoint
            clock: Time source in seconds, injectable for tests
            sleep: Used by the request throttle, paired with clock
        """
        self.config = config or SpotifyConfig.from_env()
        self.session = session or requests.Session()
        self._clock = clock
        self._sleep = sleep

        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._sp: Optional[spotipy.Spotify] = None

        # Request throttling
        self._last_request_time = 0.0
        self._min_request_interval = 0.05  # 50ms between requests

    def _throttle(self):
        """Ensure minimum time between requests."""
        elapsed = self._clock() - self._last_request_time
        if elapsed < self._min_request_interval:
            self._sleep(self._min_request_interval - elapsed)
        self._last_request_time = self._clock()

    def _token_is_fresh(self) -> bool:
        return bool(self._token) and self._clock() < self._expires_at - TOKEN_REFRESH_MARGIN_SECONDS

    def get_access_token(self) -> Optional[str]:
        """
        Bearer token for the Web API.

        Reuses the cached token until it is within a minute of expiring.

        Returns:
            Token string, or None if credentials are missing or the exchange failed
        """
        if self._token_is_fresh():
            return self._token

        if not self.config.is_configured:
            logger.warning("Spotify Client ID or Secret is missing. Song suggestions are disabled.")
            return None

        try:
            response = self.session.post(
                self.config.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            data = response.json()
            token = data["access_token"]
            expires_in = float(data.get("expires_in", 3600))
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error("Failed to get Spotify access token: %s", e)
            return None

        self._token = token
        self._expires_at = self._clock() + expires_in
        self._sp = None
        return token

    def _spotify(self, token: str) -> spotipy.Spotify:
        if self._sp is None:
            self._sp = spotipy.Spotify(
                auth=token,
                requests_timeout=self.config.timeout,
                retries=0,
            )
        return self._sp

    def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT) -> List[Song]:
        """
        Track candidates for a partial title.

        Args:
            query: Text typed so far
            limit: Maximum suggestions

        Returns:
            Up to ``limit`` songs; empty for very short queries or on any error
        """
        if not query or len(query) < SEARCH_MIN_QUERY_LENGTH:
            return []

        token = self.get_access_token()
        if not token:
            return []

        self._throttle()
        try:
            result = self._spotify(token).search(q=query, type='track', limit=limit)
        except (spotipy.SpotifyException, requests.RequestException) as e:
            logger.error("Spotify search failed for %r: %s", query, e)
            return []

        items = ((result or {}).get('tracks') or {}).get('items') or []
        songs = []
        for track in items[:limit]:
            if not track:
                continue
            songs.append(Song(
                title=track.get('name', ''),
                artist=', '.join(a.get('name', '') for a in track.get('artists', [])),
                source_url=(track.get('external_urls') or {}).get('spotify', ''),
            ))
        return songs
