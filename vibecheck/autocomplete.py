"""
Debounced Autocomplete
======================

Keystroke-driven search for the song inputs. Each new query cancels the
pending delay of the previous one, so only the last value typed within the
quiet window reaches Spotify. Every dispatched search gets a sequence
number; a response that comes back after a newer search was dispatched is
dropped instead of overwriting fresher suggestions.
"""

import asyncio
import logging
from typing import List, Optional

from .config import SEARCH_DEBOUNCE_SECONDS, SEARCH_MIN_QUERY_LENGTH
from .models import Song
from .spotify_client import SongLookupClient

logger = logging.getLogger(__name__)


class DebouncedSearch:
    """
    Debounce plus staleness guard around ``SongLookupClient.search``.

    Usage:
        search = DebouncedSearch(SongLookupClient())
        suggestions = await search.request("blue")
        if suggestions is not None:
            show(suggestions)
    """

    def __init__(self, lookup: SongLookupClient, delay: float = SEARCH_DEBOUNCE_SECONDS):
        """
        Args:
            lookup: Client that performs the actual search
            delay: Quiet window in seconds
        """
        self.lookup = lookup
        self.delay = delay
        self.latest: List[Song] = []

        self._pending: Optional[asyncio.Future] = None
        self._dispatched = 0

    @property
    def dispatched(self) -> int:
        """Sequence number of the most recently dispatched search."""
        return self._dispatched

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def request(self, query: str) -> Optional[List[Song]]:
        """
        Submit the current input value.

        Returns:
            Suggestions that were applied, or None if this request was
            superseded during its delay or answered after a newer one
        """
        self._cancel_pending()

        if not query or len(query) < SEARCH_MIN_QUERY_LENGTH:
            # Clearing counts as a dispatch so in-flight answers go stale
            self._dispatched += 1
            self.latest = []
            return []

        delay = asyncio.ensure_future(asyncio.sleep(self.delay))
        self._pending = delay
        try:
            await delay
        except asyncio.CancelledError:
            if self._pending is not delay:
                logger.debug("Search for %r superseded before dispatch", query)
                return None
            raise
        self._pending = None

        self._dispatched += 1
        sequence = self._dispatched
        results = await asyncio.to_thread(self.lookup.search, query)

        if sequence < self._dispatched:
            logger.debug("Dropping stale results for %r (#%d < #%d)", query, sequence, self._dispatched)
            return None

        self.latest = results
        return results
