"""
VibeCheck - Room Playlist from Everyone's Picks
===============================================

People in the same physical room each submit three songs (what they are
listening to right now, their all-time favorite and an underrated pick).
VibeCheck collects the entries per room and builds a collective playlist
from the songs the room keeps coming back to.

Modules:
    - config: Configuration and constants
    - models: Song, entry and room data types
    - errors: Exception hierarchy
    - identity: Anonymous per-installation user id
    - store: Hosted table store (PostgREST) client
    - gateway: Room data access and submission guards
    - aggregation: Collective playlist and room statistics
    - spotify_client: Spotify song lookup
    - autocomplete: Debounced song search
    - enrichment: Optional AI song resolution and room vibe
    - session: Room join / submit / results flow
    - cli: Command-line interface
"""

__version__ = "1.0.0"
__author__ = "VibeCheck Team"
