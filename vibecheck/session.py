"""
Room Session
============

Drives one user's visit to a room:
1. Scan / enter a room id (SCANNING)
2. Submit three songs (INPUT)
3. See who was before you and the collective playlist (RESULTS)

Returning users who already submitted within the hour skip straight to
RESULTS. The session also keeps a user from firing two submissions at once.
"""

import logging
from typing import List, Optional

from .aggregation import build_playlist, pick_previous_entry, room_stats
from .errors import SubmissionInProgressError, VibeCheckError
from .gateway import RoomGateway, validate_room_id
from .models import AggregatedTrack, AppState, RoomData, RoomStats, Song, SongEntry

logger = logging.getLogger(__name__)


def parse_room_fragment(fragment: Optional[str]) -> Optional[str]:
    """
    Room id from a URL fragment such as ``"#12"``.

    Returns:
        The id, or None for an empty or non-numeric fragment
    """
    if not fragment:
        return None
    value = fragment.strip().lstrip("#")
    if validate_room_id(value):
        return value
    if value:
        logger.warning("Invalid non-numeric room ID in URL, ignoring: %r", fragment)
    return None


class RoomSession:
    """
    State machine for a single user in a single room at a time.

    Usage:
        session = RoomSession(RoomGateway())
        session.join_room("1")
        if session.state is AppState.INPUT:
            session.submit(current, favorite, underrated)
        print(session.playlist())
    """

    def __init__(self, gateway: RoomGateway):
        self.gateway = gateway
        self.state = AppState.SCANNING
        self.room_id: Optional[str] = None
        self.room_data: Optional[RoomData] = None
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def room_name(self) -> Optional[str]:
        if self.room_data is not None:
            return self.room_data.display_name
        return f"Room #{self.room_id}" if self.room_id else None

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def join_room(self, room_id: str) -> AppState:
        """
        Enter a room and pick the screen to show.

        Returns:
            INPUT for a first visit, RESULTS if the user submitted recently,
            SCANNING if the id is invalid
        """
        if not validate_room_id(room_id):
            logger.warning("Refusing to join room with invalid id %r", room_id)
            self.leave_room()
            return self.state

        self.room_id = str(room_id)
        self.room_data = self.gateway.get_room_data(self.room_id)

        if self.gateway.has_recent_submission(self.room_id):
            self.state = AppState.RESULTS
        else:
            self.state = AppState.INPUT
        return self.state

    def submit(self, current: Song, favorite: Song, underrated: Song) -> RoomData:
        """
        Send the user's picks and move to the results.

        Raises:
            SubmissionInProgressError: a submission is already running
            VibeCheckError: no room joined
            InvalidRoomIdError / SubmissionError: from the gateway, state unchanged
        """
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        if self.room_id is None:
            raise VibeCheckError("Join a room before submitting")

        self._submitting = True
        try:
            data = self.gateway.submit_entry(self.room_id, current, favorite, underrated)
        finally:
            self._submitting = False

        self.room_data = data
        self.state = AppState.RESULTS
        return data

    def refresh(self) -> Optional[RoomData]:
        """Re-read the current room."""
        if self.room_id is None:
            return None
        self.room_data = self.gateway.get_room_data(self.room_id)
        return self.room_data

    def add_another(self) -> AppState:
        """Go back to the form from the results."""
        if self.room_id is not None:
            self.state = AppState.INPUT
        return self.state

    def leave_room(self) -> AppState:
        """Forget the room; in-flight results are simply no longer referenced."""
        self.room_id = None
        self.room_data = None
        self.state = AppState.SCANNING
        return self.state

    # =========================================================================
    # RESULTS VIEW
    # =========================================================================

    def _entries(self) -> List[SongEntry]:
        return self.room_data.entries if self.room_data else []

    def previous_entry(self, by_identity: bool = False) -> Optional[SongEntry]:
        """Entry of the person before this user (see ``pick_previous_entry``)."""
        user_id = self.gateway.identity.get_or_create_user_id() if by_identity else None
        return pick_previous_entry(self._entries(), user_id=user_id)

    def playlist(self) -> List[AggregatedTrack]:
        return build_playlist(self._entries())

    def stats(self) -> RoomStats:
        return room_stats(self._entries())
