"""
Anonymous Identity
==================

Every installation gets a random id the first time it is needed. The id is
kept in a small JSON file so the same person keeps the same id between
runs. There is no account and no server-side identity behind it.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from .config import USER_ID_FILE

logger = logging.getLogger(__name__)


class IdentityProvider:
    """
    Reads and persists the anonymous user id.

    Attributes:
        path: JSON file holding the id
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else Path(USER_ID_FILE)
        self._user_id: Optional[str] = None

    def _load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Ignoring unreadable identity file %s: %s", self.path, e)
            return None
        user_id = data.get("user_id") if isinstance(data, dict) else None
        return user_id or None

    def _save(self, user_id: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump({"user_id": user_id}, f)
        except IOError as e:
            # The id still works for this process, it just won't survive a restart
            logger.warning("Could not persist user id to %s: %s", self.path, e)

    def get_or_create_user_id(self) -> str:
        """
        Return the persisted id, creating and saving a new one if needed.

        Returns:
            Stable anonymous user id (a UUID string)
        """
        if self._user_id:
            return self._user_id

        user_id = self._load()
        if not user_id:
            user_id = str(uuid.uuid4())
            self._save(user_id)
            logger.debug("Created new anonymous user id %s", user_id)

        self._user_id = user_id
        return user_id
