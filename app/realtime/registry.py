# app/realtime/registry.py
from typing import Dict, Optional


class ConnectionRegistry:
    """
    Maps a user id to the id of that user's current connection.

    One entry per user: binding again replaces the previous connection, so a
    user with several open sessions only hears events on the newest one.
    """

    def __init__(self):
        self._by_user: Dict[str, str] = {}

    def bind(self, user_id, connection_id: str) -> None:
        self._by_user[str(user_id)] = connection_id

    def unbind_connection(self, connection_id: str) -> None:
        # Only drop entries that still point at this connection
        stale = [uid for uid, cid in self._by_user.items() if cid == connection_id]
        for uid in stale:
            del self._by_user[uid]

    def connection_for(self, user_id) -> Optional[str]:
        return self._by_user.get(str(user_id))

    def __len__(self) -> int:
        return len(self._by_user)
