class MatchmakingQueue:
    """Single pending slot for the next arena opponent.

    Never holds more than one connection_id. The pairing policy (stale
    entries, self-pairing) belongs to the arena manager; this class only
    guards the slot.
    """

    def __init__(self) -> None:
        self._waiting: str | None = None

    @property
    def waiting_connection_id(self) -> str | None:
        return self._waiting

    @property
    def is_empty(self) -> bool:
        return self._waiting is None

    def is_waiting(self, connection_id: str) -> bool:
        return self._waiting == connection_id

    def park(self, connection_id: str) -> None:
        """Make connection_id the waiting entry, replacing any previous one."""
        self._waiting = connection_id

    def take(self) -> str | None:
        """Remove and return the waiting entry."""
        waiting, self._waiting = self._waiting, None
        return waiting

    def discard(self, connection_id: str) -> bool:
        """Clear the slot if connection_id holds it. Return True if it was cleared."""
        if self._waiting != connection_id:
            return False
        self._waiting = None
        return True
