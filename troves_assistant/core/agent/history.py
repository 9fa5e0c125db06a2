import threading
from typing import Dict, List, Literal

from pydantic import BaseModel


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ConversationStore:
    """
    In-memory per-user conversation history.

    Each user's list is capped at ``max_turns``; the oldest turns are dropped
    first. Nothing is persisted.
    """

    def __init__(self, max_turns: int = 12):
        if max_turns < 1:
            raise ValueError("max_turns must be positive")
        self.max_turns = max_turns
        self._turns: Dict[str, List[ConversationTurn]] = {}
        self._lock = threading.Lock()

    def append(self, user_id: str, role: str, content: str) -> None:
        with self._lock:
            turns = self._turns.setdefault(user_id, [])
            turns.append(ConversationTurn(role=role, content=content))
            overflow = len(turns) - self.max_turns
            if overflow > 0:
                del turns[:overflow]

    def window(self, user_id: str, size: int) -> List[ConversationTurn]:
        """The most recent ``size`` turns, oldest first."""
        with self._lock:
            turns = self._turns.get(user_id, [])
            return list(turns[-size:]) if size > 0 else []

    def get(self, user_id: str) -> List[ConversationTurn]:
        with self._lock:
            return list(self._turns.get(user_id, []))

    def has(self, user_id: str) -> bool:
        with self._lock:
            return bool(self._turns.get(user_id))

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._turns.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)
