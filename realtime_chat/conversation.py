"""Conversation history kept in memory for a single chat session."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


class Role(str, Enum):
    """Originating side of a conversation turn."""

    USER = "user"
    MODEL = "model"


# Chat Completions names the model side "assistant"
PROVIDER_ROLES = {Role.USER: "user", Role.MODEL: "assistant"}


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(Role.USER, content)

    @classmethod
    def model(cls, content: str) -> "Turn":
        return cls(Role.MODEL, content)


class ConversationState:
    """Append-only, ordered log of turns."""

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> None:
        """Append a turn to the end of the history."""
        if not isinstance(turn, Turn):
            raise TypeError(f"Expected Turn, got {type(turn).__name__}")
        self._turns.append(turn)

    def to_ordered_sequence(self) -> Tuple[Turn, ...]:
        """Return a read-only snapshot of the history in insertion order."""
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.to_ordered_sequence())


def to_provider_messages(
    turns: Iterable[Turn], system_instruction: Optional[str] = None
) -> List[Dict[str, str]]:
    """Convert turns to Chat Completions message dicts, preserving order."""
    messages = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    for turn in turns:
        messages.append({"role": PROVIDER_ROLES[turn.role], "content": turn.content})
    return messages
