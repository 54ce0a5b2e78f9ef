"""
Conversation History
====================
Ordered record of every prompt and response exchanged with the generative
service during a run.

The full history is sent with each request, so earlier exchanges (including
those for other contracts) stay in context for later ones. The history only
grows: messages are never edited or removed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"


@dataclass(frozen=True)
class Message:
    """One entry in the conversation."""
    role: Role
    content: str


class ConversationHistory:
    """
    Append-only message log shared by the requests of a run.

    Usage:
        history = ConversationHistory.seeded()
        history.append(Message(Role.USER, prompt))
        response = generator.request(history.snapshot())
        history.append(Message(Role.SYSTEM, response))
    """

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: list[Message] = list(messages)

    @classmethod
    def seeded(cls, seed: Optional[Iterable[Message]] = None) -> "ConversationHistory":
        """Create a history starting with the training prompts (or `seed`)."""
        if seed is None:
            from .prompts import TRAINING_PROMPTS
            seed = TRAINING_PROMPTS
        return cls(seed)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def snapshot(self) -> tuple[Message, ...]:
        """Return the full ordered history as it stands now."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
