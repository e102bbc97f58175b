"""Conversation data models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from models.slots import SlotSet

USER = "user"
ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Turn:
    """Represents a single message in a conversation."""
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class Session:
    """
    Server-held dialogue state for one conversation.

    Turns are append-only. At most one of the two awaiting flags drives the
    interpretation of the next message.
    """
    conversation_id: str
    turns: List[Turn] = field(default_factory=list)
    awaiting_zip_code: bool = False
    awaiting_device_info: bool = False
    partial_slots: Optional[SlotSet] = None
    created_at: datetime = field(default_factory=_utcnow)

    def add_turn(self, role: str, content: str) -> Turn:
        if role not in (USER, ASSISTANT):
            raise ValueError(f"Unknown turn role: {role}")
        turn = Turn(role=role, content=content)
        self.turns.append(turn)
        return turn

    def last_turn(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    def clear_device_info(self) -> None:
        """Drop any pending estimate state."""
        self.partial_slots = None
        self.awaiting_device_info = False
