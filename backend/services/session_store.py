"""Session store for multi-turn dialogue state."""
import asyncio
import logging
import uuid
from typing import Dict, Optional

from models.conversation import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """
    In-memory, process-lifetime store of dialogue sessions keyed by conversation id.

    Access contract: a turn reads a session, suspends on gateway calls and
    writes it back, so callers must hold ``lock(conversation_id)`` for the
    whole turn. Turns on different ids do not contend.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        logger.info("SessionStore initialized (in-memory)")

    def get_or_create(self, conversation_id: Optional[str] = None) -> Session:
        """
        Get an existing session or create a new one.

        Args:
            conversation_id: Optional conversation id; a new id is generated
                when omitted, an unknown id starts a session under that id

        Returns:
            Session for the conversation
        """
        if conversation_id is None:
            conversation_id = self.new_conversation_id()

        session = self._sessions.get(conversation_id)
        if session is not None:
            logger.debug(f"Retrieved session {conversation_id} with {len(session.turns)} turns")
            return session

        session = Session(conversation_id=conversation_id)
        self._sessions[conversation_id] = session
        logger.info(f"Created new session: {conversation_id}")
        return session

    def get(self, conversation_id: str) -> Optional[Session]:
        return self._sessions.get(conversation_id)

    def save(self, session: Session) -> None:
        """Store the session state produced by a turn."""
        self._sessions[session.conversation_id] = session

    def lock(self, conversation_id: str) -> asyncio.Lock:
        """The lock serializing turns for ``conversation_id``."""
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    def new_conversation_id(self) -> str:
        """
        Generate a unique conversation ID.

        Returns:
            Unique conversation ID string
        """
        while True:
            conversation_id = f"conv_{uuid.uuid4().hex[:12]}"
            if conversation_id not in self._sessions:
                return conversation_id

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
