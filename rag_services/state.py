"""
In-memory registry of chat sessions.

One registry is built per application (see ``main.create_app``) and shared
by every request through ``app.state``. Sessions live until the process exits
or until they are evicted as least recently used once ``max_sessions`` is
reached.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Optional

from rag_services.chat_session import ChatSession
from core.exceptions import SessionNotFound

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex}"


class SessionRegistry:
    def __init__(self, extractor, generator, max_sessions: int = 100):
        self.extractor = extractor
        self.generator = generator
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def create(self, document_bytes: bytes, custom_instruction: Optional[str] = None) -> str:
        """Extract the document and register a new session for it.

        Nothing is registered when extraction fails.
        """
        session_id = new_session_id()
        session = await ChatSession.initialize(
            session_id,
            document_bytes,
            extractor=self.extractor,
            generator=self.generator,
            custom_instruction=custom_instruction,
        )
        self._sessions[session_id] = session
        logger.info("Created %s (%d chars of text)", session_id, len(session.document_text))
        self._evict()
        return session_id

    def get(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        self._sessions.move_to_end(session_id)
        return session

    async def clear(self, session_id: str) -> None:
        await self.get(session_id).clear()

    def discard(self, session_id: str) -> None:
        """Drop a session if present; used to undo a half-finished upload."""
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Discarded %s", session_id)

    def _evict(self) -> None:
        if self.max_sessions <= 0:
            return
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info("Evicted least recently used %s", evicted_id)
