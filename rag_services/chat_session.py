"""
One document's conversation: extracted text, instruction and history.
"""
import asyncio
import logging
from typing import List, Optional

from core.config import settings
from core.exceptions import ExtractionError, GenerationError
from models.chat import ChatMessage, SessionInfo
from rag_services.pdf_processor import PDFProcessor

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "..."

DEFAULT_SYSTEM_PROMPT = """You are an AI assistant specialized in answering questions based only on the content of an uploaded PDF document.

Instructions:
1. Context: A PDF has been uploaded, and you must read and understand it.
2. Answering Rules:
   - Base every answer strictly on the PDF's content.
   - If the PDF does not contain the requested information, reply clearly:
     "The document does not provide that information."
   - Always include page references (if available), but place them at the end of the answer.
   - Present answers in bullet points, numbered lists, or short structured summaries for clarity.
3. Style:
   - Keep responses concise, clear, and factual.
   - Do not make assumptions or use outside knowledge.
   - Highlight direct evidence from the document wherever possible."""


class ChatSession:
    """Holds the grounding text for one upload and its conversation history.

    Build instances with :meth:`initialize`; ``send_message`` and ``clear``
    are serialized per session so two requests on the same session cannot
    interleave their history updates.
    """

    def __init__(
        self,
        session_id: str,
        document_text: str,
        system_prompt: str,
        generator,
        context_window: int = 6000,
    ):
        self.session_id = session_id
        self._document_text = document_text
        self._system_prompt = system_prompt
        self._generator = generator
        self.context_window = context_window
        self._history: List[ChatMessage] = []
        self._lock = asyncio.Lock()

    @classmethod
    async def initialize(
        cls,
        session_id: str,
        document_bytes: bytes,
        extractor,
        generator,
        custom_instruction: Optional[str] = None,
        context_window: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> "ChatSession":
        """Extract and clean the document text, then build the session.

        Raises:
            ExtractionError: extraction failed, timed out, or found no text.
        """
        timeout = settings.EXTRACTION_TIMEOUT_SECONDS if timeout is None else timeout
        loop = asyncio.get_running_loop()
        try:
            raw_text = await asyncio.wait_for(
                loop.run_in_executor(None, extractor.extract_text, document_bytes),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(f"Text extraction timed out after {timeout:g}s") from e
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Error initializing chat session: {e}") from e

        document_text = PDFProcessor.clean_text(raw_text or "")
        if not document_text:
            raise ExtractionError("No readable text found in document")

        if custom_instruction and custom_instruction.strip():
            system_prompt = custom_instruction
        else:
            system_prompt = DEFAULT_SYSTEM_PROMPT

        return cls(
            session_id=session_id,
            document_text=document_text,
            system_prompt=system_prompt,
            generator=generator,
            context_window=settings.CONTEXT_WINDOW_CHARS if context_window is None else context_window,
        )

    @property
    def document_text(self) -> str:
        return self._document_text

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def build_context(self) -> str:
        """Document text cut to the context window, marked when cut."""
        if len(self._document_text) > self.context_window:
            return self._document_text[: self.context_window] + TRUNCATION_MARKER
        return self._document_text

    def build_prompt(self, user_message: str) -> str:
        return f"""{self._system_prompt}

PDF Content:
{self.build_context()}

User Question: {user_message}

Please answer the user's question based on the PDF content provided above."""

    async def send_message(self, message: str) -> str:
        async with self._lock:
            prompt = self.build_prompt(message)
            try:
                reply = await self._generator.generate(prompt)
            except GenerationError:
                raise
            except Exception as e:
                raise GenerationError(f"Error sending message: {e}") from e

            self._history.append(ChatMessage(role="user", content=message))
            self._history.append(ChatMessage(role="assistant", content=reply))
            return reply

    def get_history(self) -> List[ChatMessage]:
        return list(self._history)

    async def clear(self) -> None:
        async with self._lock:
            self._history = []

    def get_info(self) -> SessionInfo:
        return SessionInfo(
            textLength=len(self._document_text),
            messageCount=len(self._history),
        )
