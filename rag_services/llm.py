"""
LLM service for answer generation
"""
import asyncio
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from core.config import settings
from core.exceptions import GenerationError

logger = logging.getLogger(__name__)


class LLMService:
    """Generates a reply for a fully assembled prompt.

    ``provider="openai"`` talks to any OpenAI-compatible chat completions
    endpoint (OpenAI itself, or a local Ollama server through ``base_url``).
    ``provider="groq"`` goes through LangChain's ChatGroq.
    """

    def __init__(
        self,
        provider: str = "openai",
        model: str = "deepseek-r1:8b",
        temperature: float = 0.3,
        max_tokens: int = 1024,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
    ):
        self.provider = provider.lower()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        # Clients are built on first use so importing this module never
        # requires credentials.
        self._client = None

    @classmethod
    def from_settings(cls) -> "LLMService":
        api_key = settings.GROQ_API_KEY if settings.LLM_PROVIDER.lower() == "groq" else settings.LLM_API_KEY
        return cls(
            provider=settings.LLM_PROVIDER,
            model=settings.CHAT_MODEL,
            temperature=settings.TEMPERATURE,
            max_tokens=settings.MAX_TOKENS,
            base_url=settings.LLM_BASE_URL,
            api_key=api_key,
            timeout=settings.GENERATION_TIMEOUT_SECONDS,
        )

    def _ensure_client(self):
        if self._client is not None:
            return self._client
        if self.provider == "openai":
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        elif self.provider == "groq":
            from langchain_groq import ChatGroq

            self._client = ChatGroq(
                api_key=self.api_key,
                model_name=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        else:
            raise GenerationError(f"Unknown LLM provider: {self.provider}")
        return self._client

    def _complete(self, prompt: str) -> str:
        """Blocking chat completion call, run in the default executor."""
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""

    async def _generate(self, prompt: str) -> str:
        client = self._ensure_client()
        if self.provider == "groq":
            message = await client.ainvoke(prompt)
            return message.content
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._complete, prompt)

    async def generate(self, prompt: str) -> str:
        """Return the backend's reply, or raise GenerationError."""
        try:
            reply = await asyncio.wait_for(self._generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Generation timed out after {self.timeout:g}s") from e
        except GenerationError:
            raise
        except OpenAIError as e:
            raise GenerationError(f"Error sending message: {e}") from e
        except Exception as e:
            # ChatGroq surfaces groq/httpx errors unwrapped
            logger.exception("LLM backend failed")
            raise GenerationError(f"Error sending message: {e}") from e

        if not reply or not reply.strip():
            raise GenerationError("Empty response from language model")
        return reply
