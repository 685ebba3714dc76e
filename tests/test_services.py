"""
Tests for the collaborator wrappers: PDF extraction, LLM calls, upload storage.
"""

import asyncio
import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError
from pypdf import PdfWriter

from core.exceptions import ExtractionError, GenerationError
from rag_services.chat_session import ChatSession
from rag_services.llm import LLMService
from rag_services.pdf_processor import PDFProcessor
from services.storage import UploadStorage


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def llm() -> LLMService:
    service = LLMService(provider="openai", model="test-model", timeout=1.0)
    service._client = MagicMock()
    return service


class TestPDFProcessor:
    def test_garbage_bytes(self):
        with pytest.raises(ExtractionError):
            PDFProcessor.extract_text(b"definitely not a pdf")

    def test_blank_pdf_has_no_text(self):
        assert PDFProcessor.extract_text(_blank_pdf()).strip() == ""

    @pytest.mark.asyncio
    async def test_blank_pdf_cannot_start_a_session(self, generator):
        with pytest.raises(ExtractionError, match="No readable text"):
            await ChatSession.initialize("s", _blank_pdf(), extractor=PDFProcessor(), generator=generator)


class TestLLMService:
    @pytest.mark.asyncio
    async def test_reply_is_returned(self, llm):
        llm._client.chat.completions.create.return_value = _completion("It is about tides.")

        assert await llm.generate("prompt") == "It is about tides."
        kwargs = llm._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_backend_error_is_wrapped(self, llm):
        llm._client.chat.completions.create.side_effect = OpenAIError("connection refused")

        with pytest.raises(GenerationError, match="connection refused"):
            await llm.generate("prompt")

    @pytest.mark.asyncio
    async def test_empty_reply(self, llm):
        llm._client.chat.completions.create.return_value = _completion("")

        with pytest.raises(GenerationError, match="Empty response"):
            await llm.generate("prompt")

    @pytest.mark.asyncio
    async def test_timeout(self, llm):
        async def hang(prompt):
            await asyncio.sleep(5)

        llm.timeout = 0.05
        llm._generate = hang

        with pytest.raises(GenerationError, match="timed out"):
            await llm.generate("prompt")

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        service = LLMService(provider="carrier-pigeon")
        with pytest.raises(GenerationError, match="Unknown LLM provider"):
            await service.generate("prompt")


class TestUploadStorage:
    @pytest.mark.asyncio
    async def test_save_writes_file(self, tmp_path):
        storage = UploadStorage(str(tmp_path / "files"))

        url = await storage.save(b"%PDF-1.4")

        name = url.rsplit("/", 1)[1]
        assert url == f"/uploads/{name}"
        assert name.startswith("pdf-") and name.endswith(".pdf")
        assert (tmp_path / "files" / name).read_bytes() == b"%PDF-1.4"
