"""
Shared fixtures: in-memory stand-ins for the PDF extractor and the LLM.

The fake extractor treats the uploaded bytes as UTF-8 text so tests can
upload plain strings instead of real PDFs.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from core.exceptions import GenerationError
from rag_services.state import SessionRegistry
from services.storage import UploadStorage


class FakeExtractor:
    def __init__(self):
        self.calls = 0

    def extract_text(self, data: bytes) -> str:
        self.calls += 1
        if data.startswith(b"%CORRUPT"):
            raise ValueError("EOF marker not found")
        return data.decode("utf-8")


class FakeGenerator:
    def __init__(self, delay: float = 0.0):
        self.prompts = []
        self.fail_with = None
        self.delay = delay

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        question = prompt.split("User Question: ", 1)[1].split("\n", 1)[0]
        return f"Answer to: {question}"


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def failing_generator() -> FakeGenerator:
    gen = FakeGenerator()
    gen.fail_with = GenerationError("model not loaded")
    return gen


@pytest.fixture
def registry(extractor: FakeExtractor, generator: FakeGenerator) -> SessionRegistry:
    return SessionRegistry(extractor=extractor, generator=generator, max_sessions=10)


@pytest.fixture
def storage(tmp_path) -> UploadStorage:
    return UploadStorage(str(tmp_path / "uploads"))


@pytest.fixture
def client(registry: SessionRegistry, storage: UploadStorage):
    from main import create_app

    app = create_app(registry=registry, storage=storage)
    with TestClient(app) as test_client:
        yield test_client
