"""Shared pytest fixtures for the DEC Learning document service test suite."""

from __future__ import annotations

import hashlib
from collections.abc import AsyncIterator
from pathlib import Path

import fitz
import pytest
import pytest_asyncio

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from src.providers.storage.local_file_storage import LocalFileStorage
from src.utils.errors import LLMError, ProviderError

# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embedding provider for tests.

    Texts found in *vectors* get that exact vector; anything else gets a
    hash-derived vector of *dimension* floats, so equal texts always embed
    equally.  Set ``fail`` to make every call raise :class:`ProviderError`.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        dimension: int = 8,
        fail: bool = False,
    ) -> None:
        self.vectors = dict(vectors or {})
        self.dimension = dimension
        self.fail = fail
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise ProviderError(message="embedding service down", provider_name="mock_embedding")
        return [self._vector_for(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self.dimension

    def get_provider_name(self) -> str:
        return "mock_embedding"

    def is_available(self) -> bool:
        return True

    def _vector_for(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [(digest[i] / 255.0) - 0.5 for i in range(self.dimension)]


class MockLLMProvider(ILLMProvider):
    """Chat provider returning canned text and recording the prompts it saw."""

    def __init__(
        self,
        reply: str = "Mock assistant reply.",
        fragments: list[str] | None = None,
        fail: bool = False,
        fail_after: int | None = None,
    ) -> None:
        self.reply = reply
        self.fragments = fragments if fragments is not None else ["Mock ", "assistant ", "reply."]
        self.fail = fail
        self.fail_after = fail_after
        self.calls: list[list[dict[str, str]]] = []

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        self.calls.append(messages)
        if self.fail:
            raise LLMError(message="completion failed", provider_name="mock_llm")
        return self.reply

    async def stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> AsyncIterator[str]:
        self.calls.append(messages)
        if self.fail:
            raise LLMError(message="stream failed", provider_name="mock_llm")
        for position, fragment in enumerate(self.fragments):
            if self.fail_after is not None and position >= self.fail_after:
                raise LLMError(message="stream interrupted", provider_name="mock_llm")
            yield fragment

    def get_provider_name(self) -> str:
        return "mock_llm"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# PDF helpers
# ---------------------------------------------------------------------------


def make_pdf_bytes(pages: list[str]) -> bytes:
    """Build an in-memory PDF with one page per entry of *pages*.

    Each page's text is written line by line, so keep lines short enough
    to stay inside the page.
    """
    doc = fitz.open()
    try:
        for page_text in pages:
            page = doc.new_page()
            if page_text:
                page.insert_text((72, 72), page_text, fontsize=10)
        return doc.tobytes()
    finally:
        doc.close()


SAMPLE_PAGES = [
    "Professional secrecy binds every chartered accountant.\n"
    "It covers all information learned during an engagement.",
    "Independence must be preserved in fact and in appearance.\n"
    "Conflicts of interest must be disclosed to the client.",
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A two-page PDF with extractable ethics text."""
    return make_pdf_bytes(SAMPLE_PAGES)


@pytest.fixture
def pdf_factory():
    """Return the in-memory PDF builder."""
    return make_pdf_bytes


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A one-page PDF with no text at all."""
    return make_pdf_bytes([""])


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def mock_llm_provider() -> MockLLMProvider:
    return MockLLMProvider()


@pytest_asyncio.fixture
async def document_store(tmp_path: Path) -> SQLiteDocumentStore:
    """An initialized SQLite document store in a temporary directory."""
    store = SQLiteDocumentStore(db_path=tmp_path / "documents.db")
    await store.initialize()
    return store


@pytest.fixture
def file_storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(upload_dir=tmp_path / "uploads")
