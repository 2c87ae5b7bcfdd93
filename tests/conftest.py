"""
Pytest configuration and shared fixtures
"""

import asyncio
from collections import deque
from typing import Deque, Dict, List, Sequence

import pytest

from catalog_draft_builder.core.draft_builder import CategoryDraftBuilder, ProductDraftBuilder
from catalog_draft_builder.core.enrichment_client import EnrichmentClient

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 24
PDF_BYTES = b"%PDF-1.4\n%test\n"


class FakeEnrichmentClient(EnrichmentClient):
    """
    Enrichment backend controlled by the test: every call waits until the
    test resolves or rejects it.
    """

    def __init__(self):
        self.description_calls: List[tuple] = []
        self.image_calls: List[str] = []
        self._pending: Dict[str, Deque[asyncio.Future]] = {"text": deque(), "images": deque()}

    async def _wait(self, kind: str):
        future = asyncio.get_running_loop().create_future()
        self._pending[kind].append(future)
        return await future

    async def generate_description(self, title: str, category: str, keywords: Sequence[str]) -> str:
        self.description_calls.append((title, category, list(keywords)))
        return await self._wait("text")

    async def generate_image_set(self, category: str) -> List[str]:
        self.image_calls.append(category)
        return await self._wait("images")

    async def wait_for_call(self, kind: str) -> None:
        """Yield to the loop until a call of this kind is outstanding."""
        for _ in range(100):
            if any(not f.done() for f in self._pending[kind]):
                return
            await asyncio.sleep(0)
        raise AssertionError(f"no {kind} call was made")

    def _next(self, kind: str) -> asyncio.Future:
        while self._pending[kind]:
            future = self._pending[kind].popleft()
            if not future.done():
                return future
        raise AssertionError(f"no outstanding {kind} call")

    def resolve(self, kind: str, value) -> None:
        self._next(kind).set_result(value)

    def reject(self, kind: str, error: Exception) -> None:
        self._next(kind).set_exception(error)


async def settle() -> None:
    """Let resumed coroutines run to completion."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def fake_client():
    return FakeEnrichmentClient()


@pytest.fixture
def committed():
    return []


@pytest.fixture
def builder(fake_client, committed):
    return ProductDraftBuilder(fake_client, timeout=0, on_commit=[committed.append])


@pytest.fixture
def category_builder(fake_client, committed):
    return CategoryDraftBuilder(fake_client, timeout=0, on_commit=[committed.append])


@pytest.fixture
def gallery_refs():
    return [f"https://img.example.com/{name}.jpg" for name in "abcd"]


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def jpeg_bytes():
    return JPEG_BYTES


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES


@pytest.fixture(name="settle")
def settle_fixture():
    return settle
