# core/enrichment_client.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from catalog_draft_builder.core.product_schema import ImageRef


class EnrichmentClient(ABC):
    """
    Backend that writes product copy and produces candidate images.

    Each method is a single asynchronous call with no retry. Implementations
    raise ``EnrichmentError`` (or any other exception) to reject; the draft
    builders treat every exception as a failed enrichment.
    """

    @abstractmethod
    async def generate_description(
        self, title: str, category: str, keywords: Sequence[str]
    ) -> str:
        """Return marketing text for the item. ``title`` is never empty."""

    @abstractmethod
    async def generate_image_set(self, category: str) -> List[ImageRef]:
        """Return an ordered set of ``GALLERY_SIZE`` image references."""
