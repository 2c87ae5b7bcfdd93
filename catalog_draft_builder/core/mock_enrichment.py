# core/mock_enrichment.py

from __future__ import annotations

import asyncio
import itertools
import logging
import random
from typing import Dict, List, Optional, Sequence, Set

from catalog_draft_builder.config.settings import (
    GALLERY_SIZE,
    MOCK_DESCRIPTION_DELAY_SECONDS,
    MOCK_GALLERY_DELAY_SECONDS,
)
from catalog_draft_builder.core.enrichment_client import EnrichmentClient
from catalog_draft_builder.core.errors import EnrichmentError
from catalog_draft_builder.core.product_schema import EnrichmentKind, ImageRef

logger = logging.getLogger(__name__)

ADJECTIVES = ["Premium", "Elegant", "Durable", "Modern", "Versatile", "Compact"]

DESCRIPTIONS: Dict[str, List[str]] = {
    "Electronics": [
        "Engineered for performance and reliability, it fits seamlessly into your digital workflow.",
        "A sleek design, long battery life and an intuitive interface keep you productive.",
    ],
    "Fashion": [
        "Crafted from premium fabrics, it offers superior comfort and a flattering fit.",
        "A timeless piece that works for casual outings and formal events alike.",
    ],
    "Home & Living": [
        "Its modern look and practical design make it a must-have for any home.",
        "Made with quality materials to last while lifting your interior.",
    ],
    "Beauty": [
        "Formulated with nourishing ingredients to refresh and protect.",
        "Gentle yet effective, a simple addition to your daily routine.",
    ],
    "Default": [
        "This product offers dependable quality and value for everyday use.",
        "Built to last and styled to impress, it stands out in any category.",
    ],
}


class MockEnrichmentClient(EnrichmentClient):
    """
    Simulated backend: canned copy and placeholder images after a delay.

    Use ``fail_next`` to make the next call of a kind reject.
    """

    def __init__(
        self,
        description_delay: float = MOCK_DESCRIPTION_DELAY_SECONDS,
        gallery_delay: float = MOCK_GALLERY_DELAY_SECONDS,
        gallery_size: int = GALLERY_SIZE,
        rng: Optional[random.Random] = None,
    ):
        self.description_delay = description_delay
        self.gallery_delay = gallery_delay
        self.gallery_size = gallery_size
        self._rng = rng or random.Random()
        self._seed_counter = itertools.count(1)
        self._fail_kinds: Set[EnrichmentKind] = set()

    def fail_next(self, kind: EnrichmentKind) -> None:
        self._fail_kinds.add(kind)

    def _maybe_fail(self, kind: EnrichmentKind) -> None:
        if kind in self._fail_kinds:
            self._fail_kinds.discard(kind)
            raise EnrichmentError("simulated backend failure", kind=kind.value)

    async def generate_description(
        self, title: str, category: str, keywords: Sequence[str]
    ) -> str:
        await asyncio.sleep(self.description_delay)
        self._maybe_fail(EnrichmentKind.TEXT)

        templates = DESCRIPTIONS.get(category) or DESCRIPTIONS["Default"]
        text = f"{self._rng.choice(ADJECTIVES)} {title}: {self._rng.choice(templates)}"
        if keywords:
            text += f" Key features include {', '.join(keywords)} and more."
        return text

    async def generate_image_set(self, category: str) -> List[ImageRef]:
        await asyncio.sleep(self.gallery_delay)
        self._maybe_fail(EnrichmentKind.IMAGES)

        seed_base = "".join(ch for ch in category if ch.isalnum()) or "product"
        return [
            f"https://picsum.photos/seed/{seed_base}{next(self._seed_counter)}/800/800"
            for _ in range(self.gallery_size)
        ]
