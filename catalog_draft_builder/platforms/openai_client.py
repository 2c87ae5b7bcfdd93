# platforms/openai_client.py

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from catalog_draft_builder.config import settings
from catalog_draft_builder.core.enrichment_client import EnrichmentClient
from catalog_draft_builder.core.errors import EnrichmentError
from catalog_draft_builder.core.mock_enrichment import MockEnrichmentClient
from catalog_draft_builder.core.product_schema import ImageRef

logger = logging.getLogger(__name__)


def build_description_prompt(title: str, category: str, keywords: Sequence[str]) -> str:
    """
    根据标题、分类和关键词构造发给 OpenAI 的文字 Prompt。
    """
    keyword_line = ", ".join(keywords) if keywords else "(none)"
    return f"""
You write product descriptions for an online store.

Product title: {title}
Category: {category}
Key features to mention: {keyword_line}

Write one paragraph of 2-4 sentences for the product page:
- friendly, honest and specific; no exaggerated promises
- mention the key features naturally when given
- do not invent prices, discounts, certifications or measurements
- plain text only, no markdown, no title line
""".strip()


def build_image_prompt(category: str) -> str:
    return (
        f"Clean studio product photo for an online store, category: {category}. "
        "Neutral background, soft light, no text, no logos."
    )


def get_openai_api_key(key_file: Path = settings.OPENAI_KEY_FILE) -> str:
    """
    获取 OpenAI API Key，按优先级尝试：
    1. 环境变量 OPENAI_API_KEY
    2. 配置文件 config/credentials/openai_key.txt（如果存在）

    Raises:
        EnrichmentError: 找不到 API key
    """
    api_key = os.getenv("OPENAI_API_KEY")
    if api_key and api_key.strip():
        return api_key.strip()

    if key_file.exists():
        try:
            api_key = key_file.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning("Could not read %s: %s", key_file, e)
            api_key = ""
        if api_key:
            return api_key

    raise EnrichmentError(
        "OPENAI_API_KEY is not set; export it or put the key in "
        f"{key_file}"
    )


class OpenAIEnrichmentClient(EnrichmentClient):
    """Enrichment backed by the OpenAI API (chat completions + image generation)."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        description_model: str = settings.OPENAI_DESCRIPTION_MODEL,
        image_model: str = settings.OPENAI_IMAGE_MODEL,
        image_size: str = settings.OPENAI_IMAGE_SIZE,
        gallery_size: int = settings.GALLERY_SIZE,
    ):
        self._client = client or AsyncOpenAI(api_key=get_openai_api_key())
        self.description_model = description_model
        self.image_model = image_model
        self.image_size = image_size
        self.gallery_size = gallery_size

    async def generate_description(
        self, title: str, category: str, keywords: Sequence[str]
    ) -> str:
        logger.debug("Requesting description from %s", self.description_model)
        try:
            response = await self._client.chat.completions.create(
                model=self.description_model,
                messages=[
                    {"role": "user", "content": build_description_prompt(title, category, keywords)}
                ],
            )
        except OpenAIError as e:
            raise EnrichmentError(f"OpenAI description request failed: {e}", kind="text") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EnrichmentError("OpenAI returned an empty description", kind="text")
        return content.strip()

    async def generate_image_set(self, category: str) -> List[ImageRef]:
        logger.debug("Requesting %d images from %s", self.gallery_size, self.image_model)
        try:
            response = await self._client.images.generate(
                model=self.image_model,
                prompt=build_image_prompt(category),
                n=self.gallery_size,
                size=self.image_size,
                response_format="b64_json",
            )
        except OpenAIError as e:
            raise EnrichmentError(f"OpenAI image request failed: {e}", kind="images") from e

        refs = [
            f"data:image/png;base64,{item.b64_json}"
            for item in (response.data or [])
            if item.b64_json
        ]
        if len(refs) != self.gallery_size:
            raise EnrichmentError(
                f"OpenAI returned {len(refs)} images, expected {self.gallery_size}",
                kind="images",
            )
        return refs


def build_enrichment_client(backend: str = settings.ENRICHMENT_BACKEND) -> EnrichmentClient:
    """Pick the enrichment backend by name ("mock" or "openai")."""
    backend = (backend or "mock").strip().lower()
    if backend == "mock":
        return MockEnrichmentClient()
    if backend == "openai":
        return OpenAIEnrichmentClient()
    raise ValueError(f"unknown enrichment backend: {backend!r}")
