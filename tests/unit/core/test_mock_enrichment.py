"""
Tests for the simulated enrichment backend.
"""

import asyncio
import random

import pytest

from catalog_draft_builder.core.draft_builder import ProductDraftBuilder
from catalog_draft_builder.core.errors import EnrichmentError
from catalog_draft_builder.core.mock_enrichment import ADJECTIVES, DESCRIPTIONS, MockEnrichmentClient
from catalog_draft_builder.core.product_schema import EnrichmentKind


@pytest.fixture
def mock_client():
    return MockEnrichmentClient(description_delay=0, gallery_delay=0, rng=random.Random(7))


def test_description_uses_title_and_keywords(mock_client):
    text = asyncio.run(mock_client.generate_description("Desk Lamp", "Home & Living", ["dimmable", "usb"]))

    assert "Desk Lamp: " in text
    assert any(template in text for template in DESCRIPTIONS["Home & Living"])
    assert text.endswith("Key features include dimmable, usb and more.")


def test_unknown_category_uses_default_copy(mock_client):
    text = asyncio.run(mock_client.generate_description("Thing", "Garden", []))

    assert any(template in text for template in DESCRIPTIONS["Default"])
    assert "Key features" not in text


def test_image_set_has_fixed_size_and_unique_urls(mock_client):
    images = asyncio.run(mock_client.generate_image_set("Home & Living"))

    assert len(images) == 4
    assert len(set(images)) == 4
    assert all(url.startswith("https://picsum.photos/seed/HomeLiving") for url in images)


def test_fail_next_rejects_once(mock_client):
    mock_client.fail_next(EnrichmentKind.IMAGES)

    with pytest.raises(EnrichmentError):
        asyncio.run(mock_client.generate_image_set("Beauty"))
    assert len(asyncio.run(mock_client.generate_image_set("Beauty"))) == 4


def test_builder_with_mock_backend(mock_client):
    builder = ProductDraftBuilder(mock_client, timeout=5)
    builder.edit("title", "Linen Shirt")
    builder.edit("category", "Fashion")
    builder.edit("price", "25")

    async def scenario():
        await asyncio.gather(builder.request_description("breathable"), builder.request_image_set())

    asyncio.run(scenario())

    assert builder.draft.description.startswith(tuple(f"{adj} Linen Shirt: " for adj in ADJECTIVES))
    assert len(builder.draft.gallery) == 4
    assert builder.commit().image == builder.draft.gallery[0]
