"""
Tests for the category authoring session.
"""

import asyncio

import pytest

from catalog_draft_builder.core.draft_builder import CategoryDraftBuilder
from catalog_draft_builder.core.errors import PreconditionError, SessionClosedError, ValidationError
from catalog_draft_builder.core.product_schema import Category, EnrichmentKind


def test_request_image_keeps_first_generated_image(category_builder, fake_client, gallery_refs):
    category_builder.edit("name", "Smart Wearables")

    async def scenario():
        task = asyncio.create_task(category_builder.request_image())
        await fake_client.wait_for_call("images")
        fake_client.resolve("images", gallery_refs)
        return await task

    assert asyncio.run(scenario()) == gallery_refs[0]
    assert category_builder.draft.image == gallery_refs[0]
    assert fake_client.image_calls == ["Smart Wearables"]


def test_request_image_needs_name(category_builder, fake_client):
    with pytest.raises(PreconditionError):
        asyncio.run(category_builder.request_image())
    assert fake_client.image_calls == []


def test_failed_image_request_keeps_uploaded_image(category_builder, fake_client, png_bytes):
    category_builder.edit("name", "Lamps")
    uploaded = category_builder.upload_image(png_bytes)

    async def scenario():
        task = asyncio.create_task(category_builder.request_image())
        await fake_client.wait_for_call("images")
        fake_client.reject("images", RuntimeError("boom"))
        await task

    asyncio.run(scenario())
    assert category_builder.draft.image == uploaded
    assert category_builder.loading_state(EnrichmentKind.IMAGES).error is not None


def test_commit_requires_name_and_image(category_builder):
    with pytest.raises(ValidationError) as exc_info:
        category_builder.commit()
    assert exc_info.value.missing_fields == ("name", "image")


def test_commit_category(fake_client, committed):
    builder = CategoryDraftBuilder(fake_client, timeout=0, on_commit=[committed.append])
    builder.edit("name", " Home  Decor ")
    builder.set_image("https://img.example.com/decor.jpg")

    category = builder.commit()

    assert isinstance(category, Category)
    assert category.id.startswith("cat_")
    assert category.name == "Home Decor"
    assert category.description == ""
    assert committed == [category]
    with pytest.raises(SessionClosedError):
        builder.edit("name", "again")


def test_commit_can_be_retried_after_sink_failure(fake_client):
    store = {"online": False, "saved": []}

    def remote(category):
        if not store["online"]:
            raise RuntimeError("store offline")
        store["saved"].append(category)

    builder = CategoryDraftBuilder(fake_client, timeout=0, on_commit=[remote])
    builder.edit("name", "Lamps")
    builder.set_image("https://img.example.com/lamps.jpg")

    with pytest.raises(RuntimeError):
        builder.commit()
    assert not builder.closed

    store["online"] = True
    category = builder.commit()

    assert store["saved"] == [category]
    assert builder.closed


def test_cancel_drops_late_image(category_builder, fake_client, gallery_refs):
    category_builder.edit("name", "Lamps")

    async def scenario():
        task = asyncio.create_task(category_builder.request_image())
        await fake_client.wait_for_call("images")
        category_builder.cancel()
        fake_client.resolve("images", gallery_refs)
        return await task

    assert asyncio.run(scenario()) is None
    assert category_builder.draft.image is None


def test_category_fields_are_limited(category_builder):
    with pytest.raises(ValidationError):
        category_builder.edit("price", 3)
