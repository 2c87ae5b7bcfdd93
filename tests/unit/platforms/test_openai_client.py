"""
Tests for the OpenAI-backed enrichment client with the SDK stubbed out.
"""

import asyncio
from types import SimpleNamespace
from unittest import mock

import pytest
from openai import OpenAIError

from catalog_draft_builder.core.errors import EnrichmentError
from catalog_draft_builder.core.mock_enrichment import MockEnrichmentClient
from catalog_draft_builder.platforms.openai_client import (
    OpenAIEnrichmentClient,
    build_description_prompt,
    build_enrichment_client,
    get_openai_api_key,
)


def _sdk(chat_content="A fine lamp.", images=None, error=None):
    sdk = mock.MagicMock()
    if error is not None:
        sdk.chat.completions.create = mock.AsyncMock(side_effect=error)
        sdk.images.generate = mock.AsyncMock(side_effect=error)
        return sdk
    sdk.chat.completions.create = mock.AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=chat_content))]
        )
    )
    sdk.images.generate = mock.AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(b64_json=b) for b in (images or [])])
    )
    return sdk


def test_prompt_mentions_inputs():
    prompt = build_description_prompt("Desk Lamp", "Home & Living", ["dimmable", "usb"])
    assert "Desk Lamp" in prompt
    assert "Home & Living" in prompt
    assert "dimmable, usb" in prompt
    assert "(none)" in build_description_prompt("Desk Lamp", "Home & Living", [])


def test_generate_description():
    sdk = _sdk(chat_content="  A fine lamp.  ")
    client = OpenAIEnrichmentClient(client=sdk, description_model="test-model")

    text = asyncio.run(client.generate_description("Lamp", "Home & Living", ["usb"]))

    assert text == "A fine lamp."
    assert sdk.chat.completions.create.call_args.kwargs["model"] == "test-model"


def test_empty_description_is_an_error():
    client = OpenAIEnrichmentClient(client=_sdk(chat_content=""))
    with pytest.raises(EnrichmentError, match="empty"):
        asyncio.run(client.generate_description("Lamp", "Home & Living", []))


def test_sdk_errors_become_enrichment_errors():
    client = OpenAIEnrichmentClient(client=_sdk(error=OpenAIError("rate limited")))

    with pytest.raises(EnrichmentError, match="rate limited"):
        asyncio.run(client.generate_description("Lamp", "Home & Living", []))
    with pytest.raises(EnrichmentError, match="rate limited"):
        asyncio.run(client.generate_image_set("Home & Living"))


def test_generate_image_set_returns_data_uris():
    sdk = _sdk(images=["AAA", "BBB", "CCC", "DDD"])
    client = OpenAIEnrichmentClient(client=sdk)

    refs = asyncio.run(client.generate_image_set("Beauty"))

    assert refs[0] == "data:image/png;base64,AAA"
    assert len(refs) == 4
    assert sdk.images.generate.call_args.kwargs["n"] == 4


def test_short_image_set_is_an_error():
    client = OpenAIEnrichmentClient(client=_sdk(images=["AAA"]))
    with pytest.raises(EnrichmentError, match="expected 4"):
        asyncio.run(client.generate_image_set("Beauty"))


def test_api_key_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", " sk-test ")
    assert get_openai_api_key(tmp_path / "missing.txt") == "sk-test"


def test_api_key_from_file(monkeypatch, tmp_path):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    key_file = tmp_path / "openai_key.txt"
    key_file.write_text("sk-file\n", encoding="utf-8")
    assert get_openai_api_key(key_file) == "sk-file"


def test_missing_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnrichmentError, match="OPENAI_API_KEY"):
        get_openai_api_key(tmp_path / "missing.txt")


def test_build_enrichment_client():
    assert isinstance(build_enrichment_client("mock"), MockEnrichmentClient)
    with pytest.raises(ValueError):
        build_enrichment_client("carrier-pigeon")
