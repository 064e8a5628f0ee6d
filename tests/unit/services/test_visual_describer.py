"""Tests for the visual description adapter."""

from __future__ import annotations

import pytest

from inkline.models.content import MediaDescriptors
from inkline.services.llm.schemas import LLMClientError
from inkline.services.vision.visual_describer import VisualDescriber


@pytest.mark.unit
class TestVisualDescriber:
    @pytest.mark.asyncio
    async def test_no_images_skips_call(self, mock_llm):
        describer = VisualDescriber(mock_llm)

        assert await describer.describe(MediaDescriptors(has_video=True)) == ""
        mock_llm.chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_describes_thumbnail_and_images(self, mock_llm, chat_reply):
        mock_llm.chat.return_value = chat_reply("  A press conference at a podium.  ")
        describer = VisualDescriber(mock_llm, max_images=2)
        media = MediaDescriptors(
            has_video=True,
            thumbnail_url="https://img.test/thumb.jpg",
            image_urls=["https://img.test/1.jpg", "https://img.test/2.jpg"],
        )

        description = await describer.describe(media, "Fed holds rates steady.", author="reuters")

        assert description == "A press conference at a podium."
        messages = mock_llm.chat.await_args.args[0]
        parts = messages[1]["content"]
        image_urls = [p["image_url"]["url"] for p in parts if p["type"] == "image_url"]
        assert image_urls == ["https://img.test/thumb.jpg", "https://img.test/1.jpg"]
        assert "@reuters" in parts[-1]["text"]
        assert "Fed holds rates steady." in parts[-1]["text"]

    @pytest.mark.asyncio
    async def test_llm_error_returns_empty(self, mock_llm):
        mock_llm.chat.side_effect = LLMClientError("timeout")
        media = MediaDescriptors(image_urls=["https://img.test/1.jpg"])

        assert await VisualDescriber(mock_llm).describe(media) == ""

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_empty(self, mock_llm):
        mock_llm.chat.side_effect = RuntimeError("boom")
        media = MediaDescriptors(image_urls=["https://img.test/1.jpg"])

        assert await VisualDescriber(mock_llm).describe(media) == ""

    @pytest.mark.asyncio
    async def test_unconfigured_returns_empty(self, mock_llm):
        mock_llm.is_configured = False
        media = MediaDescriptors(image_urls=["https://img.test/1.jpg"])

        assert await VisualDescriber(mock_llm).describe(media) == ""
        mock_llm.chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_reply_returns_empty(self, mock_llm, chat_reply):
        mock_llm.chat.return_value = chat_reply("   ")
        media = MediaDescriptors(image_urls=["https://img.test/1.jpg"])

        assert await VisualDescriber(mock_llm).describe(media) == ""
