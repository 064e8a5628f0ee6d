"""Visual description adapter for images and video thumbnails.

Sends the post's image references to an OpenAI-compatible vision model and
returns a short factual description. The adapter never raises: any failure
(unconfigured key, timeout, provider error, empty reply) yields an empty
string, which callers treat as "no visual signal".
"""

from __future__ import annotations

from typing import Any

import structlog

from ...core.config import settings
from ...models.content import MediaDescriptors
from ..llm.llm_client import LLMClient
from ..llm.schemas import LLMClientError

logger = structlog.get_logger(__name__)

POST_TEXT_CONTEXT_LENGTH = 500

VISION_SYSTEM_PROMPT = """You are a visual media analyst for Inkline, a media literacy tool. Objectively describe images or video thumbnails from social media posts.

Focus on:
1. What is literally shown
2. Text overlays, captions or watermarks
3. Whether it looks like original footage, a screenshot, a meme, edited, or AI-generated
4. The emotional tone of the visual
5. Context clues about when/where it was captured
6. Whether the visual supports, contradicts, or is unrelated to the post text

Be factual. Do not speculate beyond what is visible. Keep it to 2-4 sentences, or a short paragraph for complex scenes."""


class VisualDescriber:
    """Describe post media with a vision model.

    Example:
        >>> describer = VisualDescriber(get_vision_llm())
        >>> text = await describer.describe(media, post_text, author="someone")
    """

    def __init__(self, llm_client: LLMClient, max_images: int | None = None) -> None:
        self.llm_client = llm_client
        self.max_images = max_images or settings.VISION_MAX_IMAGES

    @property
    def is_available(self) -> bool:
        return self.llm_client.is_configured

    def _build_user_content(
        self, image_refs: list[str], text: str, author: str
    ) -> list[dict[str, Any]]:
        content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": ref}} for ref in image_refs
        ]
        if len(image_refs) == 1:
            lead = f"This image accompanies a social media post by @{author}."
            ask = "Describe what you see in this image and how it relates to the post text."
        else:
            lead = f"These {len(image_refs)} images accompany a social media post by @{author}."
            ask = "Describe what you see across these images and how they relate to the post text."
        content.append(
            {
                "type": "text",
                "text": f'{lead} The post text reads: "{text[:POST_TEXT_CONTEXT_LENGTH]}"\n\n{ask}',
            }
        )
        return content

    async def describe(self, media: MediaDescriptors, text: str = "", author: str = "unknown") -> str:
        """Describe the visuals attached to a post.

        Returns:
            Description text, or "" when there is nothing to describe or the
            call fails
        """
        image_refs = media.image_refs(self.max_images)
        if not image_refs:
            return ""

        if not self.is_available:
            logger.info("vision_skipped_unconfigured")
            return ""

        messages = [
            {"role": "system", "content": VISION_SYSTEM_PROMPT},
            {"role": "user", "content": self._build_user_content(image_refs, text, author)},
        ]

        try:
            result = await self.llm_client.chat(messages, name="visual_description")
        except LLMClientError as e:
            logger.warning("vision_failed", error=str(e), images=len(image_refs))
            return ""
        except Exception as e:  # Unexpected
            logger.error("vision_unexpected_error", error=str(e), images=len(image_refs))
            return ""

        description = result.content.strip()
        if not description:
            logger.warning("vision_empty_response", images=len(image_refs))
            return ""

        logger.info("vision_complete", images=len(image_refs), length=len(description))
        return description
