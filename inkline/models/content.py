"""Content and search models used across the analysis pipeline."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Comment excerpts carried per deep request; extras are dropped, not rejected.
MAX_COMMENT_EXCERPTS = 50


class MediaDescriptors(BaseModel):
    """Media attached to a post, as reported by the extraction layer.

    Attributes:
        has_video: Whether the post contains a video
        thumbnail_url: Poster/thumbnail image of the video, if any
        image_urls: Image URLs attached to the post
        video_description: Alt text or visible description of the video
    """

    has_video: bool = False
    thumbnail_url: str | None = None
    image_urls: list[str] = Field(default_factory=list)
    video_description: str | None = None

    @property
    def has_visuals(self) -> bool:
        """True when there is at least one image reference to describe."""
        return bool(self.thumbnail_url) or len(self.image_urls) > 0

    @property
    def has_media(self) -> bool:
        return self.has_video or self.has_visuals

    def image_refs(self, limit: int) -> list[str]:
        """Thumbnail first, then images, deduplicated and capped at ``limit``."""
        refs: list[str] = []
        for ref in [self.thumbnail_url, *self.image_urls]:
            if ref and ref not in refs:
                refs.append(ref)
        return refs[:limit]


class SearchResult(BaseModel):
    """Normalized corroboration search hit.

    Attributes:
        title: Article title
        url: Article URL
        source: Display domain (no 'www.')
        snippet: Content excerpt (at most 200 chars)
        score: Provider relevance score
    """

    title: str = ""
    url: str = ""
    source: str = ""
    snippet: str = ""
    score: float = 0.0
