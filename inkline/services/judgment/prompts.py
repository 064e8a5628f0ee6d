"""Prompt templates for the judgment stage."""

from __future__ import annotations

from ...models.content import MediaDescriptors, SearchResult

SYSTEM_PROMPT = """You are a media analysis assistant for Inkline. You analyze social media posts and provide objective assessments.

IMPORTANT: You are NOT judging truth or falsehood. You help readers understand what is behind the content: the perspective, the sources, the balance. Use humble, non-judgmental language.

Analyze across these 5 dimensions:

1. PERSPECTIVE: What political/ideological lean does this content show?
   - green: Center/balanced, multiple viewpoints acknowledged
   - amber: Leans left or right of center, but not extreme
   - red: Strong ideological framing, one-sided presentation

2. VERIFICATION: Can the key claims be verified?
   - green: Key claims align with widely reported facts
   - amber: Claims are unverified or a developing story
   - red: Claims conflict with established reporting

3. BALANCE: Are multiple perspectives represented?
   - green: Shows multiple sides of the issue
   - amber: Limited perspectives, some context missing
   - red: Only one viewpoint, ignores counterarguments

4. SOURCE: What is the credibility of the source/author?
   - green: Established outlet or verified expert
   - amber: Mixed track record or unknown source
   - red: History of inaccuracy or anonymous/unverifiable

5. TONE: Is emotional manipulation present?
   - green: Neutral, factual presentation
   - amber: Some emotional framing or sensationalism
   - red: Heavy emotional manipulation, outrage bait

Always respond with valid JSON matching the required schema."""

QUICK_PROMPT_TEMPLATE = """Give a quick first-glance signal for this social media post.

Author: {author}
Content: {content}

Respond with JSON in this exact format:
{{
  "overall": "green" | "amber" | "red",
  "summary": "One short sentence (max 80 chars)",
  "confidence": 0.0-1.0
}}"""

DEEP_PROMPT_TEMPLATE = """Analyze this social media post and provide a brief, helpful assessment that helps the reader understand the content better.

Author: {author}
Content: {content}
{media_section}{search_section}{comments_section}
Rules:
- For every web article listed, decide whether it is about the SAME specific topic or event as the post (shared keywords alone are not enough). Report each article in "sources" with its index, "relevant" true/false, and a "stance" of "supporting", "counter" or "neutral" relative to the post.
- If perspective is rated amber or red, write "counterPerspective": a fair, steel-manned articulation of the strongest alternative viewpoint. If perspective is green, set it to null.
{comment_rule}
Respond with JSON in this exact format:
{{
  "overall": "green" | "amber" | "red",
  "perspective": {{ "rating": "green|amber|red", "label": "Brief description (max 30 chars)", "reason": "One sentence" }},
  "verification": {{ "rating": "green|amber|red", "label": "Brief description", "reason": "One sentence" }},
  "balance": {{ "rating": "green|amber|red", "label": "Brief description", "reason": "One sentence" }},
  "source": {{ "rating": "green|amber|red", "label": "Brief description", "reason": "One sentence" }},
  "tone": {{ "rating": "green|amber|red", "label": "Brief description", "reason": "One sentence" }},
  "summary": "One or two sentences explaining the overall assessment",
  "confidence": 0.0-1.0,
  "counterPerspective": "string or null",
  "sources": [ {{ "index": 1, "relevant": true, "stance": "supporting|counter|neutral", "lean": "center|left-lean|right-lean" }} ],
  "visualAssessment": "string or null",
  "commentAnalysis": {comment_schema}
}}"""

COMMENT_SCHEMA = """{
    "overallTone": "e.g. Predominantly critical with some supportive voices",
    "leaningSummary": "1-2 sentences on the lean of the comment section",
    "agreementLevel": "echo-chamber|mostly-agree|mixed|mostly-disagree|polarised",
    "highlights": [ { "author": "handle", "text": "comment text", "reason": "why notable", "sentiment": "agree|disagree|nuanced|neutral" } ]
  }"""

COMMENT_RULE = "- Summarize the comment section climate in \"commentAnalysis\" and highlight at most 3 notable comments worth reading.\n"
NO_COMMENT_RULE = "- No comments were provided: set \"commentAnalysis\" to null.\n"

MAX_PROMPT_COMMENTS = 20
MAX_COMMENT_LENGTH = 300


def build_quick_prompt(text: str, author: str) -> str:
    return QUICK_PROMPT_TEMPLATE.format(author=author, content=text)


def _media_section(media: MediaDescriptors, visual_description: str) -> str:
    if not media.has_media:
        return ""
    lines = ["", "Media:"]
    if media.has_video:
        lines.append("- The post contains a video.")
    if media.video_description:
        lines.append(f"- Video description/alt text: {media.video_description}")
    if visual_description:
        lines.append(f"- Visual analysis: {visual_description}")
        lines.append('Summarize how the visuals relate to the text in "visualAssessment".')
    else:
        lines.append('- No visual analysis is available; set "visualAssessment" to null.')
    return "\n".join(lines) + "\n"


def _search_section(results: list[SearchResult]) -> str:
    if not results:
        return '\nNo web articles were found. Return "sources": [].\n'
    lines = ["", "Web articles found on this topic:"]
    for i, r in enumerate(results, start=1):
        lines.append(f"[{i}] {r.title} ({r.source}) - {r.url}")
        if r.snippet:
            lines.append(f"    {r.snippet}")
    return "\n".join(lines) + "\n"


def _comments_section(comments: list[str]) -> str:
    if not comments:
        return ""
    lines = ["", "Comments/replies visible under the post:"]
    for i, comment in enumerate(comments[:MAX_PROMPT_COMMENTS], start=1):
        lines.append(f"{i}. {comment[:MAX_COMMENT_LENGTH]}")
    return "\n".join(lines) + "\n"


def build_deep_prompt(
    text: str,
    author: str,
    media: MediaDescriptors,
    visual_description: str,
    search_results: list[SearchResult],
    comments: list[str],
) -> str:
    return DEEP_PROMPT_TEMPLATE.format(
        author=author,
        content=text,
        media_section=_media_section(media, visual_description),
        search_section=_search_section(search_results),
        comments_section=_comments_section(comments),
        comment_rule=COMMENT_RULE if comments else NO_COMMENT_RULE,
        comment_schema=COMMENT_SCHEMA if comments else "null",
    )
