"""Content fingerprinting for cache and in-flight keys.

The fingerprint is derived from the raw post text only. Author, media and
comments are deliberately not part of the key: two posts quoting the same
text share one cached verdict.
"""

from __future__ import annotations

import hashlib

FINGERPRINT_PREFIX = "ink:"
FINGERPRINT_HEX_LENGTH = 16


def fingerprint(text: str) -> str:
    """Return the deterministic content key for ``text``.

    No whitespace or case normalization is applied; the same rule is used
    for cache reads, cache writes and request coalescing.

    Example:
        >>> fingerprint("Fed holds rates steady.") == fingerprint("Fed holds rates steady.")
        True
    """
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"{FINGERPRINT_PREFIX}{digest[:FINGERPRINT_HEX_LENGTH]}"
