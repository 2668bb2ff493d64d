"""
Media URL helpers for game artwork and trailers.

- Trailers: YouTube watch pages and youtu.be short links become embeddable
  player URLs; anything else passes through unchanged.
- Images: either an absolute http(s) URL or an inline data: URI capped at
  MAX_INLINE_IMAGE_LENGTH characters.
"""
import re
from typing import Optional
from urllib.parse import urlparse

YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/{video_id}"
MAX_INLINE_IMAGE_LENGTH = 5_000_000  # ~5MB of base64 text

_WATCH_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:[^#]*&)?v=([\w-]+)",
    re.IGNORECASE,
)
_SHORT_LINK_PATTERN = re.compile(r"^(?:https?://)?youtu\.be/([\w-]+)", re.IGNORECASE)


def to_embed_url(url: str) -> str:
    """
    Normalize a YouTube link into its embeddable form.

    >>> to_embed_url("https://www.youtube.com/watch?v=c0i88t0Kacs&t=10")
    'https://www.youtube.com/embed/c0i88t0Kacs'
    >>> to_embed_url("https://youtu.be/c0i88t0Kacs?si=abc")
    'https://www.youtube.com/embed/c0i88t0Kacs'
    """
    for pattern in (_WATCH_PATTERN, _SHORT_LINK_PATTERN):
        match = pattern.match(url.strip())
        if match:
            return YOUTUBE_EMBED_URL.format(video_id=match.group(1))
    return url


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_inline_image(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:")
