"""
Input sanitization for user-supplied text.

Titles, post bodies, comments and announcements are stored as plain text:
every HTML tag is stripped with bleach before storage.
"""

from typing import Optional
from urllib.parse import urlparse

import bleach

ALLOWED_IMAGE_SCHEMES = ("http", "https")


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip all HTML tags and surrounding whitespace.

    Examples:
        >>> sanitize_plain_text('<script>alert(1)</script>Title')
        'alert(1)Title'
        >>> sanitize_plain_text('  <b>Bold</b> text ')
        'Bold text'
    """
    if content is None:
        return None
    return bleach.clean(content, tags=[], strip=True).strip()


def sanitize_image_url(url: Optional[str]) -> Optional[str]:
    """
    Accept only absolute http(s) URLs or site-relative paths for images.

    Returns:
        The trimmed URL, or None when it uses any other scheme.
    """
    if url is None:
        return None
    url = url.strip()
    if url.startswith("/") and not url.startswith("//"):
        return url
    parsed = urlparse(url)
    if parsed.scheme.lower() in ALLOWED_IMAGE_SCHEMES and parsed.netloc:
        return url
    return None
