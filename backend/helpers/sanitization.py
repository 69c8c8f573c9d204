"""
Sanitization of member-submitted content before storage.

Post bodies, summaries and descriptions keep a small set of formatting tags;
titles, locations and comments are reduced to plain text; links must use a
web or mail scheme.
"""

import html
from typing import Optional
from urllib.parse import urlsplit

import bleach

# Formatting members may use in post bodies and descriptions
RICH_TEXT_TAGS = frozenset(
    {
        "p",
        "br",
        "strong",
        "b",
        "em",
        "i",
        "u",
        "ul",
        "ol",
        "li",
        "blockquote",
        "code",
        "pre",
    }
)

# Tags keep no attributes, so no inline handlers or styles survive
RICH_TEXT_ATTRIBUTES: dict[str, list[str]] = {}

LINK_SCHEMES = frozenset({"http", "https", "mailto"})


def sanitize_html(content: Optional[str]) -> Optional[str]:
    """
    Reduce rich text to the allowed formatting tags.

    Disallowed tags are dropped but their text is kept.

    Examples:
        >>> sanitize_html("<p>Meet at <b>6pm</b></p><script>x()</script>")
        '<p>Meet at <b>6pm</b></p>x()'
    """
    if content is None:
        return None

    return bleach.clean(
        content,
        tags=RICH_TEXT_TAGS,
        attributes=RICH_TEXT_ATTRIBUTES,
        strip=True,
    )


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip every tag from a field that is never rendered as HTML.

    The result is unescaped, so "Q&A" is stored and measured as typed.

    Examples:
        >>> sanitize_plain_text("<b>Tom</b> & Jerry <3")
        'Tom & Jerry <3'
    """
    if content is None:
        return None

    return html.unescape(bleach.clean(content, tags=set(), strip=True))


def sanitize_url(url: Optional[str]) -> Optional[str]:
    """
    Validate a member-supplied link.

    Absolute links must use http, https or mailto. Relative links
    (``/events/3``, ``notes.pdf``) pass through unchanged. Anything else,
    including ``javascript:`` and ``data:`` links, becomes an empty string.

    Examples:
        >>> sanitize_url(" https://club.example.edu/events ")
        'https://club.example.edu/events'
        >>> sanitize_url("JavaScript:alert(1)")
        ''
    """
    if url is None:
        return None

    url = url.strip()
    if not url:
        return ""

    # Browsers ignore embedded whitespace and control characters in schemes
    compact = "".join(ch for ch in url if ch.isprintable() and not ch.isspace())
    scheme = urlsplit(compact).scheme.lower()

    if not scheme:
        return url
    if scheme in LINK_SCHEMES:
        return url
    return ""
