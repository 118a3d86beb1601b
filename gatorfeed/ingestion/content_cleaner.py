"""
Content Cleaner
===============

Plain-text extraction from HTML fragments found in feed descriptions.
"""

from bs4 import BeautifulSoup, NavigableString
from bs4.element import PreformattedString


def strip_markup(text: str) -> str:
    """Return the character data of an HTML fragment.

    Text nodes are concatenated in document order with no separator and the
    result is trimmed. Comments, CDATA sections, processing instructions and
    doctypes are dropped. The text inside ``<script>`` and ``<style>`` is
    kept. Malformed markup is tolerated and never raises.

    Args:
        text: HTML fragment

    Returns:
        Extracted text
    """
    if not text:
        return ""

    soup = BeautifulSoup(text, "html.parser")

    parts = [
        str(node)
        for node in soup.descendants
        if isinstance(node, NavigableString)
        and not isinstance(node, PreformattedString)
    ]

    return "".join(parts).strip()


def summarize(text: str, max_length: int = 200) -> str:
    """Markup-free text cut to ``max_length`` characters at a word boundary."""
    clean = " ".join(strip_markup(text).split())
    if len(clean) <= max_length:
        return clean

    truncated = clean[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        truncated = truncated[:last_space]
    return truncated.rstrip() + "..."
