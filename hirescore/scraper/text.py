"""Markup-to-text helpers shared by every extraction strategy."""

from __future__ import annotations

import html
import re

_BLOCK_RULES = (
    (re.compile(r"<li[^>]*>", re.IGNORECASE), "\n• "),
    (re.compile(r"</li>", re.IGNORECASE), ""),
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"<p(?:\s[^>]*)?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n"),
    (re.compile(r"<h[1-6][^>]*>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</h[1-6]>", re.IGNORECASE), "\n"),
    (re.compile(r"</?(?:strong|em|b|i)(?:\s[^>]*)?>", re.IGNORECASE), ""),
)
_ANY_TAG = re.compile(r"<[^>]+>")
_HORIZONTAL_SPACE = re.compile(r"[^\S\n]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_ANY_SPACE = re.compile(r"\s+")


def html_to_text(fragment: str, tag_separator: str = "") -> str:
    """Convert an HTML *fragment* to plain text.

    List items become ``•`` bullet lines, paragraph and heading boundaries
    become line breaks, inline emphasis is dropped and every remaining tag is
    replaced by *tag_separator*.  Entities are decoded last so escaped markup
    in the text survives as literal characters.
    """
    text = fragment
    for pattern, replacement in _BLOCK_RULES:
        text = pattern.sub(replacement, text)
    text = _ANY_TAG.sub(tag_separator, text)
    text = html.unescape(text)
    text = _HORIZONTAL_SPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def clean_text(value: str) -> str:
    """Decode entities and collapse all whitespace to single spaces."""
    return _ANY_SPACE.sub(" ", html.unescape(value)).strip()
