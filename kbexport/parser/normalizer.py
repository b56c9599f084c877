"""
Content normalizer.

Decodes the handful of named entities WYSIWYG editors emit and restricts the
markup to the tag vocabulary the layout engine understands. Unknown tags are
unwrapped (their text survives), comments are removed, and markup that lxml
cannot parse at all degrades to plain text.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from lxml import etree, html

logger = logging.getLogger(__name__)

ALLOWED_TAGS = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "strong", "b", "em", "i", "u", "code", "a",
    "blockquote", "pre", "ul", "ol", "li", "img",
    "div", "span", "table", "tr", "td", "th",
})

ALLOWED_ATTRIBUTES = {
    "a": ("href",),
    "img": ("src", "alt"),
}

NAMED_ENTITIES = {
    "&nbsp;": "\u00a0",
    "&ndash;": "–",
    "&mdash;": "—",
    "&ldquo;": "“",
    "&rdquo;": "”",
    "&lsquo;": "‘",
    "&rsquo;": "’",
    "&hellip;": "…",
}

_ENTITY_PATTERN = re.compile("|".join(re.escape(name) for name in NAMED_ENTITIES))
# Characters lxml refuses in input strings
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")
_TAG_PATTERN = re.compile(r"<[^>]*>")


def decode_entities(text: str) -> str:
    """Replace the supported named entities with literal characters."""
    if not text or "&" not in text:
        return text
    return _ENTITY_PATTERN.sub(lambda match: NAMED_ENTITIES[match.group(0)], text)


class ContentNormalizer:
    """Turns stored markup into a restricted lxml element tree."""

    def __init__(self, allowed_tags: Optional[Iterable[str]] = None):
        self.allowed_tags = frozenset(allowed_tags) if allowed_tags is not None else ALLOWED_TAGS

    def normalize(self, markup: Optional[str]) -> html.HtmlElement:
        """
        Parse and sanitize markup.

        Args:
            markup: Stored markup (may be empty, malformed or ``None``)

        Returns:
            A ``div`` element wrapping the sanitized content
        """
        text = _INVALID_XML_CHARS.sub("", decode_entities(markup or ""))
        if not text.strip():
            return html.Element("div")

        try:
            root = html.fragment_fromstring(text, create_parent="div")
        except (etree.ParserError, etree.XMLSyntaxError, ValueError) as exc:
            logger.warning(f"Markup could not be parsed, falling back to plain text: {exc}")
            root = html.Element("div")
            root.text = _TAG_PATTERN.sub(" ", text)
            return root

        self._restrict(root)
        return root

    def normalize_markup(self, markup: Optional[str]) -> str:
        """Normalize and serialize back to a markup string (without the wrapper)."""
        root = self.normalize(markup)
        serialized = html.tostring(root, encoding="unicode")
        return serialized[len("<div>"):-len("</div>")]

    def _restrict(self, root: html.HtmlElement) -> None:
        dropped = 0
        for element in list(root.iterdescendants()):
            if not isinstance(element.tag, str):
                element.drop_tree()
                continue
            tag = element.tag.lower()
            if tag not in self.allowed_tags:
                element.drop_tag()
                dropped += 1
                continue
            element.tag = tag
            keep = ALLOWED_ATTRIBUTES.get(tag, ())
            for name in list(element.attrib):
                if name not in keep:
                    del element.attrib[name]
        if dropped:
            logger.debug(f"Unwrapped {dropped} tags outside the supported vocabulary")
