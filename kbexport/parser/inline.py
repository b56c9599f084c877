"""
Inline formatter.

Walks the inline children of a block element and produces style runs.
Block-level children (and images) are either handed back to the caller as
elements, or flattened into the run stream when the caller needs a single
line of text (list items, table cells, headings, blockquotes).
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Collection, Iterator, List, Union

from lxml import html

from ..models import ImageBlock, InlineRun

BLOCK_TAGS = frozenset({
    "p", "div", "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "ul", "ol", "li", "table", "tr", "td", "th",
})

# HTML whitespace only; U+00A0 must survive collapsing
_WHITESPACE = re.compile(r"[ \t\n\r\f\v]+")

InlineEvent = Union[InlineRun, html.HtmlElement]

PLAIN = InlineRun("")


def apply_tag(style: InlineRun, element: html.HtmlElement) -> InlineRun:
    """Return the style active inside ``element``."""
    tag = element.tag
    if tag in ("strong", "b"):
        return replace(style, bold=True)
    if tag in ("em", "i"):
        return replace(style, italic=True)
    if tag == "u":
        return replace(style, underline=True)
    if tag == "code":
        return replace(style, monospace=True)
    if tag == "a":
        return replace(style, underline=True, link_target=element.get("href") or "")
    return style


class InlineFormatter:
    """Resolves character-level style runs inside one block."""

    def iter_events(self, element: html.HtmlElement, *, flatten: bool = False,
                    skip: Collection[str] = ()) -> Iterator[InlineEvent]:
        """
        Yield raw runs for ``element``'s content (its tail excluded).

        Args:
            element: Block element whose children are walked
            flatten: Render images as placeholder text and inline nested blocks
                instead of yielding them
            skip: Child tags ignored entirely (their tail text is kept)

        Yields:
            ``InlineRun`` for text (whitespace collapsed, ``br`` as ``"\\n"``)
            or the child element itself for blocks and images when not flattening
        """
        yield from self._walk(element, PLAIN, flatten, skip)

    def format(self, element: html.HtmlElement, skip: Collection[str] = ()) -> List[InlineRun]:
        """Flattened, whitespace-normalized and merged runs of ``element``."""
        events = self.iter_events(element, flatten=True, skip=skip)
        return finalize_runs(event for event in events if isinstance(event, InlineRun))

    def _walk(self, element, style: InlineRun, flatten: bool, skip) -> Iterator[InlineEvent]:
        if element.text:
            yield _text_run(style, element.text)
        for child in element:
            tag = child.tag
            if tag in skip:
                pass
            elif tag == "br":
                yield style.with_text("\n")
            elif tag == "img":
                if flatten:
                    yield style.with_text(ImageBlock(child.get("src") or "", child.get("alt") or "").placeholder)
                else:
                    yield child
            elif tag in BLOCK_TAGS:
                if flatten:
                    yield style.with_text(" ")
                    yield from self._walk(child, style, flatten, skip)
                    yield style.with_text(" ")
                else:
                    yield child
            else:
                yield from self._walk(child, apply_tag(style, child), flatten, skip)
            if child.tail:
                yield _text_run(style, child.tail)


def _text_run(style: InlineRun, text: str) -> InlineRun:
    return style.with_text(_WHITESPACE.sub(" ", text))


def _last_with_text(pending):
    for entry in reversed(pending):
        if entry[1]:
            return entry
    return None


def finalize_runs(runs) -> List[InlineRun]:
    """
    Trim and merge raw runs.

    Spaces are dropped at the start of the block, after a line break, before a
    line break and at the end of the block. Trailing line breaks are dropped.
    Adjacent runs with the same style are merged.
    """
    pending = []
    previous = "\n"
    for run in runs:
        chars: List[str] = []
        entry = (run, chars)
        pending.append(entry)
        for char in run.text:
            if char == " ":
                if previous in (" ", "\n"):
                    continue
            elif char == "\n":
                last = _last_with_text(pending)
                if last is not None and last[1][-1] == " ":
                    last[1].pop()
            chars.append(char)
            previous = char

    while True:
        last = _last_with_text(pending)
        if last is None or last[1][-1] not in (" ", "\n"):
            break
        last[1].pop()

    merged: List[InlineRun] = []
    for run, chars in pending:
        if not chars:
            continue
        text = "".join(chars)
        if merged and merged[-1].style_key == run.style_key:
            merged[-1] = merged[-1].with_text(merged[-1].text + text)
        else:
            merged.append(run.with_text(text))
    return merged
