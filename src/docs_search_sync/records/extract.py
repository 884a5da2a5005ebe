"""
HTML Record Extraction

Turns a pre-rendered documentation page into search records. The page's
content root is split at headings so every record maps to one section that a
search hit can link to directly.

The synchronizer only depends on the ``RecordGenerator`` protocol, so a
different extraction strategy can be dropped in without touching the
reconciliation logic.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .models import PageMeta, SearchRecord
from ..core.errors import RecordExtractionError


HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

BLOCK_TAGS = [
    "p",
    "li",
    "pre",
    "td",
    "th",
    "dt",
    "dd",
    "blockquote",
    "figcaption",
]

# Layout elements. Text sitting directly inside them (callouts, alerts,
# wrapper divs) is indexed like a block of its own.
CONTAINER_TAGS = [
    "div",
    "section",
    "article",
    "aside",
    "main",
    "header",
    "footer",
    "figure",
    "details",
    "summary",
    "ul",
    "ol",
    "dl",
    "table",
    "thead",
    "tbody",
    "tfoot",
    "tr",
]

STRUCTURE_TAGS = HEADING_TAGS + BLOCK_TAGS + CONTAINER_TAGS

STRIP_TAGS = ["script", "style", "noscript", "template", "svg"]


class RecordGenerator(Protocol):
    async def __call__(self, html: str, meta: PageMeta) -> List[SearchRecord]:
        ...


@dataclass
class _Section:
    heading: Optional[str] = None
    anchor: Optional[str] = None
    blocks: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _flush(inline: List[str], sections: List[_Section]) -> None:
    if inline:
        sections[-1].blocks.append(" ".join(inline))
        inline.clear()


def _collect(el: Tag, sections: List[_Section], inline: List[str]) -> None:
    """
    Walk ``el`` in document order, starting a section at every heading.

    Runs of loose text and inline elements are gathered into one block,
    closed by the next block-level element.
    """
    for child in el.children:
        if isinstance(child, PreformattedString):
            continue

        if isinstance(child, NavigableString):
            text = " ".join(child.split())
            if text:
                inline.append(text)
            continue

        if not isinstance(child, Tag):
            continue

        if child.name in HEADING_TAGS:
            _flush(inline, sections)
            sections.append(
                _Section(
                    heading=child.get_text(" ", strip=True) or None,
                    anchor=child.get("id") or None,
                )
            )
        elif child.name == "pre":
            _flush(inline, sections)
            text = child.get_text().strip()
            if text:
                sections[-1].blocks.append(text)
        elif child.find(STRUCTURE_TAGS) is not None:
            _flush(inline, sections)
            _collect(child, sections, inline)
            _flush(inline, sections)
        elif child.name in BLOCK_TAGS or child.name in CONTAINER_TAGS:
            _flush(inline, sections)
            text = child.get_text(" ", strip=True)
            if text:
                sections[-1].blocks.append(text)
        else:
            text = child.get_text(" ", strip=True)
            if text:
                inline.append(text)


def _split_sections(root: Tag) -> List[_Section]:
    sections = [_Section()]
    inline: List[str] = []

    _collect(root, sections, inline)
    _flush(inline, sections)

    return [s for s in sections if s.heading or s.blocks]


def record_id(url: str, anchor: Optional[str], position: int) -> str:
    """
    Deterministic object id for the record at ``position`` of a page.

    Unchanged pages map to the same ids on every run, so re-indexing them
    updates records in place instead of replacing them.
    """
    key = f"{url}\n{anchor or ''}\n{position}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _chunk_blocks(blocks: List[str], max_length: int) -> List[str]:
    """
    Group blocks into texts no longer than ``max_length``.

    Blocks are never reordered. A single block longer than the limit is cut.
    """
    chunks: List[str] = []
    current: List[str] = []
    size = 0

    for block in blocks:
        while len(block) > max_length:
            if current:
                chunks.append("\n".join(current))
                current, size = [], 0
            chunks.append(block[:max_length])
            block = block[max_length:]

        extra = len(block) + (1 if current else 0)
        if current and size + extra > max_length:
            chunks.append("\n".join(current))
            current, size = [], 0
            extra = len(block)

        if block:
            current.append(block)
            size += extra

    if current:
        chunks.append("\n".join(current))

    return chunks


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def html_to_records(
    html: str,
    meta: PageMeta,
    root_selector: str = "#main",
    max_text_length: int = 8000,
) -> List[SearchRecord]:
    """
    Extract search records from a rendered page.

    Parameters
    ----------
    html : str
        Full HTML document of the page.

    meta : PageMeta
        Page metadata copied onto every record.

    root_selector : str
        CSS selector of the element holding the page content.

    max_text_length : int
        Longest text a single record may carry. Longer sections are split
        into several records.

    Returns
    -------
    List[SearchRecord]
        Records in page order, each with a stable object id. Empty if the
        content root has no text.

    Raises
    ------
    RecordExtractionError
        If the content root is not present in the page.
    """
    if max_text_length <= 0:
        raise ValueError("max_text_length must be positive")

    soup = BeautifulSoup(html, "html.parser")
    root = soup.select_one(root_selector)
    if root is None:
        raise RecordExtractionError(
            f"Content root {root_selector!r} not found in page {meta.url}"
        )

    for el in root.find_all(STRIP_TAGS):
        el.decompose()

    records: List[SearchRecord] = []

    for section in _split_sections(root):
        url = f"{meta.url}#{section.anchor}" if section.anchor else meta.url
        texts = _chunk_blocks(section.blocks, max_text_length) or [""]

        for text in texts:
            position = len(records)
            records.append(
                SearchRecord(
                    object_id=record_id(meta.url, section.anchor, position),
                    title=meta.title,
                    url=url,
                    path_segments=list(meta.path_segments),
                    keywords=list(meta.keywords),
                    section=section.heading,
                    anchor=section.anchor,
                    text=text,
                    position=position,
                )
            )

    return records


class HtmlRecordGenerator:
    """
    Default record generator backed by BeautifulSoup.
    """

    def __init__(
        self,
        root_selector: str = "#main",
        max_text_length: int = 8000,
    ) -> None:
        self.root_selector = root_selector
        self.max_text_length = max_text_length

    async def __call__(self, html: str, meta: PageMeta) -> List[SearchRecord]:
        return html_to_records(
            html,
            meta,
            root_selector=self.root_selector,
            max_text_length=self.max_text_length,
        )
