"""Design-record generator for the HTML email importer.

Turns detected row and column candidates into :class:`Row` and
:class:`Column` records and fills each column with content blocks: the
column subtree is walked, every candidate element is classified as a text,
image or button block (or nothing), and the block values are normalised
through the :class:`StyleResolver`.

Usage::

    generator = DesignGenerator(profile, resolver, id_factory)
    row = generator.build_row(row_candidate)
    column = generator.build_column(column_candidate)
"""

from __future__ import annotations

import html
import logging
import re
from copy import deepcopy
from typing import Any, Optional

from lxml import html as lxml_html

from html2design.detector import ColumnCandidate, RowCandidate, shorthand_color
from html2design.ids import IdFactory
from html2design.mapper import EditorProfile
from html2design.models import (
    COLUMN_COUNTER,
    ROW_COUNTER,
    BlockType,
    ButtonBlock,
    Column,
    ContentBlock,
    ImageBlock,
    ImageSource,
    LinkAction,
    Row,
    TextBlock,
    default_counters,
)
from html2design.parser import child_elements, tag_name, text_of
from html2design.resolver import StyleResolver, inline_style

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────

_HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
_TEXT_TAGS = _HEADING_TAGS | {"p"}
_CONTAINER_TAGS = frozenset({"div", "span"})
_BUTTON_TAGS = frozenset({"a", "button"})

# A generic container holding any of these is a layout wrapper, not text.
_BLOCK_LEVEL_TAGS = _TEXT_TAGS | {"div", "img", "table", "button"}

# Descendants a text block renders as part of its own markup.
_NESTED_TEXT_TAGS = _TEXT_TAGS | _CONTAINER_TAGS

_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")
_PIXEL_RE = re.compile(r"^\s*(\d+)(?:\.\d+)?\s*(?:px)?\s*$", re.IGNORECASE)


# ── Helpers ────────────────────────────────────────────────────────────


def clamp_font_size(value: str, minimum: int = 14, maximum: int = 36) -> str:
    """Clamp a CSS font size into ``[minimum, maximum]`` pixels.

    The leading number is read regardless of unit; unitless, oversized,
    undersized and unparseable values all come back as ``"<n>px"``.
    """
    match = _LEADING_NUMBER_RE.match(value or "")
    size = float(match.group(1)) if match else float(minimum)
    size = float(min(max(size, minimum), maximum))
    if size == int(size):
        return f"{int(size)}px"
    return f"{size:g}px"


def _pixel_dimension(raw: Optional[str]) -> Optional[int]:
    """Return an integer pixel size from an attribute or CSS length."""
    if not raw:
        return None
    match = _PIXEL_RE.match(raw)
    return int(match.group(1)) if match else None


def _collapsed_text(element) -> str:
    return " ".join(text_of(element).split())


def _text_outside_links(element) -> str:
    """Text of *element* excluding anything inside ``<a>``/``<button>`` descendants."""
    parts = [element.text or ""]
    for child in child_elements(element):
        if tag_name(child) not in _BUTTON_TAGS:
            parts.append(_text_outside_links(child))
        parts.append(child.tail or "")
    return "".join(parts)


# ── Generator ──────────────────────────────────────────────────────────


class DesignGenerator:
    """Builds rows, columns and content blocks for one conversion.

    Counters kept here are provisional: they only mint ``_meta.htmlID``
    values during the build and are recomputed by the converter once the
    tree is final.
    """

    def __init__(
        self,
        profile: EditorProfile,
        resolver: StyleResolver,
        id_factory: IdFactory,
    ) -> None:
        self._profile = profile
        self._resolver = resolver
        self._new_id = id_factory
        self._counters = default_counters()
        self._content_tags = profile.content_tags
        self._font_range = profile.font_size_range
        self._image = profile.get_component("image")
        self._button = profile.get_component("button")
        self._suppressed = profile.suppressed_link_phrases

    # ── Body ───────────────────────────────────────────────────────

    def body_values(self, body) -> dict[str, Any]:
        """Return the document-wide ``values`` record derived from ``<body>``."""
        style = self._resolver.effective(body)
        background = (
            inline_style(body).get("background-color")
            or (body.get("bgcolor") or "").strip()
            or style.get("background-color")
            or shorthand_color(style.get("background", ""))
        )
        if not background or background.lower() == "transparent":
            background = self._profile.default_background_color

        text_color = style.get("color") or self._profile.default_text_color
        return self._profile.body_values(text_color, background)

    # ── Rows / columns ─────────────────────────────────────────────

    def build_row(self, candidate: RowCandidate) -> Row:
        return Row(
            id=self._new_id(),
            columns_background_color=candidate.background_color,
            background_image=self._profile.row_background_image(candidate.background_image),
            html_id=self._next_html_id(ROW_COUNTER),
        )

    def build_column(self, candidate: ColumnCandidate) -> Column:
        """Build a column and fill it with the blocks found under its element."""
        column = Column(
            id=self._new_id(),
            background_color=candidate.background_color,
            border=deepcopy(candidate.border),
            html_id=self._next_html_id(COLUMN_COUNTER),
        )

        claimed: set = set()
        for element in self.collect_content_elements(candidate.element):
            if element in claimed:
                continue
            block = self.classify(element, claimed)
            if block is not None:
                column.contents.append(block)

        logger.debug(
            "Column %s: %d content block(s)", column.html_id, len(column.contents)
        )
        return column

    # ── Content discovery ──────────────────────────────────────────

    def collect_content_elements(self, root) -> list:
        """Return candidate content elements under *root* (inclusive), in document order."""
        seen: set = set()
        elements: list = []
        for element in root.iter():
            if element in seen or tag_name(element) not in self._content_tags:
                continue
            seen.add(element)
            elements.append(element)
        return elements

    # ── Classification ─────────────────────────────────────────────

    def classify(self, element, claimed: Optional[set] = None) -> Optional[ContentBlock]:
        """Classify *element* into a block, or ``None`` if it yields no block.

        Elements consumed by the returned block are added to *claimed* so
        that they are not classified a second time: the image of a linked
        image, everything inside a link or button, and the nested
        text elements of a text block.  Links, buttons and images inside a
        text block still yield their own blocks.
        """
        if claimed is None:
            claimed = set()
        name = tag_name(element)

        if name == "img":
            claimed.add(element)
            return self._image_block(element)

        if name == "a":
            image = next(element.iter("img"), None)
            if image is not None:
                claimed.update(element.iter())
                return self._image_block(image, link=element)

        if name in _BUTTON_TAGS:
            claimed.update(element.iter())
            if self._is_suppressed_link(element):
                logger.debug("Dropping utility link %r", _collapsed_text(element))
                return None
            return self._button_block(element)

        if name in _TEXT_TAGS and _collapsed_text(element):
            self._claim_nested_text(element, claimed)
            return self._text_block(element)

        if name in _CONTAINER_TAGS and self._is_text_container(element):
            self._claim_nested_text(element, claimed)
            return self._text_block(element)

        return None

    @staticmethod
    def _claim_nested_text(element, claimed: set) -> None:
        claimed.add(element)
        claimed.update(
            descendant for descendant in element.iterdescendants()
            if tag_name(descendant) in _NESTED_TEXT_TAGS
        )

    def _is_suppressed_link(self, element) -> bool:
        text = _collapsed_text(element).lower()
        return any(phrase in text for phrase in self._suppressed)

    @staticmethod
    def _is_text_container(element) -> bool:
        for descendant in element.iterdescendants():
            if tag_name(descendant) in _BLOCK_LEVEL_TAGS:
                return False
        return bool(_text_outside_links(element).strip())

    # ── Block builders ─────────────────────────────────────────────

    def _text_block(self, element) -> TextBlock:
        # Serialise a detached copy so the tail text of the source element
        # does not leak into the block.
        clone = deepcopy(element)
        clone.tail = None
        wrapper = lxml_html.Element("div")
        wrapper.append(clone)
        markup = "".join(
            lxml_html.tostring(child, encoding="unicode", method="html")
            for child in wrapper
        ).strip()

        style = self._resolver.effective(element)
        minimum, maximum = self._font_range
        return TextBlock(
            id=self._new_id(),
            text=markup,
            font_size=clamp_font_size(style["font-size"], minimum, maximum),
            line_height=style.get("line-height") or "1.5",
            text_align=style.get("text-align") or "left",
            color=style.get("color") or "#000000",
            font_family=style.get("font-family") or "'Cabin', sans-serif",
            font_weight=style.get("font-weight") or "normal",
            container_padding=style.get("padding") or "10px",
            html_id=self._next_html_id(BlockType.TEXT.counter_key),
        )

    def _image_block(self, image, link=None) -> ImageBlock:
        style = self._resolver.own_style(image)
        width = _pixel_dimension(image.get("width")) or _pixel_dimension(style.get("width"))
        height = _pixel_dimension(image.get("height")) or _pixel_dimension(style.get("height"))

        if link is not None:
            action = LinkAction(
                href=(link.get("href") or "").strip(),
                target=link.get("target") or self._button.get("default_target", "_blank"),
            )
        else:
            action = LinkAction()

        return ImageBlock(
            id=self._new_id(),
            src=ImageSource(
                url=(image.get("src") or "").strip(),
                width=width or self._image.get("default_width", "100px"),
                height=height or self._image.get("default_height", "auto"),
            ),
            alt_text=image.get("alt") or self._image.get("default_alt", "Image"),
            action=action,
            border_radius=self._image.get("border_radius", "4px"),
            container_padding=self._image.get("container_padding", "10px"),
            html_id=self._next_html_id(BlockType.IMAGE.counter_key),
        )

    def _button_block(self, element) -> ButtonBlock:
        style = self._resolver.effective(element, with_defaults=False)
        baseline = self._profile.baseline_style

        background = style.get("background-color") or shorthand_color(style.get("background", ""))
        if not background or background.lower() == "transparent":
            background = self._button.get("background_color", "#3AAEE0")

        label = _collapsed_text(element)
        return ButtonBlock(
            id=self._new_id(),
            text=f"<span>{html.escape(label, quote=False)}</span>",
            href=LinkAction(
                href=(element.get("href") or "").strip(),
                target=element.get("target") or self._button.get("default_target", "_blank"),
            ),
            color=style.get("color") or self._button.get("color", "#ffffff"),
            background_color=background,
            font_size=style.get("font-size") or baseline.get("font-size", "14px"),
            padding=style.get("padding") or baseline.get("padding", "10px 20px"),
            text_align=style.get("text-align") or "center",
            border_radius=style.get("border-radius") or self._button.get("border_radius", "4px"),
            container_padding=self._button.get("container_padding", "10px"),
            html_id=self._next_html_id(BlockType.BUTTON.counter_key),
        )

    # ── Counters ───────────────────────────────────────────────────

    def _next_html_id(self, counter_key: str) -> str:
        self._counters[counter_key] += 1
        return f"{counter_key}_{self._counters[counter_key]}"
