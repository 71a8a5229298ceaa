"""Structure detection for HTML email markup.

HTML emails have no canonical row/column model, so one is inferred from the
markup with a prioritised set of heuristics.  The detector returns
:class:`RowCandidate` and :class:`ColumnCandidate` records carrying the
source element plus the background and border values extracted from it;
content classification happens later, in the generator.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import tinycss2
from lxml.cssselect import CSSSelector
from tinycss2.color3 import parse_color

from html2design.mapper import EditorProfile
from html2design.models import BorderSpec
from html2design.parser import child_elements, tag_name
from html2design.resolver import StyleResolver, inline_style

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────

_URL_RE = re.compile(r"url\(\s*(['\"]?)(.*?)\1\s*\)", re.IGNORECASE)

_BORDER_STYLES = frozenset({
    "none", "hidden", "dotted", "dashed", "solid", "double",
    "groove", "ridge", "inset", "outset",
})

_BORDER_WIDTH_RE = re.compile(r"^(?:thin|medium|thick|[\d.]+[a-z%]*)$", re.IGNORECASE)

_CSS_TOKEN_RE = re.compile(r"[^\s(]+(?:\([^)]*\))?")

_TABLE_SECTIONS = frozenset({"thead", "tbody", "tfoot"})
_CELL_TAGS = frozenset({"td", "th"})


# ── Candidates ─────────────────────────────────────────────────────────


@dataclass
class RowCandidate:
    """A source element inferred to be one horizontal section."""
    element: object
    background_color: str = ""
    background_image: str = ""


@dataclass
class ColumnCandidate:
    """A source element inferred to be one column of a row."""
    element: object
    background_color: str = ""
    border: Optional[BorderSpec] = None


# ── Helper utilities ───────────────────────────────────────────────────


def _normalize_color(value: str) -> str:
    """Trim *value*; ``transparent`` means no explicit colour."""
    value = (value or "").strip()
    if value.lower() == "transparent":
        return ""
    return value


def shorthand_color(value: str) -> str:
    """Return the colour component of a ``background`` shorthand, or ``""``."""
    if not value:
        return ""
    for token in tinycss2.parse_component_value_list(value, skip_comments=True):
        if token.type in ("whitespace", "literal"):
            continue
        if parse_color(token) is not None:
            return tinycss2.serialize([token]).strip()
    return ""


def extract_url(value: str) -> str:
    """Return the first ``url(...)`` target in *value*, or ``""``."""
    match = _URL_RE.search(value or "")
    return match.group(2).strip() if match else ""


def inline_background_color(element) -> str:
    """``background-color`` from the inline style, else the shorthand's colour."""
    style = inline_style(element)
    color = style.get("background-color", "")
    if not color:
        color = shorthand_color(style.get("background", ""))
    return _normalize_color(color)


def inline_background_image(element) -> str:
    style = inline_style(element)
    url = extract_url(style.get("background-image", ""))
    if not url:
        url = extract_url(style.get("background", ""))
    if not url:
        url = (element.get("background") or "").strip()
    return url


def parse_border(style: dict[str, str], defaults: dict[str, str]) -> Optional[BorderSpec]:
    """Build a :class:`BorderSpec` from resolved border properties.

    Returns ``None`` when no border is declared, or when it is declared with
    a zero width or a ``none``/``hidden`` style.
    """
    shorthand = style.get("border", "")
    if not shorthand and not style.get("border-width"):
        return None

    width = style.get("border-width", "")
    border_style = style.get("border-style", "")
    color = style.get("border-color", "")
    for token in _CSS_TOKEN_RE.findall(shorthand):
        lowered = token.lower()
        if lowered in _BORDER_STYLES:
            border_style = border_style or lowered
        elif _BORDER_WIDTH_RE.match(token):
            width = width or token
        else:
            color = color or token

    if border_style in ("none", "hidden") or re.fullmatch(r"0+(?:\.0+)?[a-z]*", width or "x"):
        return None
    return BorderSpec(
        width=width or defaults.get("width", "1px"),
        style=border_style or defaults.get("style", "solid"),
        color=color or defaults.get("color", "#9cd3ec"),
    )


# ── Main detector class ────────────────────────────────────────────────


class StructureDetector:
    """Infers rows and columns from the source markup.

    Usage::

        detector = StructureDetector(profile, resolver)
        for row in detector.detect_rows(document, body):
            columns = detector.detect_columns(row.element)
    """

    def __init__(self, profile: EditorProfile, resolver: StyleResolver) -> None:
        self._profile = profile
        self._resolver = resolver
        self._border_defaults = profile.get_component("column_border")

    # ── public API ─────────────────────────────────────────────────

    def detect_rows(self, document, body) -> list[RowCandidate]:
        """Return the row candidates of *document* in document order.

        The first rule yielding at least one element wins:

        1. elements carrying one of the known row-container classes,
        2. ``<table>`` elements inside the wrapper container,
        3. the body itself, as a single row.
        """
        elements = self._find_by_row_class(document)
        if elements:
            logger.debug("Found %d row(s) by row-container class", len(elements))
        else:
            elements = self._find_wrapper_tables(document)
            if elements:
                logger.debug("Found %d row(s) inside the wrapper container", len(elements))
            else:
                logger.debug("No row containers found; using <body> as a single row")
                elements = [body]

        return [
            RowCandidate(
                element=element,
                background_color=inline_background_color(element),
                background_image=inline_background_image(element),
            )
            for element in elements
        ]

    def detect_columns(self, row_element) -> list[ColumnCandidate]:
        """Return the column candidates of *row_element*, left to right.

        1. table cells of the row element's own ``<tr>`` children,
        2. otherwise its direct ``<table>`` children,
        3. otherwise the row element itself.
        """
        elements = self._direct_cells(row_element)
        if not elements:
            elements = [
                child for child in child_elements(row_element)
                if tag_name(child) == "table"
            ]
        if not elements:
            elements = [row_element]

        return [self._column_candidate(element) for element in elements]

    # ── Row discovery ──────────────────────────────────────────────

    def _find_by_row_class(self, document) -> list:
        classes = self._profile.row_classes
        if not classes:
            return []
        selector = CSSSelector(", ".join(f".{name}" for name in classes), translator="html")
        return list(selector(document))

    def _find_wrapper_tables(self, document) -> list:
        wrapper_class = self._profile.wrapper_class
        if not wrapper_class:
            return []
        for wrapper in CSSSelector(f".{wrapper_class}", translator="html")(document):
            return list(wrapper.iterdescendants("table"))
        return []

    # ── Column discovery ───────────────────────────────────────────

    @staticmethod
    def _direct_cells(row_element) -> list:
        rows = []
        for child in child_elements(row_element):
            name = tag_name(child)
            if name == "tr":
                rows.append(child)
            elif name in _TABLE_SECTIONS:
                rows.extend(tr for tr in child_elements(child) if tag_name(tr) == "tr")

        return [
            cell
            for tr in rows
            for cell in child_elements(tr)
            if tag_name(cell) in _CELL_TAGS
        ]

    def _column_candidate(self, element) -> ColumnCandidate:
        color = inline_background_color(element)
        if not color:
            color = _normalize_color(element.get("bgcolor", ""))
        if not color:
            matched = self._resolver.matched_style(element)
            color = _normalize_color(
                matched.get("background-color")
                or shorthand_color(matched.get("background", ""))
            )

        border = parse_border(
            self._resolver.effective(element, with_defaults=False),
            self._border_defaults,
        )
        return ColumnCandidate(element=element, background_color=color, border=border)
