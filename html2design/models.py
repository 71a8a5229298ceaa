"""Data models for the design document produced by the HTML importer.

These models describe the row/column/content tree consumed by the visual
email editor's ``loadDesign`` call.  They are built once per conversion and
serialised with :meth:`DesignDocument.to_dict` into the editor's JSON shape.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterator, Optional


class BlockType(Enum):
    TEXT = "text"
    IMAGE = "image"
    BUTTON = "button"
    SOCIAL = "social"
    CAROUSEL = "carousel"

    @property
    def counter_key(self) -> str:
        """Name of the counter tracking blocks of this type (``u_content_text``)."""
        return f"u_content_{self.value}"


ROW_COUNTER = "u_row"
COLUMN_COUNTER = "u_column"


def default_counters() -> dict[str, int]:
    """Return a zeroed counters map in the editor's key order."""
    counters = {ROW_COUNTER: 0, COLUMN_COUNTER: 0}
    for block_type in BlockType:
        counters[block_type.counter_key] = 0
    return counters


# Capability flags shared by rows and content blocks.
_EDITABLE_FLAGS: dict[str, bool] = {
    "selectable": True,
    "draggable": True,
    "duplicatable": True,
    "deletable": True,
    "hideable": True,
    "locked": False,
}


# ── Value records ───────────────────────────────────────────────────


@dataclass
class LinkAction:
    """A ``web`` link attached to an image or button."""
    href: str = ""
    target: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": "web", "values": {"href": self.href, "target": self.target}}


@dataclass
class ImageSource:
    url: str = ""
    width: int | str = "100px"
    height: int | str = "auto"

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "width": self.width,
            "height": self.height,
            "maxWidth": "100%",
            "autoWidth": True,
        }


@dataclass
class BorderSpec:
    """A uniform border applied to all four sides of a column."""
    width: str = "1px"
    style: str = "solid"
    color: str = "#9cd3ec"

    def to_dict(self) -> dict[str, str]:
        result: dict[str, str] = {}
        for side in ("Top", "Left", "Right", "Bottom"):
            result[f"border{side}Color"] = self.color
            result[f"border{side}Style"] = self.style
            result[f"border{side}Width"] = self.width
        return result


# ── Content blocks ──────────────────────────────────────────────────


@dataclass
class TextBlock:
    """A rich-text block holding the serialised source markup."""
    block_type: ClassVar[BlockType] = BlockType.TEXT

    id: str
    text: str
    font_size: str = "14px"
    line_height: str = "1.4"
    text_align: str = "center"
    color: str = "#000000"
    font_family: str = "'Cabin', sans-serif"
    font_weight: str = "normal"
    container_padding: str = "10px 20px"
    html_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        values = {
            "containerPadding": self.container_padding,
            "text": self.text,
            "fontSize": self.font_size,
            "lineHeight": self.line_height,
            "textAlign": self.text_align,
            "color": self.color,
            "fontFamily": self.font_family,
            "fontWeight": self.font_weight,
            "anchor": "",
            "hideDesktop": False,
            "hideMobile": False,
            "_meta": {"htmlID": self.html_id, "htmlClassNames": self.block_type.counter_key},
            **_EDITABLE_FLAGS,
        }
        return {"id": self.id, "type": self.block_type.value, "values": values}


@dataclass
class ImageBlock:
    block_type: ClassVar[BlockType] = BlockType.IMAGE

    id: str
    src: ImageSource = field(default_factory=ImageSource)
    alt_text: str = "Image"
    action: LinkAction = field(default_factory=LinkAction)
    text_align: str = "center"
    border_radius: str = "4px"
    container_padding: str = "10px"
    html_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        values = {
            "containerPadding": self.container_padding,
            "src": self.src.to_dict(),
            "textAlign": self.text_align,
            "altText": self.alt_text,
            "action": self.action.to_dict(),
            "_meta": {"htmlID": self.html_id, "htmlClassNames": self.block_type.counter_key},
            "borderRadius": self.border_radius,
            **_EDITABLE_FLAGS,
        }
        return {"id": self.id, "type": self.block_type.value, "values": values}


@dataclass
class ButtonBlock:
    """A call-to-action button.

    Hover colours mirror the normal colours; the importer never infers a
    distinct hover style from the source markup.
    """
    block_type: ClassVar[BlockType] = BlockType.BUTTON

    id: str
    text: str
    href: LinkAction = field(default_factory=LinkAction)
    color: str = "#ffffff"
    background_color: str = "#3AAEE0"
    font_size: str = "14px"
    padding: str = "10px 20px"
    text_align: str = "center"
    border_radius: str = "4px"
    container_padding: str = "10px"
    html_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        values = {
            "containerPadding": self.container_padding,
            "href": self.href.to_dict(),
            "buttonColors": {
                "color": self.color,
                "backgroundColor": self.background_color,
                "hoverColor": self.color,
                "hoverBackgroundColor": self.background_color,
            },
            "fontSize": self.font_size,
            "padding": self.padding,
            "textAlign": self.text_align,
            "borderRadius": self.border_radius,
            "text": self.text,
            "_meta": {"htmlID": self.html_id, "htmlClassNames": self.block_type.counter_key},
            **_EDITABLE_FLAGS,
        }
        return {"id": self.id, "type": self.block_type.value, "values": values}


# ── Content type union ──────────────────────────────────────────────

ContentBlock = TextBlock | ImageBlock | ButtonBlock


# ── Layout containers ───────────────────────────────────────────────


@dataclass
class Column:
    """A vertical slot inside a row."""
    id: str
    contents: list[ContentBlock] = field(default_factory=list)
    background_color: str = ""
    border: Optional[BorderSpec] = None
    html_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        values: dict[str, Any] = {
            "backgroundColor": self.background_color,
            "verticalAlign": "middle",
            "borderRadius": "0px",
        }
        if self.border is not None:
            values["border"] = self.border.to_dict()
        values["_meta"] = {"htmlID": self.html_id, "htmlClassNames": COLUMN_COUNTER}
        values["deletable"] = True
        return {
            "id": self.id,
            "contents": [block.to_dict() for block in self.contents],
            "values": values,
        }


@dataclass
class Row:
    """A horizontal section of the email."""
    id: str
    columns: list[Column] = field(default_factory=list)
    columns_background_color: str = ""
    background_image: dict[str, Any] = field(default_factory=dict)
    padding: str = "0px"
    border_radius: str = "0px"
    html_id: str = ""

    @property
    def cells(self) -> list[int]:
        # Equal-width layout; source column widths are not preserved.
        return [1] * len(self.columns)

    def has_content(self) -> bool:
        return any(column.contents for column in self.columns)

    def to_dict(self) -> dict[str, Any]:
        values = {
            "backgroundColor": "transparent",
            "columnsBackgroundColor": self.columns_background_color,
            "borderRadius": self.border_radius,
            "backgroundImage": deepcopy(self.background_image),
            "padding": self.padding,
            "anchor": "",
            "hideDesktop": False,
            "_meta": {"htmlID": self.html_id, "htmlClassNames": ROW_COUNTER},
            **_EDITABLE_FLAGS,
            "hideMobile": False,
            "noStackMobile": False,
        }
        return {
            "id": self.id,
            "cells": self.cells,
            "columns": [column.to_dict() for column in self.columns],
            "values": values,
        }


# ── Document structure ──────────────────────────────────────────────


@dataclass
class Body:
    id: str
    rows: list[Row] = field(default_factory=list)
    values: dict[str, Any] = field(default_factory=dict)
    # Always empty; kept for the editor's document model.
    headers: list[Row] = field(default_factory=list)
    footers: list[Row] = field(default_factory=list)


@dataclass
class DesignDocument:
    """The complete design document handed to the visual editor."""
    body: Body
    counters: dict[str, int] = field(default_factory=default_counters)
    schema_version: int = 16

    def iter_columns(self) -> Iterator[Column]:
        for row in self.body.rows:
            yield from row.columns

    def iter_blocks(self) -> Iterator[ContentBlock]:
        """Yield every content block in visual order."""
        for column in self.iter_columns():
            yield from column.contents

    def summary(self) -> dict[str, int]:
        """Return a summary of the document structure."""
        stats = {
            "rows": len(self.body.rows),
            "columns": sum(1 for _ in self.iter_columns()),
            "text": 0,
            "image": 0,
            "button": 0,
        }
        for block in self.iter_blocks():
            match block:
                case TextBlock():
                    stats["text"] += 1
                case ImageBlock():
                    stats["image"] += 1
                case ButtonBlock():
                    stats["button"] += 1
        return stats

    def to_dict(self) -> dict[str, Any]:
        return {
            "counters": dict(self.counters),
            "body": {
                "id": self.body.id,
                "rows": [row.to_dict() for row in self.body.rows],
                "headers": [row.to_dict() for row in self.body.headers],
                "footers": [row.to_dict() for row in self.body.footers],
                "values": deepcopy(self.body.values),
            },
            "schemaVersion": self.schema_version,
        }
