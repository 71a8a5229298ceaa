"""HTML email to design-document conversion pipeline.

Usage::

    from html2design.converter import convert_html_to_design

    design = convert_html_to_design(html)
    editor.load_design(design.to_dict())

The pipeline is single-pass and stateless: every call builds its own
document tree, stylesheet index, resolver and counters, so separate calls
may run concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from html2design.detector import StructureDetector
from html2design.generator import DesignGenerator
from html2design.ids import IdFactory, RandomIdFactory
from html2design.mapper import EditorProfile
from html2design.models import (
    COLUMN_COUNTER,
    ROW_COUNTER,
    Body,
    DesignDocument,
    default_counters,
)
from html2design.parser import HtmlParser
from html2design.resolver import StyleResolver
from html2design.stylesheet import build_style_index

logger = logging.getLogger(__name__)


def finalize_counters(design: DesignDocument) -> DesignDocument:
    """Recount every row, column and block and renumber their ``_meta.htmlID``.

    Rows, columns and blocks discarded during the build leave gaps in the
    provisional numbering; after this pass the ids run ``1..n`` per type in
    visual order and equal the ``counters`` map.  Running it twice is a
    no-op.
    """
    counters = default_counters()
    for row in design.body.rows:
        counters[ROW_COUNTER] += 1
        row.html_id = f"{ROW_COUNTER}_{counters[ROW_COUNTER]}"
        for column in row.columns:
            counters[COLUMN_COUNTER] += 1
            column.html_id = f"{COLUMN_COUNTER}_{counters[COLUMN_COUNTER]}"
            for block in column.contents:
                key = block.block_type.counter_key
                counters[key] += 1
                block.html_id = f"{key}_{counters[key]}"

    design.counters = counters
    return design


class HtmlToDesignConverter:
    """Converts HTML email markup into a :class:`DesignDocument`.

    Parameters
    ----------
    profile : EditorProfile, optional
        Editor defaults.  The packaged profile is loaded when omitted.
    id_factory : callable, optional
        Zero-argument callable returning a fresh id.  When omitted each
        conversion gets its own :class:`RandomIdFactory`.
    """

    def __init__(
        self,
        profile: Optional[EditorProfile] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self._profile = profile or EditorProfile()
        self._id_factory = id_factory
        self._parser = HtmlParser()

    @property
    def profile(self) -> EditorProfile:
        return self._profile

    def convert(self, html: str) -> DesignDocument:
        """Convert *html* into a design document.

        Raises
        ------
        ConversionError
            If *html* cannot be parsed as HTML at all.
        """
        logger.info("Converting HTML document (%d characters)", len(html) if isinstance(html, str) else 0)

        document = self._parser.parse(html)
        body = self._parser.body(document)
        index = build_style_index(document)

        resolver = StyleResolver(self._profile, index, document)
        detector = StructureDetector(self._profile, resolver)
        new_id = self._id_factory or RandomIdFactory()
        generator = DesignGenerator(self._profile, resolver, new_id)

        design = DesignDocument(
            body=Body(id=new_id(), values=generator.body_values(body)),
            schema_version=self._profile.schema_version,
        )

        candidates = detector.detect_rows(document, body)
        logger.info("Detected %d row candidate(s)", len(candidates))

        for row_candidate in candidates:
            row = generator.build_row(row_candidate)
            for column_candidate in detector.detect_columns(row_candidate.element):
                column = generator.build_column(column_candidate)
                if column.contents:
                    row.columns.append(column)
            if row.has_content():
                design.body.rows.append(row)
            else:
                logger.debug("Discarding row %s without content", row.html_id)

        finalize_counters(design)
        logger.info("Conversion complete: %s", design.summary())
        return design


def convert_html_to_design(
    html: str,
    profile: Optional[EditorProfile] = None,
    id_factory: Optional[IdFactory] = None,
) -> DesignDocument:
    """Convert *html* with a one-off :class:`HtmlToDesignConverter`."""
    return HtmlToDesignConverter(profile=profile, id_factory=id_factory).convert(html)


def convert_html_to_json(html: str, **kwargs: Any) -> dict[str, Any]:
    """Convert *html* straight to the editor's JSON-compatible structure."""
    return convert_html_to_design(html, **kwargs).to_dict()
