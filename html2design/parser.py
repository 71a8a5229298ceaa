"""HTML parser front-end for the email importer.

Turns the raw HTML string into an lxml element tree.  libxml2's HTML parser
is forgiving of the malformed, table-heavy markup typical of legacy emails;
input that is not a string is reported as a :class:`ConversionError`.
Markup-free input (blank, or only comments) becomes an empty document.
"""

from __future__ import annotations

import logging
from typing import Iterator

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)


class ConversionError(ValueError):
    """Raised when the input cannot be converted into a design document."""


# ── Element helpers ────────────────────────────────────────────────────


def is_element(node) -> bool:
    """Return ``True`` for real elements (not comments or processing instructions)."""
    return isinstance(getattr(node, "tag", None), str)


def tag_name(node) -> str:
    """Return the lowercase local tag name of *node*, or ``""`` for non-elements."""
    if not is_element(node):
        return ""
    return etree.QName(node).localname.lower()


def child_elements(node) -> Iterator[lxml_html.HtmlElement]:
    for child in node:
        if is_element(child):
            yield child


def text_of(node) -> str:
    """Return the concatenated text content of *node* and its descendants."""
    return str(node.xpath("string()"))


def _empty_document() -> lxml_html.HtmlElement:
    root = lxml_html.Element("html")
    etree.SubElement(root, "body")
    return root


# ── Parser ─────────────────────────────────────────────────────────────


class HtmlParser:
    """Parse an HTML string into an lxml document.

    Usage::

        parser = HtmlParser()
        document = parser.parse("<p>Hello</p>")
        body = parser.body(document)
    """

    def parse(self, html: str) -> lxml_html.HtmlElement:
        """Return the ``<html>`` root element for *html*.

        Body fragments are accepted; the parser wraps them in an
        ``<html><body>`` skeleton.  Input without any markup yields an
        empty skeleton.

        Raises
        ------
        ConversionError
            If *html* is not a string, or is rejected by the parser.
        """
        if not isinstance(html, str):
            raise ConversionError(
                f"Expected HTML as a string, got {type(html).__name__}"
            )
        if not html.strip():
            logger.info("Empty HTML document; converting an empty body")
            return _empty_document()

        try:
            document = lxml_html.document_fromstring(html)
        except ValueError:
            # XHTML emails often start with an XML declaration carrying an
            # encoding, which lxml refuses on str input.
            logger.debug("Retrying parse on UTF-8 bytes after XML declaration error")
            try:
                document = lxml_html.document_fromstring(html.encode("utf-8"))
            except etree.ParserError:
                return _empty_document()
            except ValueError as exc:
                raise ConversionError(f"Failed to parse HTML: {exc}") from exc
        except etree.ParserError:
            # lxml.html reports a document without elements as empty.
            logger.info("HTML document has no elements; converting an empty body")
            return _empty_document()

        logger.debug("Parsed HTML document with root <%s>", tag_name(document))
        return document

    @staticmethod
    def body(document: lxml_html.HtmlElement) -> lxml_html.HtmlElement:
        """Return the ``<body>`` element, or the root when the document has none."""
        for node in document.iter("body"):
            return node
        return document
