"""Stylesheet index built from the ``<style>`` blocks of an email.

Every top-level style rule in every ``<style>`` element is recorded as
``{selector: {property: value}}``.  Selectors seen more than once, in the
same block or another one, are merged with later declarations winning.
At-rules (``@media``, ``@font-face``, ...) are not indexed.

Parsing uses tinycss2, which never raises on bad CSS: malformed rules come
back as parse-error nodes and are logged and skipped, so one broken block
never aborts a conversion.
"""

from __future__ import annotations

import logging
from typing import Iterator

import tinycss2

from html2design.parser import text_of

logger = logging.getLogger(__name__)


# ── Declarations ───────────────────────────────────────────────────────


def parse_declarations(css_text: str) -> dict[str, str]:
    """Parse a declaration list (a ``style`` attribute or rule body).

    Property names are lowercased and values trimmed; a property declared
    twice keeps its last value.  Invalid declarations are dropped.
    """
    if not css_text or not css_text.strip():
        return {}
    return _declarations_from_nodes(
        tinycss2.parse_declaration_list(
            css_text, skip_comments=True, skip_whitespace=True
        )
    )


def _declarations_from_nodes(nodes) -> dict[str, str]:
    props: dict[str, str] = {}
    for node in nodes:
        if node.type != "declaration":
            continue
        value = tinycss2.serialize(node.value).strip()
        if value:
            props[node.lower_name] = value
    return props


# ── Index ──────────────────────────────────────────────────────────────


class StyleIndex:
    """Ordered selector -> declaration-map index.

    Iteration follows first-seen selector order, which is the order in which
    matched rules are applied by the resolver.
    """

    def __init__(self) -> None:
        self._rules: dict[str, dict[str, str]] = {}

    def add(self, selector: str, declarations: dict[str, str]) -> None:
        self._rules.setdefault(selector, {}).update(declarations)

    def get(self, selector: str) -> dict[str, str]:
        return dict(self._rules.get(selector, {}))

    def items(self) -> Iterator[tuple[str, dict[str, str]]]:
        for selector, declarations in self._rules.items():
            yield selector, dict(declarations)

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, selector: object) -> bool:
        return selector in self._rules

    def __repr__(self) -> str:
        return f"StyleIndex({len(self._rules)} selectors)"


def build_style_index(document) -> StyleIndex:
    """Collect the rules of every ``<style>`` element under *document*."""
    index = StyleIndex()
    for block_number, style_el in enumerate(document.iter("style"), start=1):
        _index_style_block(index, text_of(style_el), block_number)

    logger.debug("Indexed %d selector(s) from <style> blocks", len(index))
    return index


def _index_style_block(index: StyleIndex, css_text: str, block_number: int) -> None:
    rules = tinycss2.parse_stylesheet(css_text, skip_comments=True, skip_whitespace=True)
    for rule in rules:
        if rule.type == "error":
            logger.warning(
                "Skipping malformed CSS in <style> block %d (line %s): %s",
                block_number,
                rule.source_line,
                rule.message,
            )
            continue
        if rule.type != "qualified-rule":
            logger.debug(
                "Ignoring @%s rule in <style> block %d",
                getattr(rule, "lower_at_keyword", "?"),
                block_number,
            )
            continue

        selector = " ".join(tinycss2.serialize(rule.prelude).split())
        if not selector:
            continue
        declarations = _declarations_from_nodes(
            tinycss2.parse_declaration_list(
                rule.content, skip_comments=True, skip_whitespace=True
            )
        )
        index.add(selector, declarations)
