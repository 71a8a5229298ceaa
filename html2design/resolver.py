"""Effective style resolution for source elements.

Precedence, highest first:

1. the element's inline ``style`` attribute,
2. declarations of every stylesheet selector matching the element, applied
   in index order (later matches overwrite earlier ones),
3. legacy presentational attributes (``align``, ``valign``, ``bgcolor``,
   ``background``),
4. the profile's baseline defaults.

No rendering engine is involved: the result is a pure function of the
element snapshot and the :class:`~html2design.stylesheet.StyleIndex`.
"""

from __future__ import annotations

import logging
from typing import Optional

from lxml.cssselect import CSSSelector, SelectorError

from html2design.mapper import EditorProfile
from html2design.stylesheet import StyleIndex, parse_declarations

logger = logging.getLogger(__name__)

# Legacy attribute -> CSS property.
_LEGACY_ATTRIBUTES: dict[str, str] = {
    "align": "text-align",
    "valign": "vertical-align",
    "bgcolor": "background-color",
}


def inline_style(element) -> dict[str, str]:
    """Parse the element's ``style`` attribute into a property map."""
    return parse_declarations(element.get("style", ""))


def legacy_style(element) -> dict[str, str]:
    """Translate presentational HTML attributes into CSS properties."""
    props: dict[str, str] = {}
    for attribute, prop in _LEGACY_ATTRIBUTES.items():
        value = (element.get(attribute) or "").strip()
        if value:
            props[prop] = value.lower() if attribute != "bgcolor" else value
    background = (element.get("background") or "").strip()
    if background:
        props["background-image"] = f"url({background})"
    return props


class StyleResolver:
    """Resolve property maps for elements of one parsed document.

    Compiled selectors and their match sets are cached on the instance, so a
    resolver must not outlive the document it was created for.

    Usage::

        resolver = StyleResolver(profile, index, document)
        style = resolver.effective(element)
        font_size = style["font-size"]
    """

    def __init__(
        self,
        profile: EditorProfile,
        index: Optional[StyleIndex] = None,
        root=None,
    ) -> None:
        self._profile = profile
        self._index = index if index is not None else StyleIndex()
        self._root = root
        self._match_sets: dict[str, Optional[frozenset]] = {}

    # ── public API ─────────────────────────────────────────────────

    def own_style(self, element) -> dict[str, str]:
        """Legacy attributes overlaid with the inline ``style`` attribute."""
        style = legacy_style(element)
        style.update(inline_style(element))
        return style

    def resolve(self, element) -> dict[str, str]:
        """Own style with baseline defaults for unset properties."""
        return self._with_defaults(self.own_style(element))

    def matched_style(self, element) -> dict[str, str]:
        """Merge the declarations of every indexed selector matching *element*."""
        merged: dict[str, str] = {}
        for selector, declarations in self._index.items():
            if self.matches(element, selector):
                merged.update(declarations)
        return merged

    def effective(self, element, with_defaults: bool = True) -> dict[str, str]:
        """Full cascade for *element*; see the module docstring for precedence.

        With ``with_defaults=False`` unset properties stay absent so callers
        can apply their own fallbacks.
        """
        style = legacy_style(element)
        style.update(self.matched_style(element))
        style.update(inline_style(element))
        if with_defaults:
            return self._with_defaults(style)
        return style

    def matches(self, element, selector: str) -> bool:
        """Return ``True`` if *selector* matches *element*.

        Invalid or unsupported selectors never match.
        """
        if selector not in self._match_sets:
            self._match_sets[selector] = self._compile(selector, element)
        matched = self._match_sets[selector]
        return matched is not None and element in matched

    # ── internals ──────────────────────────────────────────────────

    def _compile(self, selector: str, element) -> Optional[frozenset]:
        try:
            compiled = CSSSelector(selector, translator="html")
        except SelectorError as exc:
            logger.warning("Ignoring unsupported selector %r: %s", selector, exc)
            return None
        root = self._root if self._root is not None else element.getroottree().getroot()
        return frozenset(compiled(root))

    def _with_defaults(self, style: dict[str, str]) -> dict[str, str]:
        for prop, value in self._profile.baseline_style.items():
            if not style.get(prop):
                style[prop] = value
        return style
