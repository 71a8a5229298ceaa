"""Editor profile that bridges the YAML defaults and design-document building.

Loads the editor-defaults configuration and exposes the constants the
importer stamps into every design document: document-wide body values,
baseline style defaults, row-container class names, content tag allow-list,
font-size clamp range and the brand accent colours used for buttons.

Classes
-------
EditorProfile
    Loads and queries the ``editor-defaults.yaml`` configuration.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────

_PACKAGE_ROOT = Path(__file__).resolve().parent
_DEFAULT_CONFIG_PATH = _PACKAGE_ROOT / "config" / "editor-defaults.yaml"

_REQUIRED_SECTIONS = ("body", "baseline_style", "structure", "content")


# ── EditorProfile ─────────────────────────────────────────────────────


class EditorProfile:
    """Loads and queries the editor-defaults YAML configuration.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to the YAML configuration file.  Defaults to the
        ``config/editor-defaults.yaml`` file shipped with the package.
    overlay_path : str or Path or None, optional
        Path to an optional overlay YAML.  Values in the overlay are
        deep-merged on top of the base configuration.

    Raises
    ------
    FileNotFoundError
        If the requested configuration file does not exist.
    ValueError
        If the YAML does not hold a mapping or misses a required section.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        overlay_path: str | Path | None = None,
    ) -> None:
        self._config_path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        self._raw: dict[str, Any] = self._read_mapping(self._config_path)

        if overlay_path is not None:
            overlay = self._read_mapping(Path(overlay_path))
            unknown = sorted(set(overlay) - set(self._raw))
            if unknown:
                logger.warning(
                    "Overlay %s defines unknown section(s): %s",
                    overlay_path,
                    ", ".join(unknown),
                )
            self._raw = self._deep_merge(self._raw, overlay)
            logger.info("Applied profile overlay from %s", overlay_path)

        missing = [name for name in _REQUIRED_SECTIONS if name not in self._raw]
        if missing:
            raise ValueError(
                f"Editor profile {self._config_path} is missing section(s): "
                + ", ".join(missing)
            )

        self._body: dict[str, Any] = self._raw["body"]
        self._baseline: dict[str, str] = {
            str(key).lower(): str(value)
            for key, value in self._raw["baseline_style"].items()
        }
        self._structure: dict[str, Any] = self._raw["structure"]
        self._content: dict[str, Any] = self._raw["content"]

        logger.debug("EditorProfile loaded from %s", self._config_path)

    # ── Loading / merging ──────────────────────────────────────────

    @staticmethod
    def _read_mapping(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise FileNotFoundError(f"Editor profile not found: {path}")

        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a YAML mapping at the top level in {path}")
        return data

    @staticmethod
    def _deep_merge(base: dict, overlay: dict) -> dict:
        """Recursively merge *overlay* into a copy of *base*.

        Overlay values take precedence.  Nested dicts are merged rather than
        replaced outright.
        """
        result = deepcopy(base)
        for key, value in overlay.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = EditorProfile._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result

    # ── Document-wide values ───────────────────────────────────────

    @property
    def schema_version(self) -> int:
        return int(self._raw.get("schema_version", 16))

    @property
    def content_width(self) -> str:
        return str(self._body.get("content_width", "600px"))

    @property
    def default_text_color(self) -> str:
        return str(self._body.get("text_color", "#000000"))

    @property
    def default_background_color(self) -> str:
        return str(self._body.get("background_color", "#ffffff"))

    def body_values(self, text_color: str, background_color: str) -> dict[str, Any]:
        """Return the body ``values`` record for the resolved colours."""
        return {
            "contentWidth": self.content_width,
            "fontFamily": deepcopy(self._body.get("font_family", {})),
            "textColor": text_color,
            "backgroundColor": background_color,
            "linkStyle": deepcopy(self._body.get("link_style", {})),
            "backgroundImage": deepcopy(self._body.get("background_image", {})),
            "_meta": {"htmlID": "u_body", "htmlClassNames": "u_body"},
        }

    # ── Style defaults ─────────────────────────────────────────────

    @property
    def baseline_style(self) -> dict[str, str]:
        """Return a copy of the baseline property defaults."""
        return dict(self._baseline)

    # ── Structure ──────────────────────────────────────────────────

    @property
    def row_classes(self) -> list[str]:
        return list(self._structure.get("row_classes", []))

    @property
    def wrapper_class(self) -> str:
        return str(self._structure.get("wrapper_class", ""))

    def row_background_image(self, url: str) -> dict[str, Any]:
        preset = deepcopy(self._structure.get("row_background_image", {}))
        preset["url"] = url
        return preset

    # ── Content ────────────────────────────────────────────────────

    @property
    def content_tags(self) -> frozenset[str]:
        return frozenset(tag.lower() for tag in self._content.get("tags", []))

    @property
    def font_size_range(self) -> tuple[int, int]:
        text = self._content.get("text", {})
        return int(text.get("min_font_size", 14)), int(text.get("max_font_size", 36))

    def get_component(self, name: str) -> dict[str, Any]:
        """Return a copy of the ``content.<name>`` settings (``image``, ``button``, ...)."""
        component = self._content.get(name)
        if not isinstance(component, dict):
            raise KeyError(f"Unknown content component: '{name}'")
        return dict(component)

    @property
    def suppressed_link_phrases(self) -> tuple[str, ...]:
        return tuple(
            phrase.strip().lower()
            for phrase in self._content.get("suppressed_link_phrases", [])
        )
