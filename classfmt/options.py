from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from classfmt.utils import detect_newline

DEFAULT_SECTION_ATTRIBUTES = ("Header", "HeaderAttribute")
DEFAULT_EXPOSURE_ATTRIBUTES = ("SerializeField",)
DEFAULT_LIFECYCLE_METHODS = ("Awake", "OnEnable", "OnDisable", "OnDestroy")

# Config and CLI spellings of the newline setting
NEWLINES = {"lf": "\n", "crlf": "\r\n", "auto": "auto", "\n": "\n", "\r\n": "\r\n"}


@dataclass(frozen=True)
class ReorganizeOptions:
    section_attributes: Tuple[str, ...] = DEFAULT_SECTION_ATTRIBUTES
    exposure_attributes: Tuple[str, ...] = DEFAULT_EXPOSURE_ATTRIBUTES
    lifecycle_methods: Tuple[str, ...] = DEFAULT_LIFECYCLE_METHODS
    reset_groups_on_non_field: bool = True
    spacing_enabled: bool = True
    newline: str = "auto"

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "ReorganizeOptions":
        """Build options from an already validated config mapping."""
        cfg = cfg or {}
        attrs = cfg.get("attributes") or {}
        return cls(
            section_attributes=tuple(attrs.get("section") or DEFAULT_SECTION_ATTRIBUTES),
            exposure_attributes=tuple(attrs.get("exposure") or DEFAULT_EXPOSURE_ATTRIBUTES),
            lifecycle_methods=tuple(cfg.get("lifecycle_methods", DEFAULT_LIFECYCLE_METHODS)),
            reset_groups_on_non_field=bool((cfg.get("grouping") or {}).get("reset_on_non_field", True)),
            spacing_enabled=bool((cfg.get("spacing") or {}).get("enabled", True)),
            newline=NEWLINES[cfg.get("newline", "auto")],
        )

    def resolve_newline(self, text: str) -> "ReorganizeOptions":
        if self.newline != "auto":
            return self
        return replace(self, newline=detect_newline(text))

    @property
    def line_break(self) -> str:
        # "auto" that was never resolved against a file falls back to LF
        return "\n" if self.newline == "auto" else self.newline
