"""
Color theme JSON -> CSS stylesheet for highlighted code.

Theme format:
    {
      "name": "Monokai",
      "variables": {"black": "#272822", ...},
      "globals": {"foreground": "var(white)"},
      "rules": [
        {"name": "Comment", "scope": "comment, punctuation.definition.comment",
         "foreground": "var(grey)", "font_style": "italic"},
        ...
      ]
    }

Selectors are scoped under a prefix, by default `pre > code > .source`,
which matches the spans emitted by highlight.ClassedHTMLFormatter.
`var(x)` values become CSS custom property references. `color(...)` values
are not supported and are skipped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Union

from pres_kernels.slides.errors import ThemeFormatError

logger = logging.getLogger(__name__)

CSS_PREFIX = "pre > code > .source"


def value_to_css(value: str) -> Optional[str]:
    if value.startswith("var(") and value.endswith(")"):
        return f"var(--{value[4:-1]})"
    if value.startswith("color("):
        logger.debug(f"Skipping unsupported color value {value!r}")
        return None
    return value


@dataclass
class ThemeRule:
    scope: str
    name: Optional[str] = None
    foreground: Optional[str] = None
    background: Optional[str] = None
    font_style: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ThemeRule:
        if "scope" not in d:
            raise ThemeFormatError(f"theme rule {d.get('name', '?')!r} has no scope")
        return cls(
            scope=d["scope"],
            name=d.get("name"),
            foreground=d.get("foreground"),
            background=d.get("background"),
            font_style=d.get("font_style"),
        )

    def write(self, w: IO[str], prefix: str = CSS_PREFIX) -> None:
        if self.name is not None:
            w.write(f"/* {self.name} */\n")
        selectors = ", ".join(f"{prefix} .{part}" for part in self.scope.split(", "))
        w.write(f"{selectors} {{\n")

        fg = value_to_css(self.foreground) if self.foreground is not None else None
        if fg is not None:
            w.write(f"  color: {fg};\n")
        bg = value_to_css(self.background) if self.background is not None else None
        if bg is not None:
            w.write(f"  background: {bg};\n")
        style = value_to_css(self.font_style) if self.font_style is not None else None
        if style is not None:
            for opt in style.split(" "):
                if opt == "bold":
                    w.write("  font-weight: bold;\n")
                elif opt == "italic":
                    w.write("  font-style: italic;\n")
                else:
                    w.write(f"/* font option: {opt} */\n")
        w.write("}\n")


@dataclass
class Theme:
    name: str
    variables: Dict[str, str] = field(default_factory=dict)
    foreground: Optional[str] = None
    rules: List[ThemeRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Theme:
        missing = [k for k in ("name", "variables", "globals", "rules") if k not in d]
        if missing:
            raise ThemeFormatError(f"theme is missing field(s): {', '.join(missing)}")
        return cls(
            name=d["name"],
            variables=dict(d["variables"]),
            foreground=(d["globals"] or {}).get("foreground"),
            rules=[ThemeRule.from_dict(r) for r in d["rules"]],
        )

    def write(self, w: IO[str], prefix: str = CSS_PREFIX) -> None:
        w.write(f"/* {self.name} theme */\n")
        w.write(f"{prefix} {{\n")
        for name, value in self.variables.items():
            w.write(f"  --{name}: {value};\n")
        fg = value_to_css(self.foreground) if self.foreground is not None else None
        if fg is not None:
            w.write(f"  color: {fg};\n")
        w.write("}\n")
        for rule in self.rules:
            rule.write(w, prefix)


def load_theme(source: Union[str, bytes, IO[str], IO[bytes]]) -> Theme:
    """Parse a theme from JSON text, bytes, or a stream."""
    if hasattr(source, "read"):
        source = source.read()
    try:
        data = json.loads(source)
    except json.JSONDecodeError as e:
        raise ThemeFormatError(f"invalid theme JSON: {e}") from e
    if not isinstance(data, dict):
        raise ThemeFormatError("theme JSON must be an object")
    return Theme.from_dict(data)
