"""
Configuration for the slides kernel family.

Nested dataclass sub-configurations with to_dict()/from_dict(), a lazily
created global default, and YAML loading for slides.yaml files:

    template:
      path: template.html
      placeholder: "$body$"
    highlight:
      enabled: true
      css_prefix: "pre > code > .source"
    render:
      escape_attributes: false
      merge_nested_footnotes: false
    output:
      filename: slides.html
      css_filename: theme.css
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml

from pres_kernels.slides.errors import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sub-configurations
# ---------------------------------------------------------------------------

@dataclass
class TemplateConfig:
    """Where the compiled body goes in the page template."""
    path: Optional[str] = None
    placeholder: str = "$body$"             # must occur exactly once


@dataclass
class HighlightConfig:
    """Code block highlighting (Pygments) and its stylesheet scope."""
    enabled: bool = True
    css_prefix: str = "pre > code > .source"


@dataclass
class RenderConfig:
    """Compiler behaviour switches. Defaults reproduce the reference output."""
    escape_attributes: bool = False         # escape id/class/key-value values
    merge_nested_footnotes: bool = False    # keep notes found inside notes


@dataclass
class OutputConfig:
    """File names written under <workspace>/output/."""
    filename: str = "slides.html"
    css_filename: str = "theme.css"


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------

@dataclass
class SlidesConfig:
    """Complete configuration for slide compilation."""
    template: TemplateConfig = field(default_factory=TemplateConfig)
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template": {
                "path": self.template.path,
                "placeholder": self.template.placeholder,
            },
            "highlight": {
                "enabled": self.highlight.enabled,
                "css_prefix": self.highlight.css_prefix,
            },
            "render": {
                "escape_attributes": self.render.escape_attributes,
                "merge_nested_footnotes": self.render.merge_nested_footnotes,
            },
            "output": {
                "filename": self.output.filename,
                "css_filename": self.output.css_filename,
            },
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SlidesConfig":
        tp = d.get("template", {}) or {}
        hl = d.get("highlight", {}) or {}
        rd = d.get("render", {}) or {}
        out = d.get("output", {}) or {}

        return cls(
            template=TemplateConfig(
                path=tp.get("path"),
                placeholder=tp.get("placeholder", "$body$"),
            ),
            highlight=HighlightConfig(
                enabled=hl.get("enabled", True),
                css_prefix=hl.get("css_prefix", "pre > code > .source"),
            ),
            render=RenderConfig(
                escape_attributes=rd.get("escape_attributes", False),
                merge_nested_footnotes=rd.get("merge_nested_footnotes", False),
            ),
            output=OutputConfig(
                filename=out.get("filename", "slides.html"),
                css_filename=out.get("css_filename", "theme.css"),
            ),
        )


def load_slides_config(path: Union[str, Path]) -> SlidesConfig:
    """Load a SlidesConfig from a YAML file (missing keys take defaults)."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    try:
        cfg = SlidesConfig.from_dict(data)
    except AttributeError as e:
        raise ConfigError(f"{path}: every section must be a mapping") from e
    logger.debug(f"Loaded slides config from {path}")
    return cfg


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_global_config: Optional[SlidesConfig] = None


def get_slides_config() -> SlidesConfig:
    """Get global slides configuration (lazy-loaded default)."""
    global _global_config
    if _global_config is None:
        _global_config = SlidesConfig()
    return _global_config


def set_slides_config(config: SlidesConfig) -> None:
    """Set the global slides configuration."""
    global _global_config
    _global_config = config
