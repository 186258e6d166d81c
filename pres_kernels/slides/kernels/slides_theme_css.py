"""
Kernel: slides_theme_css
Stage: 3 (Rendering)

Converts a color theme JSON into the stylesheet for highlighted code:
    {workspace}/output/theme.css
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Dict, List

from pres_kernels.base import Kernel, KernelInput
from pres_kernels.slides.config import SlidesConfig, get_slides_config
from pres_kernels.slides.theme_css import load_theme

logger = logging.getLogger(__name__)


class SlidesThemeCssKernel(Kernel):
    """Theme JSON → CSS."""

    name = "slides_theme_css"
    version = "1.0.0"
    category = "slides"
    stage = 3
    description = "Convert a color theme to a code highlighting stylesheet"

    input_keys: List[str] = ["theme_path"]
    provides: List[str] = ["theme_css"]

    def compute(self, input: KernelInput) -> Dict[str, Any]:
        slides_cfg = input.config.get("slides")
        cfg = SlidesConfig.from_dict(slides_cfg) if slides_cfg else get_slides_config()

        theme = load_theme(Path(input.config["theme_path"]).read_bytes())
        buf = io.StringIO()
        theme.write(buf, cfg.highlight.css_prefix)
        css = buf.getvalue()

        target = self.output_dir(input) / cfg.output.css_filename
        target.write_text(css, encoding="utf-8")
        logger.info(f"[{self.name}] Wrote {len(theme.rules)} rule(s) to {target}")

        return {
            "output_path": str(target),
            "theme_name": theme.name,
            "rule_count": len(theme.rules),
            "css_bytes": len(css.encode("utf-8")),
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        return (
            f"Theme CSS: '{data.get('theme_name', '')}', "
            f"{data.get('rule_count', 0)} rules, {data.get('css_bytes', 0)} bytes"
        )
