"""
Kernel: slides_html_render
Stage: 3 (Rendering)

Compiles a pandoc JSON document into slide HTML inside a page template:
    {workspace}/output/slides.html

Config:
    document_path:  pandoc JSON AST (pandoc -t json)
    template_path:  HTML page containing the placeholder once
    slides:         SlidesConfig dict (placeholder, highlight, render, output)

The HTML is streamed to a temporary file that replaces the target only when
compilation succeeded, so a failed run never leaves a truncated page.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from pres_kernels.base import Kernel, KernelInput
from pres_kernels.slides.config import SlidesConfig, get_slides_config
from pres_kernels.slides.highlight import SyntaxSet
from pres_kernels.slides.models import load_document
from pres_kernels.slides.template import load_template, render_to_stream

logger = logging.getLogger(__name__)


class SlidesHtmlRenderKernel(Kernel):
    """pandoc JSON → <pres-slide> HTML page."""

    name = "slides_html_render"
    version = "1.0.0"
    category = "slides"
    stage = 3
    description = "Compile a pandoc document tree into slide HTML"

    input_keys: List[str] = ["document_path", "template_path"]
    provides: List[str] = ["slides_html"]

    def compute(self, input: KernelInput) -> Dict[str, Any]:
        slides_cfg = input.config.get("slides")
        cfg = SlidesConfig.from_dict(slides_cfg) if slides_cfg else get_slides_config()

        doc_path = Path(input.config["document_path"])
        with open(doc_path, "rb") as f:
            doc = load_document(f)
        template = load_template(input.config["template_path"], cfg.template.placeholder)

        target = self.output_dir(input) / cfg.output.filename
        tmp = target.with_name(target.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as out:
                ctx = render_to_stream(
                    doc,
                    template,
                    out,
                    syntaxes=SyntaxSet(enabled=cfg.highlight.enabled),
                    render=cfg.render,
                )
            tmp.replace(target)
        finally:
            if tmp.exists():
                tmp.unlink()

        if ctx.slide_index == 0:
            logger.warning(f"[{self.name}] {doc_path.name} has no level-1 header: no slides opened")

        return {
            "output_path": str(target),
            "slide_count": ctx.slide_index,
            "footnote_count": ctx.footnote_count,
            "code_blocks": ctx.code_blocks,
            "highlighted_blocks": ctx.highlighted_blocks,
            "dropped_nodes": ctx.dropped_nodes,
            "html_bytes": target.stat().st_size,
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        return (
            f"Slides render: {data.get('slide_count', 0)} slides, "
            f"{data.get('footnote_count', 0)} footnotes, "
            f"{data.get('highlighted_blocks', 0)}/{data.get('code_blocks', 0)} code blocks highlighted, "
            f"{data.get('html_bytes', 0)} bytes"
        )
