"""
Page template handling.

A template is an HTML page containing a placeholder token (default
"$body$") exactly once. The compiled slides are written between the text
before and after the placeholder.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional, Tuple, Union

from pres_kernels.slides.compiler import CompileContext, compile_document
from pres_kernels.slides.config import RenderConfig
from pres_kernels.slides.errors import TemplateError
from pres_kernels.slides.highlight import SyntaxSet
from pres_kernels.slides.models import Document

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "$body$"


def split_template(text: str, placeholder: str = DEFAULT_PLACEHOLDER) -> Tuple[str, str]:
    """Split *text* into (prefix, suffix) around the single placeholder."""
    count = text.count(placeholder)
    if count != 1:
        raise TemplateError(
            f"template must contain {placeholder!r} exactly once (found {count})"
        )
    prefix, suffix = text.split(placeholder)
    return prefix, suffix


def load_template(path: Union[str, Path], placeholder: str = DEFAULT_PLACEHOLDER) -> Tuple[str, str]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(f"cannot read template {path}: {e}") from e
    logger.debug(f"Loaded template {path} ({len(text)} chars)")
    return split_template(text, placeholder)


def render_to_stream(
    doc: Document,
    template: Tuple[str, str],
    out: IO[str],
    syntaxes: Optional[SyntaxSet] = None,
    render: Optional[RenderConfig] = None,
) -> CompileContext:
    """Write template prefix, the compiled document, then the suffix."""
    prefix, suffix = template
    out.write(prefix)
    ctx = compile_document(doc, out, syntaxes=syntaxes, render=render)
    out.write(suffix)
    return ctx
