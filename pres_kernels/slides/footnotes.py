"""
Footnote markup for slide decks.

Footnotes are numbered once per compilation, referenced inline, and their
bodies are deferred to a per-slide list that is flushed when the slide
closes:

    ... text<a id="fnref-1" class="footnote-ref" href="#fn-1" role="doc-noteref">1</a>
    <ol slot="footnotes"><li value="1" role="doc-endnote" id="fn-1">...</li></ol>

List items cannot carry a slot, so the whole <ol> is slotted instead.
"""

from __future__ import annotations

from typing import List

from pres_kernels.slides.models import Attr, Block, Link, Paragraph, Space, Str

FOOTNOTES_OPEN = '<ol slot="footnotes">'
FOOTNOTES_CLOSE = "</ol>"
BACKLINK_TEXT = "↩"


def reference_html(num: int) -> str:
    return (
        f'<a id="fnref-{num}" class="footnote-ref" href="#fn-{num}" '
        f'role="doc-noteref">{num}</a>'
    )


def entry_open_html(num: int) -> str:
    return f'<li value="{num}" role="doc-endnote" id="fn-{num}">'


def entry_close_html() -> str:
    return "</li>"


def append_backlink(blocks: List[Block], num: int) -> bool:
    """Append ' ↩' linking back to the reference, if the body ends with a paragraph.

    Mutates the note body. Returns whether a back-link was added.
    """
    if not blocks or not isinstance(blocks[-1], Paragraph):
        return False
    blocks[-1].inlines.append(Space())
    blocks[-1].inlines.append(Link(
        attr=Attr(classes=["footnote-back"], attributes=[("role", "doc-backlink")]),
        inlines=[Str(BACKLINK_TEXT)],
        url=f"#fnref-{num}",
        title="",
    ))
    return True
