"""
Document tree -> <pres-slide> HTML compiler.

SlidesCompiler is a recursive visitor over the closed set of node kinds in
models.py. Markup is written to the output stream as it is produced; only
footnote bodies are buffered, per slide, and flushed when the slide closes.

Slide boundaries:
- every level-1 header opens <pres-slide id="slide-N"> (with master="..."
  when the header carries a master key), closing the previous slide first
- the last open slide is closed by finish()
- content before the first level-1 header is emitted outside any slide

Known gaps, emitted as nothing: Table, Math, Cite, raw blocks/inlines in a
non-HTML format, and node kinds the loader does not know. Ordered list style and delimiter are ignored.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field, replace
from typing import IO, List, Optional

from pres_kernels.slides.config import RenderConfig
from pres_kernels.slides.escape_utils import escape_href, escape_text
from pres_kernels.slides.footnotes import (
    FOOTNOTES_CLOSE,
    FOOTNOTES_OPEN,
    append_backlink,
    entry_close_html,
    entry_open_html,
    reference_html,
)
from pres_kernels.slides.highlight import SyntaxSet, highlight_code
from pres_kernels.slides.models import (
    Attr,
    Block,
    BlockQuote,
    BulletList,
    Cite,
    Code,
    CodeBlock,
    DefinitionList,
    Div,
    Document,
    Emph,
    Figure,
    Header,
    HorizontalRule,
    Image,
    Inline,
    LineBlock,
    LineBreak,
    Link,
    Math,
    Note,
    Null,
    OrderedList,
    Paragraph,
    Plain,
    Quoted,
    RawBlock,
    RawInline,
    SmallCaps,
    SoftBreak,
    Space,
    Span,
    Str,
    Strikeout,
    Strong,
    Subscript,
    Superscript,
    Table,
    Underline,
    UnknownBlock,
    UnknownInline,
)
from pres_kernels.slides.tag_utils import ensure_figure_slot, resolve_wrapper_tag

logger = logging.getLogger(__name__)

HTML_RAW_FORMATS = ("html", "html5", "html4")

_INLINE_TAGS = {
    Emph: "em",
    Underline: "u",
    Strong: "strong",
    Strikeout: "del",
    Superscript: "sup",
    Subscript: "sub",
    Quoted: "q",
}


@dataclass
class CompileContext:
    """Mutable state of one compilation.

    footnote_counter: next footnote number (starts at 1, never reset)
    slide_index: number of slides opened so far
    in_slide: whether a <pres-slide> is currently open
    footnote_queue: rendered <li> entries of the current slide
    The remaining fields are statistics for summaries and logs.
    """
    footnote_counter: int = 1
    slide_index: int = 0
    in_slide: bool = False
    footnote_queue: io.StringIO = field(default_factory=io.StringIO)
    code_blocks: int = 0
    highlighted_blocks: int = 0
    dropped_nodes: int = 0

    @property
    def footnote_count(self) -> int:
        return self.footnote_counter - 1

    def nested(self) -> CompileContext:
        """Context for rendering one footnote body: same numbering, fresh queue."""
        return replace(self, footnote_queue=io.StringIO(), code_blocks=0,
                       highlighted_blocks=0, dropped_nodes=0)

    def absorb_stats(self, other: CompileContext) -> None:
        self.code_blocks += other.code_blocks
        self.highlighted_blocks += other.highlighted_blocks
        self.dropped_nodes += other.dropped_nodes


class SlidesCompiler:
    """Visitor writing the HTML of a document tree to *out*.

    One instance compiles one document. A footnote body is compiled by a
    nested instance writing into this instance's footnote queue; what the
    nested instance numbers or queues itself is discarded unless
    RenderConfig.merge_nested_footnotes is set.
    """

    def __init__(
        self,
        out: IO[str],
        syntaxes: Optional[SyntaxSet] = None,
        render: Optional[RenderConfig] = None,
        ctx: Optional[CompileContext] = None,
    ):
        self.out = out
        self.syntaxes = syntaxes if syntaxes is not None else SyntaxSet()
        self.render = render if render is not None else RenderConfig()
        self.ctx = ctx if ctx is not None else CompileContext()

    def write(self, s: str) -> None:
        self.out.write(s)

    def _attr_value(self, s: str) -> str:
        return escape_text(s) if self.render.escape_attributes else s

    # -- document ----------------------------------------------------------

    def walk_document(self, doc: Document) -> None:
        self.visit_blocks(doc.blocks)

    def finish(self) -> None:
        """Close the last slide, if one is open."""
        if self.ctx.in_slide:
            self.end_slide()
            self.ctx.in_slide = False

    def end_slide(self) -> None:
        logger.debug(f"Closing slide {self.ctx.slide_index - 1}")
        self.write(FOOTNOTES_OPEN)
        self.write(self.ctx.footnote_queue.getvalue())
        self.ctx.footnote_queue = io.StringIO()
        self.write(FOOTNOTES_CLOSE)
        self.write("</pres-slide>")

    def start_slide(self, attr: Attr) -> None:
        if self.ctx.in_slide:
            self.end_slide()
        self.ctx.in_slide = True
        master = attr.key_value("master")
        if master is not None:
            self.write(f'<pres-slide master="{self._attr_value(master)}" id="slide-{self.ctx.slide_index}">')
        else:
            self.write(f'<pres-slide id="slide-{self.ctx.slide_index}">')
        logger.debug(f"Opened slide {self.ctx.slide_index}")
        self.ctx.slide_index += 1

    # -- sequences ---------------------------------------------------------

    def visit_blocks(self, blocks: List[Block]) -> None:
        for block in blocks:
            self.visit_block(block)

    def visit_inlines(self, inlines: List[Inline]) -> None:
        for inline in inlines:
            self.visit_inline(inline)

    def _inlines_with_tag(self, tag: str, inlines: List[Inline]) -> None:
        self.write(f"<{tag}>")
        self.visit_inlines(inlines)
        self.write(f"</{tag}>")

    def _items(self, items: List[List[Block]]) -> None:
        for item in items:
            self.write("<li>")
            self.visit_blocks(item)
            self.write("</li>")

    def _drop(self, node: object, reason: str) -> None:
        self.ctx.dropped_nodes += 1
        logger.debug(f"Dropped {type(node).__name__}: {reason}")

    # -- attributes --------------------------------------------------------

    def visit_attr(self, attr: Attr) -> None:
        if attr.identifier:
            self.write(f' id="{self._attr_value(attr.identifier)}"')
        if attr.classes:
            self.write(f' class="{self._attr_value(" ".join(attr.classes))}"')
        for key, value in attr.attributes:
            self.write(f' {key}="{self._attr_value(value)}"')

    # -- blocks ------------------------------------------------------------

    def visit_block(self, block: Block) -> None:
        if isinstance(block, Plain):
            self.visit_inlines(block.inlines)

        elif isinstance(block, Paragraph):
            self._inlines_with_tag("p", block.inlines)

        elif isinstance(block, LineBlock):
            # lines are rendered back to back, no line-level wrapping
            for line in block.lines:
                self.visit_inlines(line)

        elif isinstance(block, CodeBlock):
            self.visit_code_block(block)

        elif isinstance(block, RawBlock):
            if block.format in HTML_RAW_FORMATS:
                if block.text == "<figure>":
                    self.write('<figure slot="figure">')
                else:
                    self.write(block.text)
            else:
                self._drop(block, f"raw format {block.format!r}")

        elif isinstance(block, BlockQuote):
            self.write("<bq>")
            self.visit_blocks(block.blocks)
            self.write("</bq>")

        elif isinstance(block, OrderedList):
            if block.start != 1:
                self.write(f'<ol start="{block.start}">')
            else:
                self.write("<ol>")
            self._items(block.items)
            self.write("</ol>")

        elif isinstance(block, BulletList):
            self.write("<ul>")
            self._items(block.items)
            self.write("</ul>")

        elif isinstance(block, DefinitionList):
            self.write("<dl>")
            for term, definitions in block.items:
                self._inlines_with_tag("dt", term)
                for definition in definitions:
                    self.write("<dd>")
                    self.visit_blocks(definition)
                    self.write("</dd>")
            self.write("</dl>")

        elif isinstance(block, Header):
            if block.level == 1:
                self.start_slide(block.attr)
            self.write(f"<h{block.level}")
            self.visit_attr(block.attr)
            self.write(">")
            self.visit_inlines(block.inlines)
            self.write(f"</h{block.level}>")

        elif isinstance(block, HorizontalRule):
            self.write("<hr/>")

        elif isinstance(block, Table):
            self._drop(block, "tables are not rendered")

        elif isinstance(block, Div):
            tag = resolve_wrapper_tag(block.attr) or "div"
            self.write(f"<{tag}")
            self.visit_attr(block.attr)
            self.write(">")
            self.visit_blocks(block.blocks)
            self.write(f"</{tag}>")

        elif isinstance(block, Figure):
            self.visit_figure(block)

        elif isinstance(block, Null):
            pass

        elif isinstance(block, UnknownBlock):
            self._drop(block, f"unsupported block kind {block.kind!r}")

        else:
            raise TypeError(f"unsupported block node: {type(block).__name__}")

    def visit_figure(self, figure: Figure) -> None:
        ensure_figure_slot(figure.attr)
        self.write("<figure")
        self.visit_attr(figure.attr)
        self.write(">")
        self.visit_blocks(figure.blocks)
        if figure.caption:
            self.write("<figcaption>")
            self.visit_blocks(figure.caption)
            self.write("</figcaption>")
        self.write("</figure>")

    def visit_code_block(self, block: CodeBlock) -> None:
        self.ctx.code_blocks += 1
        self.write("<pre><code")
        self.visit_attr(block.attr)
        body, highlighted = highlight_code(block.attr.classes, block.text, self.syntaxes)
        if highlighted:
            self.ctx.highlighted_blocks += 1
        self.write(f">{body}</code></pre>")

    # -- inlines -----------------------------------------------------------

    def visit_inline(self, inline: Inline) -> None:
        if isinstance(inline, Str):
            self.write(escape_text(inline.text))

        elif type(inline) in _INLINE_TAGS:
            # quote type is dropped: <q> already conveys it
            self._inlines_with_tag(_INLINE_TAGS[type(inline)], inline.inlines)

        elif isinstance(inline, SmallCaps):
            self.write('<span class="smallcaps">')
            self.visit_inlines(inline.inlines)
            self.write("</span>")

        elif isinstance(inline, Cite):
            self._drop(inline, "citations are not rendered")

        elif isinstance(inline, Code):
            if not inline.attr.has_class("inline"):
                inline.attr.classes.append("inline")
            self.write("<code")
            self.visit_attr(inline.attr)
            self.write(f">{escape_text(inline.text)}</code>")

        elif isinstance(inline, Space):
            self.write(" ")

        elif isinstance(inline, SoftBreak):
            self.write("\n")

        elif isinstance(inline, LineBreak):
            self.write("<br/>")

        elif isinstance(inline, Math):
            self._drop(inline, "math is not rendered")

        elif isinstance(inline, RawInline):
            if inline.format in HTML_RAW_FORMATS:
                self.write(inline.text)
            else:
                self._drop(inline, f"raw format {inline.format!r}")

        elif isinstance(inline, Link):
            self.write("<a")
            self.visit_attr(inline.attr)
            if inline.title:
                self.write(f' title="{escape_text(inline.title)}"')
            self.write(f' href="{escape_href(inline.url)}">')
            self.visit_inlines(inline.inlines)
            self.write("</a>")

        elif isinstance(inline, Image):
            self.visit_image(inline)

        elif isinstance(inline, Note):
            self.visit_note(inline)

        elif isinstance(inline, Span):
            tag = resolve_wrapper_tag(inline.attr) or "span"
            self.write(f"<{tag}")
            self.visit_attr(inline.attr)
            self.write(">")
            self.visit_inlines(inline.inlines)
            self.write(f"</{tag}>")

        elif isinstance(inline, UnknownInline):
            self._drop(inline, f"unsupported inline kind {inline.kind!r}")

        else:
            raise TypeError(f"unsupported inline node: {type(inline).__name__}")

    def visit_image(self, image: Image) -> None:
        is_figure = image.title.startswith("fig:")
        if is_figure:
            image.title = image.title[len("fig:"):]
            ensure_figure_slot(image.attr)
            self.write("<figure")
            self.visit_attr(image.attr)
            self.write(">")
        self.write("<img")
        self.visit_attr(image.attr)
        if image.title:
            # alt rather than title: no native tooltip on slides
            self.write(f' alt="{escape_text(image.title)}"')
        self.write(f' src="{escape_href(image.url)}"></img>')
        if is_figure:
            self.write("</figure>")

    def visit_note(self, note: Note) -> None:
        num = self.ctx.footnote_counter
        self.ctx.footnote_counter += 1
        self.write(reference_html(num))

        queue = self.ctx.footnote_queue
        queue.write(entry_open_html(num))
        append_backlink(note.blocks, num)

        nested = SlidesCompiler(queue, self.syntaxes, self.render, self.ctx.nested())
        nested.visit_blocks(note.blocks)
        queue.write(entry_close_html())
        self.ctx.absorb_stats(nested.ctx)

        inner = nested.ctx.footnote_queue.getvalue()
        if self.render.merge_nested_footnotes:
            self.ctx.footnote_counter = nested.ctx.footnote_counter
            queue.write(inner)
        elif inner:
            logger.warning(f"Footnote {num} contains footnotes; their bodies are dropped")
        logger.debug(f"Queued footnote {num} on slide {self.ctx.slide_index - 1}")


def compile_document(
    doc: Document,
    out: IO[str],
    syntaxes: Optional[SyntaxSet] = None,
    render: Optional[RenderConfig] = None,
) -> CompileContext:
    """Compile *doc* into *out* and return the final context (for statistics)."""
    compiler = SlidesCompiler(out, syntaxes=syntaxes, render=render)
    compiler.walk_document(doc)
    compiler.finish()
    logger.debug(
        f"Compiled {compiler.ctx.slide_index} slide(s), {compiler.ctx.footnote_count} footnote(s), "
        f"{compiler.ctx.dropped_nodes} dropped node(s)"
    )
    return compiler.ctx
