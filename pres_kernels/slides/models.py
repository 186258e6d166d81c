"""
Document tree models for the slides kernel family.

The tree is the pandoc AST: a forest of block-level nodes whose leaves are
inline-level nodes. Each node kind is a small dataclass that maps to exactly
one rendering rule in the compiler. Kinds this module does not know decode
to UnknownBlock / UnknownInline, which the compiler drops.

Deserialization follows the pandoc JSON encoding:
- every element is {"t": <kind>, "c": <content>} ("c" absent for leaf kinds)
- Attr is [identifier, [classes], [[key, value], ...]]
- a document is {"pandoc-api-version": [...], "meta": {...}, "blocks": [...]}
  or, for pandoc < 1.18, [{"unMeta": {...}}, [blocks]]
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Tuple, Union

from pres_kernels.slides.errors import DocumentFormatError


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

@dataclass
class Attr:
    """Identifier, ordered classes, and ordered key/value pairs of a node.

    Keys are not guaranteed unique; lookups return the first match.
    """
    identifier: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[Tuple[str, str]] = field(default_factory=list)

    def key_value(self, key: str) -> Optional[str]:
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @classmethod
    def from_list(cls, c: Any, path: str = "") -> Attr:
        try:
            ident, classes, kvs = c
            return cls(
                identifier=str(ident),
                classes=[str(x) for x in classes],
                attributes=[(str(k), str(v)) for k, v in kvs],
            )
        except (TypeError, ValueError) as e:
            raise DocumentFormatError(f"malformed Attr: {e}", path) from e


# ---------------------------------------------------------------------------
# Inline nodes
# ---------------------------------------------------------------------------

class Inline:
    """Base class of text-level nodes."""


@dataclass
class Str(Inline):
    text: str


@dataclass
class Emph(Inline):
    inlines: List[Inline]


@dataclass
class Strong(Inline):
    inlines: List[Inline]


@dataclass
class Underline(Inline):
    inlines: List[Inline]


@dataclass
class Strikeout(Inline):
    inlines: List[Inline]


@dataclass
class Superscript(Inline):
    inlines: List[Inline]


@dataclass
class Subscript(Inline):
    inlines: List[Inline]


@dataclass
class SmallCaps(Inline):
    inlines: List[Inline]


@dataclass
class Quoted(Inline):
    quote_type: str             # SingleQuote | DoubleQuote
    inlines: List[Inline]


@dataclass
class Cite(Inline):
    citations: Any              # kept opaque, never rendered
    inlines: List[Inline]


@dataclass
class Code(Inline):
    attr: Attr
    text: str


@dataclass
class Space(Inline):
    pass


@dataclass
class SoftBreak(Inline):
    pass


@dataclass
class LineBreak(Inline):
    pass


@dataclass
class Math(Inline):
    math_type: str              # InlineMath | DisplayMath
    text: str


@dataclass
class RawInline(Inline):
    format: str
    text: str


@dataclass
class Link(Inline):
    attr: Attr
    inlines: List[Inline]
    url: str
    title: str = ""


@dataclass
class Image(Inline):
    attr: Attr
    inlines: List[Inline]
    url: str
    title: str = ""


@dataclass
class Note(Inline):
    blocks: List["Block"]


@dataclass
class Span(Inline):
    attr: Attr
    inlines: List[Inline]


@dataclass
class UnknownInline(Inline):
    kind: str
    content: Any = None             # kept opaque, never rendered


# ---------------------------------------------------------------------------
# Block nodes
# ---------------------------------------------------------------------------

class Block:
    """Base class of paragraph-level nodes."""


@dataclass
class Plain(Block):
    inlines: List[Inline]


@dataclass
class Paragraph(Block):
    inlines: List[Inline]


@dataclass
class LineBlock(Block):
    lines: List[List[Inline]]


@dataclass
class CodeBlock(Block):
    attr: Attr
    text: str


@dataclass
class RawBlock(Block):
    format: str
    text: str


@dataclass
class BlockQuote(Block):
    blocks: List[Block]


@dataclass
class OrderedList(Block):
    start: int
    items: List[List[Block]]
    style: str = "DefaultStyle"     # retained, never rendered
    delimiter: str = "DefaultDelim"


@dataclass
class BulletList(Block):
    items: List[List[Block]]


@dataclass
class DefinitionList(Block):
    items: List[Tuple[List[Inline], List[List[Block]]]]


@dataclass
class Header(Block):
    level: int
    attr: Attr
    inlines: List[Inline]


@dataclass
class HorizontalRule(Block):
    pass


@dataclass
class Table(Block):
    content: Any = None             # kept opaque, never rendered


@dataclass
class Div(Block):
    attr: Attr
    blocks: List[Block]


@dataclass
class Figure(Block):
    attr: Attr
    caption: List[Block]            # long caption; the short caption is not rendered
    blocks: List[Block]


@dataclass
class Null(Block):
    pass


@dataclass
class UnknownBlock(Block):
    kind: str
    content: Any = None             # kept opaque, never rendered


@dataclass
class Document:
    """A parsed document: metadata (never rendered) + the block forest."""
    blocks: List[Block]
    meta: Dict[str, Any] = field(default_factory=dict)
    api_version: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, d: Union[Dict[str, Any], List[Any]]) -> Document:
        if isinstance(d, dict):
            if "blocks" not in d:
                raise DocumentFormatError("document has no 'blocks' field")
            return cls(
                blocks=blocks_from_json(d["blocks"], "blocks"),
                meta=d.get("meta", {}),
                api_version=tuple(d.get("pandoc-api-version", ())),
            )
        if isinstance(d, list) and len(d) == 2 and isinstance(d[0], dict):
            return cls(
                blocks=blocks_from_json(d[1], "[1]"),
                meta=d[0].get("unMeta", {}),
            )
        raise DocumentFormatError("unrecognized document envelope")


# ---------------------------------------------------------------------------
# JSON decoding
# ---------------------------------------------------------------------------

def _content(node: Dict[str, Any], path: str) -> Any:
    if "c" not in node:
        raise DocumentFormatError(f"{node.get('t')} node has no content", path)
    return node["c"]


def _tag_of(enum_node: Any) -> str:
    """Pandoc encodes bare enum values as {"t": name}."""
    if isinstance(enum_node, dict):
        return str(enum_node.get("t", ""))
    return str(enum_node)


def _target(c: Any, path: str) -> Tuple[str, str]:
    try:
        url, title = c
    except (TypeError, ValueError) as e:
        raise DocumentFormatError(f"malformed link target: {e}", path) from e
    return str(url), str(title)


_INLINE_WRAPPERS: Dict[str, type] = {
    "Emph": Emph,
    "Underline": Underline,
    "Strong": Strong,
    "Strikeout": Strikeout,
    "Superscript": Superscript,
    "Subscript": Subscript,
    "SmallCaps": SmallCaps,
}

_INLINE_KINDS = frozenset(_INLINE_WRAPPERS) | {
    "Str", "Quoted", "Cite", "Code", "Math", "RawInline", "Link", "Image", "Note", "Span",
}

_BLOCK_KINDS = frozenset({
    "Plain", "Para", "LineBlock", "CodeBlock", "RawBlock", "BlockQuote", "OrderedList",
    "BulletList", "DefinitionList", "Header", "Table", "Figure", "Div",
})


def inline_from_json(node: Any, path: str = "") -> Inline:
    if not isinstance(node, dict) or "t" not in node:
        raise DocumentFormatError("inline node is not a tagged object", path)
    t = node["t"]

    if t == "Space":
        return Space()
    if t == "SoftBreak":
        return SoftBreak()
    if t == "LineBreak":
        return LineBreak()
    if t not in _INLINE_KINDS:
        return UnknownInline(str(t), node.get("c"))

    c = _content(node, path)
    try:
        if t == "Str":
            return Str(str(c))
        if t in _INLINE_WRAPPERS:
            return _INLINE_WRAPPERS[t](inlines_from_json(c, path))
        if t == "Quoted":
            return Quoted(_tag_of(c[0]), inlines_from_json(c[1], f"{path}[1]"))
        if t == "Cite":
            return Cite(c[0], inlines_from_json(c[1], f"{path}[1]"))
        if t == "Code":
            return Code(Attr.from_list(c[0], path), str(c[1]))
        if t == "Math":
            return Math(_tag_of(c[0]), str(c[1]))
        if t == "RawInline":
            return RawInline(_tag_of(c[0]), str(c[1]))
        if t in ("Link", "Image"):
            url, title = _target(c[2], path)
            node_cls = Link if t == "Link" else Image
            return node_cls(
                Attr.from_list(c[0], path),
                inlines_from_json(c[1], f"{path}[1]"),
                url,
                title,
            )
        if t == "Note":
            return Note(blocks_from_json(c, path))
        if t == "Span":
            return Span(Attr.from_list(c[0], path), inlines_from_json(c[1], f"{path}[1]"))
    except (IndexError, KeyError, TypeError) as e:
        raise DocumentFormatError(f"malformed {t} node: {e}", path) from e


def inlines_from_json(nodes: Any, path: str = "") -> List[Inline]:
    if not isinstance(nodes, list):
        raise DocumentFormatError("expected a list of inlines", path)
    return [inline_from_json(n, f"{path}/{i}") for i, n in enumerate(nodes)]


def _block_lists(items: Any, path: str) -> List[List[Block]]:
    if not isinstance(items, list):
        raise DocumentFormatError("expected a list of items", path)
    return [blocks_from_json(item, f"{path}/{i}") for i, item in enumerate(items)]


def block_from_json(node: Any, path: str = "") -> Block:
    if not isinstance(node, dict) or "t" not in node:
        raise DocumentFormatError("block node is not a tagged object", path)
    t = node["t"]

    if t == "HorizontalRule":
        return HorizontalRule()
    if t == "Null":
        return Null()
    if t not in _BLOCK_KINDS:
        return UnknownBlock(str(t), node.get("c"))

    c = _content(node, path)
    try:
        if t == "Plain":
            return Plain(inlines_from_json(c, path))
        if t == "Para":
            return Paragraph(inlines_from_json(c, path))
        if t == "LineBlock":
            return LineBlock([inlines_from_json(line, f"{path}/{i}") for i, line in enumerate(c)])
        if t == "CodeBlock":
            return CodeBlock(Attr.from_list(c[0], path), str(c[1]))
        if t == "RawBlock":
            return RawBlock(_tag_of(c[0]), str(c[1]))
        if t == "BlockQuote":
            return BlockQuote(blocks_from_json(c, path))
        if t == "OrderedList":
            start, style, delim = c[0]
            return OrderedList(
                start=int(start),
                items=_block_lists(c[1], f"{path}[1]"),
                style=_tag_of(style),
                delimiter=_tag_of(delim),
            )
        if t == "BulletList":
            return BulletList(_block_lists(c, path))
        if t == "DefinitionList":
            return DefinitionList([
                (inlines_from_json(term, f"{path}/{i}"), _block_lists(defs, f"{path}/{i}"))
                for i, (term, defs) in enumerate(c)
            ])
        if t == "Header":
            return Header(int(c[0]), Attr.from_list(c[1], path), inlines_from_json(c[2], f"{path}[2]"))
        if t == "Table":
            return Table(c)
        if t == "Figure":
            caption = c[1][1] if c[1] else []
            return Figure(
                Attr.from_list(c[0], path),
                blocks_from_json(caption, f"{path}[1]"),
                blocks_from_json(c[2], f"{path}[2]"),
            )
        if t == "Div":
            return Div(Attr.from_list(c[0], path), blocks_from_json(c[1], f"{path}[1]"))
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise DocumentFormatError(f"malformed {t} node: {e}", path) from e


def blocks_from_json(nodes: Any, path: str = "") -> List[Block]:
    if not isinstance(nodes, list):
        raise DocumentFormatError("expected a list of blocks", path)
    return [block_from_json(n, f"{path}/{i}") for i, n in enumerate(nodes)]


def load_document(source: Union[str, bytes, IO[str], IO[bytes]]) -> Document:
    """Read a whole pandoc JSON document from text, bytes, or a stream."""
    if hasattr(source, "read"):
        source = source.read()
    try:
        raw = json.loads(source)
    except json.JSONDecodeError as e:
        raise DocumentFormatError(f"invalid JSON: {e}") from e
    return Document.from_dict(raw)
