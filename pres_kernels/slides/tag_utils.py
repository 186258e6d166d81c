"""
Wrapper tag resolution.

A Div or Span may stand for a different HTML element. The element is chosen
from its attributes, in order:
- a "tag" key/value pair (removed, its value is the tag), else
- a single class among WRAPPER_TAG_CLASSES (removed, the class is the tag).

A resolved "figure" also receives slot="figure" unless a slot is already set,
so the presentation layout places it in the figure area.
"""

from __future__ import annotations

from typing import Optional

from pres_kernels.slides.models import Attr

WRAPPER_TAG_CLASSES = frozenset({"figure", "details", "summary", "figcaption"})

FIGURE_SLOT = ("slot", "figure")


def ensure_figure_slot(attr: Attr) -> None:
    if attr.key_value("slot") is None:
        attr.attributes.append(FIGURE_SLOT)


def resolve_wrapper_tag(attr: Attr) -> Optional[str]:
    """Return the substituted tag name, or None to keep the default tag.

    Consumes the attribute data that selected the tag.
    """
    tag = None
    for i, (key, value) in enumerate(attr.attributes):
        if key == "tag":
            del attr.attributes[i]
            tag = value
            break
    else:
        if len(attr.classes) == 1 and attr.classes[0] in WRAPPER_TAG_CLASSES:
            tag = attr.classes.pop(0)

    if tag == "figure":
        ensure_figure_slot(attr)

    return tag
