"""
Slides Kernels — pandoc document tree to <pres-slide> HTML

Compiles the JSON AST produced by pandoc into HTML for a custom-element
slide framework:
- every level-1 header starts a <pres-slide>
- footnotes are numbered per document and listed at the end of their slide
- Div/Span wrappers become figure/details/summary/figcaption via attributes
- code blocks are highlighted with Pygments

Kernels (stage 3, rendering):
    slides_html_render:  pandoc JSON + page template -> slides HTML
    slides_theme_css:    color theme JSON -> code highlighting stylesheet

CLI:
    slidesctl compile | theme | render
"""

__version__ = "0.1.0"

__all__ = []
