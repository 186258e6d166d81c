"""
Syntax highlighting of code blocks with Pygments.

The lexer registry plays the role of a read-only syntax bundle looked up by
short token ("python", "rust", "sh", ...). Highlighted markup uses classed
spans named after the token type hierarchy, so the stylesheet produced by
theme_css can address them:

    <span class="source python"><span class="keyword">def</span> ...</span>

Token.Keyword.Constant becomes class="keyword constant"; plain text tokens
are written without a span. All token text is escaped here; callers must
not escape the result again.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from pygments import highlight
from pygments.formatter import Formatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import Text, _TokenType
from pygments.util import ClassNotFound

from pres_kernels.slides.escape_utils import escape_text

logger = logging.getLogger(__name__)


class SyntaxSet:
    """Lookup-by-token over the Pygments lexer registry, with a per-instance cache."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._cache: Dict[str, Optional[Lexer]] = {}

    def find_syntax_by_token(self, token: str) -> Optional[Lexer]:
        if not self.enabled or not token:
            return None
        if token not in self._cache:
            try:
                # keep leading/trailing newlines exactly as in the source
                self._cache[token] = get_lexer_by_name(token, stripnl=False, ensurenl=False)
            except ClassNotFound:
                logger.debug(f"No lexer for code class {token!r}")
                self._cache[token] = None
        return self._cache[token]


def token_classes(ttype: _TokenType) -> str:
    """Token.Name.Function -> 'name function'."""
    return " ".join(part.lower() for part in ttype)


class ClassedHTMLFormatter(Formatter):
    """Pygments formatter writing one classed span per token.

    The whole body is wrapped in <span class="source SCOPE">. Token text is
    written unchanged apart from escaping, so the output has exactly the
    line breaks of the input.
    """

    name = "Classed HTML"
    aliases: List[str] = []

    def __init__(self, **options):
        super().__init__(**options)
        self.scope = options.get("scope", "")

    def format(self, tokensource, outfile):
        outfile.write(f'<span class="source {escape_text(self.scope)}">')
        for ttype, value in tokensource:
            if not value:
                continue
            if not ttype or ttype in Text:
                outfile.write(escape_text(value))
            else:
                outfile.write(f'<span class="{token_classes(ttype)}">{escape_text(value)}</span>')
        outfile.write("</span>")


def lexer_scope(lexer: Lexer) -> str:
    return lexer.aliases[0] if lexer.aliases else lexer.name.lower()


def highlight_code(classes: Sequence[str], text: str, syntaxes: SyntaxSet) -> Tuple[str, bool]:
    """Render the body of a code block.

    The syntax is looked up by the first class only. Returns the HTML and
    whether a lexer was used; on a miss the text is just escaped.
    """
    lexer = syntaxes.find_syntax_by_token(classes[0]) if classes else None
    if lexer is None:
        return escape_text(text), False

    return highlight(text, lexer, ClassedHTMLFormatter(scope=lexer_scope(lexer))), True
