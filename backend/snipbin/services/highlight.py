"""
SnipBin Backend — Syntax Highlighting
======================================

What:  Wraps Pygments to turn document content into highlighted HTML plus
       the stylesheet it needs.

Lexer selection, in order:
    1. the extension hint as a lexer alias (`py`, `go`, `rust`)
    2. the extension hint as a filename pattern (`x.tsx`, `x.yml`)
    3. content sniffing (`guess_lexer`)
    4. plain text
"""

import logging
from typing import Tuple

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import (
    TextLexer,
    get_lexer_by_name,
    get_lexer_for_filename,
    guess_lexer,
)
from pygments.util import ClassNotFound

from snipbin.exceptions import RenderFailedError

logger = logging.getLogger(__name__)


def select_lexer(content: str, extension: str) -> Lexer:
    if extension:
        try:
            return get_lexer_by_name(extension)
        except ClassNotFound:
            pass
        try:
            return get_lexer_for_filename(f"document.{extension}", code=content)
        except ClassNotFound:
            pass
    try:
        return guess_lexer(content)
    except ClassNotFound:
        return TextLexer()


class Highlighter:
    """Pygments highlighter bound to one style."""

    CSS_CLASS = "highlight"

    def __init__(self, style: str = "monokai"):
        self.style = style

    def highlight(self, content: str, extension: str = "") -> Tuple[str, str]:
        """
        Highlight `content` using `extension` as a language hint.

        Returns:
            (highlighted HTML, stylesheet CSS)

        Raises:
            RenderFailedError: unknown style or a lexer/formatter failure
        """
        try:
            lexer = select_lexer(content, extension)
            formatter = HtmlFormatter(
                style=self.style,
                cssclass=self.CSS_CLASS,
                linenos="table",
            )
            html = pygments_highlight(content, lexer, formatter)
            css = formatter.get_style_defs(f".{self.CSS_CLASS}")
        except Exception as e:
            logger.error("Highlighting failed (extension=%r): %s", extension, e)
            raise RenderFailedError(
                message="Could not highlight document",
                context={"extension": extension, "error_type": type(e).__name__},
            ) from e

        return html, css
