"""Markdown and source-code rendering for READMEs, issue bodies and file views."""

from functools import lru_cache

import markdown  # Python-Markdown
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "codehilite", "toc"]


def render_markdown(text: str) -> str:
    return markdown.markdown(
        text,
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs={"codehilite": {"css_class": "highlight", "guess_lang": False}},
    )


def highlight_code(code: str, filename: str = "") -> str:
    """Highlight *code* with a lexer picked from *filename*, plain text if unknown."""
    try:
        lexer = get_lexer_for_filename(filename, stripall=False)
    except ClassNotFound:
        lexer = TextLexer(stripall=False)
    return highlight(code, lexer, HtmlFormatter(nowrap=False))


@lru_cache(maxsize=1)
def stylesheet() -> str:
    return HtmlFormatter().get_style_defs(".highlight")
