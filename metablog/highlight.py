"""Syntax highlighting of code blocks into class-based HTML."""

from __future__ import annotations

import re
from functools import lru_cache

from pygments import lex
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound

CSS_PREFIX = "ch"
"""Prefix of the CSS classes used in highlighted HTML and the theme rules."""

DEFAULT_THEME = "monokai"
"""Style used for the generated theme CSS."""

_WRAPPER_CLASS = CSS_PREFIX + "chroma"
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")

_LANGUAGE_ALIASES = {
    "c++": "C++",
    "cpp": "C++",
    "cxx": "C++",
    "c#": "C#",
    "csharp": "C#",
    "f#": "F#",
    "fsharp": "F#",
    "objective-c": "Objective-C",
    "vb.net": "vb.net",
    "vbnet": "vb.net",
    "js": "JavaScript",
    "javascript": "JavaScript",
    "ts": "TypeScript",
    "typescript": "TypeScript",
    "bash": "Bash",
    "sh": "Bash",
    "powershell": "PowerShell",
    "ps1": "PowerShell",
    "html": "HTML",
    "css": "CSS",
    "sql": "SQL",
    "yaml": "YAML",
    "json": "JSON",
    "xml": "XML",
    "makefile": "Makefile",
    "make": "Makefile",
    "dockerfile": "Dockerfile",
    "docker": "Dockerfile",
}


@lru_cache(maxsize=1)
def _formatter() -> HtmlFormatter:
    return HtmlFormatter(
        style=DEFAULT_THEME,
        classprefix=CSS_PREFIX,
        cssclass=_WRAPPER_CLASS,
        nowrap=True,
    )


def normalize_language(lang: str) -> str:
    """Map common LaTeX-style language names to canonical lexer names."""
    lang = lang.strip()
    return _LANGUAGE_ALIASES.get(lang.lower(), lang)


def _lexer_for_language(language: str) -> Lexer | None:
    normalized = normalize_language(language)
    if not normalized:
        return None
    lower = normalized.lower()
    for name in (normalized, lower):
        try:
            return get_lexer_by_name(name, stripnl=False)
        except ClassNotFound:
            pass
    for name in (normalized, lower):
        try:
            return get_lexer_for_filename(name, stripnl=False)
        except ClassNotFound:
            pass
    return None


def highlight(code: str, language: str) -> str:
    """Highlighted HTML for ``code``, without any enclosing pre or code element.

    Unknown languages are rendered as plain, escaped text.
    """
    if not code:
        return ""
    lexer = _lexer_for_language(language) or TextLexer(stripnl=False)
    formatted = _formatter().format(lex(code, lexer), None) if False else _format(code, lexer)
    return "".join(
        f'<span class="{CSS_PREFIX}line"><span class="{CSS_PREFIX}cl">{line}</span></span>'
        for line in _LINE_RE.findall(formatted)
    )


def _format(code: str, lexer: Lexer) -> str:
    from io import StringIO

    out = StringIO()
    _formatter().format(lex(code, lexer), out)
    return out.getvalue()


def theme_css() -> str:
    """CSS rules of the default theme, scoped with the class prefix."""
    scope = "." + _WRAPPER_CLASS
    rules = _formatter().get_style_defs(scope)
    return (
        rules
        + f"\n{scope} .{CSS_PREFIX}line {{ display: flex; }}"
        + f"\n{scope} .{CSS_PREFIX}cl {{ white-space: pre; }}\n"
    )