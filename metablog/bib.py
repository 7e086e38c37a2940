"""Minimal BibTeX reader producing reference entries."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable

from metablog.nodes import ReferenceEntry

_SPACE = " \t\r\n"
_WS_RE = re.compile(r"[ \t\n\f\r]+")
_COMMAND_RE = re.compile(r"\\[a-zA-Z]+\*?(?:[ \t\n\f\r]*\{([^{}]*)\})?")

# Earlier pairs win when several match at the same position.
_REPLACEMENTS = [
    ('{\\"{u}}', "u"),
    ('{\\"u}', "u"),
    ('{\\"{U}}', "U"),
    ('{\\"U}', "U"),
    ("{\\ss}", "ss"),
    ("\\ss", "ss"),
    ("{-}", "-"),
    ("{--}", "--"),
    ("``", '"'),
    ("''", '"'),
    ("{", ""),
    ("}", ""),
]
_REPLACE_MAP = dict(_REPLACEMENTS)
_REPLACE_RE = re.compile("|".join(re.escape(old) for old, _ in _REPLACEMENTS))


def _is_name_char(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9") or ch in "_-:"


def _extension(path: str) -> str:
    base = re.split(r"[\\/]", path)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def load(root: str, files: Iterable[str], warnings: list[str] | None = None) -> dict[str, ReferenceEntry]:
    """Read the named bibliography files; unreadable ones are noted in ``warnings``."""
    out: dict[str, ReferenceEntry] = {}
    for name in files:
        name = name.strip()
        if not name:
            continue
        path = name
        if not _extension(path):
            path += ".bib"
        if not os.path.isabs(path):
            path = os.path.join(root, path)
        try:
            with open(path, "rb") as fh:
                text = fh.read().decode("utf-8", errors="replace")
        except OSError:
            if warnings is not None:
                warnings.append("could not read bibliography: " + path)
            continue
        out.update(parse(text))
    return out


def parse(text: str) -> dict[str, ReferenceEntry]:
    """Parse BibTeX text into entries keyed by citation key."""
    out: dict[str, ReferenceEntry] = {}
    n = len(text)
    i = 0
    while i < n:
        at = text.find("@", i)
        if at < 0:
            break
        i = at
        j = i + 1
        while j < n and _is_name_char(text[j]):
            j += 1
        entry_type = text[i + 1 : j].strip().lower()
        while j < n and text[j] in _SPACE:
            j += 1
        if j >= n or text[j] not in "{(":
            i = j
            continue
        opener = text[j]
        closer = ")" if opener == "(" else "}"
        found = _read_balanced(text, j, opener, closer)
        if found is None:
            i = j + 1
            continue
        body, end = found
        key, fields = _parse_entry_body(body)
        if key:
            out[key] = ReferenceEntry(key=key, type=entry_type, fields=fields)
        i = end
    return out


def _parse_entry_body(body: str) -> tuple[str, dict[str, str]]:
    comma = body.find(",")
    if comma < 0:
        return body.strip(), {}
    key = body[:comma].strip()
    fields: dict[str, str] = {}
    n = len(body)
    i = comma + 1
    while i < n:
        while i < n and (body[i] in _SPACE or body[i] == ","):
            i += 1
        start = i
        while i < n and _is_name_char(body[i]):
            i += 1
        if start == i:
            break
        name = body[start:i].strip().lower()
        while i < n and body[i] in _SPACE:
            i += 1
        if i >= n or body[i] != "=":
            break
        i += 1
        while i < n and body[i] in _SPACE:
            i += 1
        value, i = _read_value(body, i)
        if name:
            fields[name] = clean_tex(value)
    return key, fields


def _read_value(s: str, i: int) -> tuple[str, int]:
    n = len(s)
    if i >= n:
        return "", i
    if s[i] == "{":
        found = _read_balanced(s, i, "{", "}")
        if found is not None:
            return found
    if s[i] == '"':
        parts: list[str] = []
        j = i + 1
        while j < n:
            if s[j] == "\\" and j + 1 < n:
                parts.append(s[j : j + 2])
                j += 2
                continue
            if s[j] == '"':
                return "".join(parts), j + 1
            parts.append(s[j])
            j += 1
        return "".join(parts), n
    start = i
    while i < n and s[i] not in ",\n\r":
        i += 1
    return s[start:i].strip(), i


def _read_balanced(s: str, start: int, opener: str, closer: str) -> tuple[str, int] | None:
    depth = 0
    n = len(s)
    i = start
    while i < n:
        ch = s[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == opener:
            depth += 1
        if ch == closer:
            depth -= 1
            if depth == 0:
                return s[start + 1 : i], i + 1
        i += 1
    return None


def clean_tex(text: str) -> str:
    """Strip TeX markup from a field value, leaving readable text."""
    text = _REPLACE_RE.sub(lambda m: _REPLACE_MAP[m.group(0)], text)
    text = _COMMAND_RE.sub(lambda m: m.group(1) or "", text)
    text = text.replace("\n", " ")
    return _WS_RE.sub(" ", text).strip()