"""Tokenizer for LaTeX source that keeps byte spans and protects raw regions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

_RAW_ENVIRONMENTS = frozenset({"verbatim", "lstlisting", "minted", "html"})
_SPECIAL = frozenset("\\%{}[]$")
_SPACE = " \t\r\n"


class Kind(Enum):
    """Kind of a lexical token."""

    TEXT = auto()
    COMMAND = auto()
    COMMENT = auto()
    RAW = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    DOLLAR = auto()
    EOF = auto()


_PUNCTUATION = {
    "{": Kind.LBRACE,
    "}": Kind.RBRACE,
    "[": Kind.LBRACKET,
    "]": Kind.RBRACKET,
    "$": Kind.DOLLAR,
}


@dataclass(frozen=True)
class Token:
    """A token with its text and its span ``[start, end)`` in the source."""

    kind: Kind
    value: str
    start: int
    end: int


def _is_letter(ch: str) -> bool:
    return ("A" <= ch <= "Z") or ("a" <= ch <= "z")


def tokenize(s: str) -> list[Token]:
    """Split ``s`` into tokens, always ending with an EOF token."""
    out: list[Token] = []
    n = len(s)
    i = 0
    while i < n:
        raw_end = _raw_environment_end(s, i)
        if raw_end is None:
            raw_end = _verb_command_end(s, i)
        if raw_end is not None:
            out.append(Token(Kind.RAW, s[i:raw_end], i, raw_end))
            i = raw_end
            continue
        ch = s[i]
        if ch == "\\":
            start = i
            i += 1
            if i < n and _is_letter(s[i]):
                while i < n and _is_letter(s[i]):
                    i += 1
            elif i < n:
                i += 1
            out.append(Token(Kind.COMMAND, s[start + 1 : i], start, i))
        elif ch == "%":
            start = i
            while i < n and s[i] not in "\n\r":
                i += 1
            out.append(Token(Kind.COMMENT, s[start:i], start, i))
        elif ch in _PUNCTUATION:
            out.append(Token(_PUNCTUATION[ch], ch, i, i + 1))
            i += 1
        else:
            start = i
            while i < n and s[i] not in _SPECIAL:
                i += 1
            out.append(Token(Kind.TEXT, s[start:i], start, i))
    out.append(Token(Kind.EOF, "", n, n))
    return out


def command_name_at(s: str, i: int) -> tuple[str, int] | None:
    """Return the control word at ``i`` and the index after it, or None."""
    n = len(s)
    if i >= n or s[i] != "\\":
        return None
    j = i + 1
    if j >= n or not _is_letter(s[j]):
        return None
    while j < n and _is_letter(s[j]):
        j += 1
    return s[i + 1 : j], j


def is_command_at(s: str, i: int, cmd: str) -> bool:
    """Whether the control word ``\\cmd`` (and no longer word) starts at ``i``."""
    found = command_name_at(s, i)
    return found is not None and found[0] == cmd


def find_any_command(s: str, start: int, *cmds: str) -> tuple[int, str]:
    """Find the first of ``cmds`` from ``start``; ``(-1, "")`` if none occurs."""
    wanted = set(cmds)
    n = len(s)
    i = start
    while i < n:
        if s[i] != "\\":
            i += 1
            continue
        found = command_name_at(s, i)
        if found is None:
            i += 2
            continue
        name, end = found
        if name in wanted:
            return i, name
        i = end
    return -1, ""


def find_command(s: str, start: int, cmd: str) -> int:
    """Index of the first ``\\cmd`` at or after ``start``, or -1."""
    return find_any_command(s, start, cmd)[0]


def _raw_environment_end(s: str, i: int) -> int | None:
    found = _begin_environment_at(s, i)
    if found is None:
        return None
    env, begin_end = found
    if env not in _RAW_ENVIRONMENTS:
        return None
    end = _find_raw_environment_close(s, begin_end, env)
    return len(s) if end is None else end


def _begin_environment_at(s: str, i: int) -> tuple[str, int] | None:
    if not is_command_at(s, i, "begin"):
        return None
    return _braced_name(s, i + len("\\begin"))


def _braced_name(s: str, j: int) -> tuple[str, int] | None:
    n = len(s)
    while j < n and s[j] in _SPACE:
        j += 1
    if j >= n or s[j] != "{":
        return None
    close = s.find("}", j + 1)
    if close < 0:
        return None
    return s[j + 1 : close], close + 1


def _find_raw_environment_close(s: str, start: int, env: str) -> int | None:
    depth = 1
    n = len(s)
    i = start
    while i < n:
        if s[i] != "\\" or _is_escaped_at(s, i):
            i += 1
            continue
        found = _environment_command_at(s, i)
        if found is None:
            command = command_name_at(s, i)
            i = command[1] if command is not None else i + 1
            continue
        cmd, name, end = found
        if name == env:
            if cmd == "begin":
                depth += 1
            else:
                depth -= 1
                if depth == 0:
                    return end
        i = end
    return None


def _environment_command_at(s: str, i: int) -> tuple[str, str, int] | None:
    command = command_name_at(s, i)
    if command is None or command[0] not in ("begin", "end"):
        return None
    found = _braced_name(s, command[1])
    if found is None:
        return None
    return command[0], found[0], found[1]


def _verb_command_end(s: str, i: int) -> int | None:
    if not is_command_at(s, i, "verb"):
        return None
    n = len(s)
    j = i + len("\\verb")
    if j < n and s[j] == "*":
        j += 1
    if j >= n or s[j] in _SPACE:
        return None
    closer = "}" if s[j] == "{" else s[j]
    j += 1
    while j < n:
        if s[j] == closer:
            return j + 1
        if s[j] in "\n\r":
            return None
        j += 1
    return n


def _is_escaped_at(s: str, idx: int) -> bool:
    count = 0
    i = idx - 1
    while i >= 0 and s[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1