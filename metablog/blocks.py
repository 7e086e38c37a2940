"""Lift complex LaTeX environments out of the text as placeholder blocks."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field

from metablog.lexer import Kind, Token, command_name_at, find_command, is_command_at, tokenize

_RAW_PROTECTED = frozenset({"verbatim", "lstlisting", "minted", "html"})
_COMPLEX = frozenset({"tabular", "tabularx", "algorithm", "algorithm*"})
_SPACE = " \n\r\t"


@dataclass
class ComplexBlock:
    """An environment taken out of the text, with its caption and label."""

    id: str
    env_name: str
    raw_tex: str
    html: str = ""
    caption: str = ""
    label: str = ""


@dataclass
class LiftResult:
    """Text with placeholders, and the lifted blocks keyed by placeholder id."""

    text: str
    blocks: dict[str, ComplexBlock] = field(default_factory=dict)


def lift(s: str) -> LiftResult:
    """Replace complex environments with placeholder lines, leaving raw ones intact."""
    parts: list[str] = []
    blocks: dict[str, ComplexBlock] = {}
    i = 0
    while i < len(s):
        found = _next_begin(s, i)
        if found is None:
            parts.append(s[i:])
            break
        start, env, end = found
        if env not in _RAW_PROTECTED and env not in _COMPLEX:
            parts.append(s[i:end])
            i = end
            continue
        raw_end = _find_environment_end(s, start, env)
        if raw_end is None:
            parts.append(s[i:end])
            i = end
            continue
        if env in _RAW_PROTECTED:
            parts.append(s[i:raw_end])
            i = raw_end
            continue
        parts.append(s[i:start])
        block_id = f"@@METABLOG_COMPLEX_BLOCK_{len(blocks) + 1:04d}@@"
        raw = s[start:raw_end]
        caption, label = _complex_metadata(raw)
        blocks[block_id] = ComplexBlock(
            id=block_id, env_name=env, raw_tex=raw, caption=caption, label=label
        )
        parts.append("\n" + block_id + "\n")
        i = raw_end
    return LiftResult(text="".join(parts), blocks=blocks)


def first_command_arg(s: str, cmd: str) -> str:
    """Mandatory argument of the first ``\\cmd`` in ``s``, stripped; "" if absent."""
    idx = find_command(s, 0, cmd)
    if idx < 0:
        return ""
    i = _skip_whitespace(s, idx + len(cmd) + 1)
    if i < len(s) and s[i] == "[":
        found = _read_balanced(s, i, "[", "]")
        if found is not None:
            i = found[1]
    i = _skip_whitespace(s, i)
    if i >= len(s) or s[i] != "{":
        return ""
    found = _read_balanced(s, i, "{", "}")
    if found is None:
        return ""
    return found[0].strip()


def _complex_metadata(raw: str) -> tuple[str, str]:
    tokens = tokenize(raw)
    caption = ""
    label = ""
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind is Kind.EOF:
            break
        jump: int | None = None
        if tok.kind is Kind.LBRACE:
            group = _read_token_group_at(raw, tokens, tok.start, Kind.LBRACE, Kind.RBRACE)
            if group is not None:
                jump = group[1]
        elif tok.kind is Kind.LBRACKET:
            group = _read_token_group_at(raw, tokens, tok.start, Kind.LBRACKET, Kind.RBRACKET)
            if group is not None:
                jump = group[1]
        elif tok.kind is Kind.COMMAND:
            if tok.value == "begin" and tok.start != 0:
                begin = _read_begin_at(raw, tok.start)
                if begin is not None:
                    jump = _find_environment_end(raw, tok.start, begin[0])
            if jump is None:
                if tok.value in ("caption", "label"):
                    arg = _read_command_arg_at(raw, tokens, tok.start, tok.value)
                    if arg is not None:
                        text, jump = arg
                        if tok.value == "caption" and not caption:
                            caption = text.strip()
                        elif tok.value == "label" and not label:
                            label = text.strip()
                else:
                    end, moved = _skip_command_args(raw, tokens, tok.end)
                    if moved:
                        jump = end
        i = _token_index_at(tokens, jump) if jump is not None else i + 1
    return caption, label


def _find_environment_end(s: str, start: int, env: str) -> int | None:
    depth = 0
    n = len(s)
    i = start
    while i < n:
        found = _read_begin_end_at(s, i)
        if found is None:
            if s[i] == "\\":
                command = command_name_at(s, i)
                i = command[1] if command is not None else i + 2
                continue
            i += 1
            continue
        kind, name, end = found
        if name == env:
            if kind == "begin":
                depth += 1
            else:
                depth -= 1
                if depth == 0:
                    return end
        i = end
    return None


def _read_command_arg_at(s: str, tokens: list[Token], idx: int, cmd: str) -> tuple[str, int] | None:
    tok_idx = _token_index_at(tokens, idx)
    if tok_idx >= len(tokens):
        return None
    tok = tokens[tok_idx]
    if tok.start != idx or tok.kind is not Kind.COMMAND or tok.value != cmd:
        return None
    i = _skip_whitespace(s, tok.end)
    if i < len(s) and s[i] == "[":
        group = _read_token_group_at(s, tokens, i, Kind.LBRACKET, Kind.RBRACKET)
        if group is not None:
            i = _skip_whitespace(s, group[1])
    if i >= len(s) or s[i] != "{":
        return None
    return _read_token_group_at(s, tokens, i, Kind.LBRACE, Kind.RBRACE)


def _skip_command_args(s: str, tokens: list[Token], pos: int) -> tuple[int, bool]:
    i = _skip_whitespace(s, pos)
    moved = False
    while i < len(s) and s[i] == "[":
        group = _read_token_group_at(s, tokens, i, Kind.LBRACKET, Kind.RBRACKET)
        if group is None:
            return i, moved
        i = _skip_whitespace(s, group[1])
        moved = True
    if i < len(s) and s[i] == "{":
        group = _read_token_group_at(s, tokens, i, Kind.LBRACE, Kind.RBRACE)
        if group is not None:
            i = group[1]
            moved = True
    return i, moved


def _read_begin_at(s: str, i: int) -> tuple[str, int] | None:
    if not is_command_at(s, i, "begin"):
        return None
    j = _skip_whitespace(s, i + len("\\begin"))
    if j >= len(s) or s[j] != "{":
        return None
    return _read_balanced(s, j, "{", "}")


def _token_index_at(tokens: list[Token], pos: int) -> int:
    if not tokens:
        return 0
    idx = bisect.bisect_left(tokens, True, key=lambda t: t.kind is Kind.EOF or t.end > pos)
    return idx if idx < len(tokens) else len(tokens) - 1


def _read_token_group_at(
    s: str, tokens: list[Token], pos: int, opener: Kind, closer: Kind
) -> tuple[str, int] | None:
    idx = _token_index_at(tokens, pos)
    if idx >= len(tokens) or tokens[idx].start != pos or tokens[idx].kind is not opener:
        return None
    start = tokens[idx].end
    if opener is Kind.LBRACE:
        depth = 1
        for tok in tokens[idx + 1 :]:
            if tok.kind is Kind.LBRACE:
                depth += 1
            elif tok.kind is Kind.RBRACE:
                depth -= 1
                if depth == 0:
                    return s[start : tok.start], tok.end
            elif tok.kind is Kind.EOF:
                return None
        return None
    if opener is not Kind.LBRACKET or closer is not Kind.RBRACKET:
        return None
    brace_depth = 0
    bracket_depth = 1
    for tok in tokens[idx + 1 :]:
        if tok.kind is Kind.LBRACE:
            brace_depth += 1
        elif tok.kind is Kind.RBRACE:
            if brace_depth > 0:
                brace_depth -= 1
        elif tok.kind is Kind.LBRACKET:
            if brace_depth == 0:
                bracket_depth += 1
        elif tok.kind is Kind.RBRACKET:
            if brace_depth == 0:
                bracket_depth -= 1
                if bracket_depth == 0:
                    return s[start : tok.start], tok.end
        elif tok.kind is Kind.EOF:
            return None
    return None


def _next_begin(s: str, start: int) -> tuple[int, str, int] | None:
    n = len(s)
    i = start
    while i < n:
        found = _read_begin_end_at(s, i)
        if found is not None and found[0] == "begin":
            return i, found[1], found[2]
        if s[i] == "\\":
            command = command_name_at(s, i)
            i = command[1] if command is not None else i + 2
            continue
        i += 1
    return None


def _skip_whitespace(s: str, i: int) -> int:
    while i < len(s) and s[i] in _SPACE:
        i += 1
    return i


def _read_begin_end_at(s: str, i: int) -> tuple[str, str, int] | None:
    if is_command_at(s, i, "begin"):
        kind = "begin"
    elif is_command_at(s, i, "end"):
        kind = "end"
    else:
        return None
    j = _skip_whitespace(s, i + len(kind) + 1)
    if j >= len(s) or s[j] != "{":
        return None
    found = _read_balanced(s, j, "{", "}")
    if found is None:
        return None
    return kind, found[0], found[1]


def _read_balanced(s: str, start: int, opener: str, closer: str) -> tuple[str, int] | None:
    if start >= len(s) or s[start] != opener:
        return None
    depth = 0
    i = start
    while i < len(s):
        ch = s[i]
        if ch == "\\":
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