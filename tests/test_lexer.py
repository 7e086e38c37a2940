from metablog.lexer import (
    Kind,
    Token,
    command_name_at,
    find_any_command,
    find_command,
    is_command_at,
    tokenize,
)


def test_command_name_uses_tex_letter_boundary():
    assert not is_command_at(r"\citep{key}", 0, "cite")
    assert is_command_at(r"\cite{key}", 0, "cite")
    assert not is_command_at(r"\includegraphics{a}", 0, "include")


def test_project_command_names_use_standard_control_words():
    assert is_command_at(r"\defInstitution{cse}{School}", 0, "defInstitution")
    assert not is_command_at(r"\defInstitutionMore{cse}{School}", 0, "defInstitution")
    assert not is_command_at(r"\def_institution{cse}{School}", 0, "def_institution")


def test_tokenize_preserves_spans():
    tokens = tokenize(r"a \textbf{x}")
    assert len(tokens) >= 5
    assert tokens[1].kind is Kind.COMMAND
    assert tokens[1].value == "textbf"
    assert tokens[1].start == 2
    assert tokens[-1].kind is Kind.EOF


def test_tokenize_comments():
    tokens = tokenize("A % comment\nB")
    assert len(tokens) >= 4
    assert tokens[1].kind is Kind.COMMENT
    assert tokens[1].value == "% comment"


def test_tokenize_protects_raw_environments():
    text = "\\begin{lstlisting}\n100% stays\n\\input{hidden}\n\\end{lstlisting}\nAfter"
    tokens = tokenize(text)
    assert len(tokens) >= 3
    assert tokens[0].kind is Kind.RAW
    assert tokens[0].value.startswith(r"\begin{lstlisting}")


def test_tokenize_protects_nested_same_name_raw_environments():
    text = (
        "\\begin{minted}{latex}\n\\begin{minted}{go}\nfmt.Println(\"hi\")\n"
        "\\end{minted}\nafter inner\n\\end{minted}\nAfter"
    )
    tokens = tokenize(text)
    assert len(tokens) >= 3
    assert tokens[0].kind is Kind.RAW
    for want in (r"\begin{minted}{go}", 'fmt.Println("hi")', r"\end{minted}", "after inner"):
        assert want in tokens[0].value
    assert "After" not in tokens[0].value


def test_tokenize_protects_html_environment():
    text = (
        "\\begin{html}\n<div data-tex=\"\\section{Not A Section}\">100% stays</div>\n"
        "\\end{html}\nAfter"
    )
    tokens = tokenize(text)
    assert len(tokens) >= 3
    assert tokens[0].kind is Kind.RAW
    assert r"\section{Not A Section}" in tokens[0].value
    assert "100% stays" in tokens[0].value


def test_tokenize_protects_verb_command():
    tokens = tokenize(r"Before \verb|100% \input{x}| after")
    assert any(t.kind is Kind.RAW and t.value == r"\verb|100% \input{x}|" for t in tokens)
    assert all(t.kind is not Kind.COMMENT for t in tokens)


def test_tokenize_verb_with_braces():
    tokens = tokenize(r"\verb{a%b} c")
    assert tokens[0] == Token(Kind.RAW, r"\verb{a%b}", 0, 10)
    assert tokens[1] == Token(Kind.TEXT, " c", 10, 12)


def test_tokenize_verb_broken_by_newline_is_a_command():
    tokens = tokenize("\\verb|a\nb|")
    assert tokens[0] == Token(Kind.COMMAND, "verb", 0, 5)


def test_tokenize_unterminated_raw_environment_runs_to_end():
    text = r"\begin{verbatim} x %y"
    tokens = tokenize(text)
    assert tokens == [Token(Kind.RAW, text, 0, len(text)), Token(Kind.EOF, "", len(text), len(text))]


def test_tokenize_control_symbol_and_punctuation():
    tokens = tokenize(r"\%{[]}$")
    assert [t.kind for t in tokens] == [
        Kind.COMMAND,
        Kind.LBRACE,
        Kind.LBRACKET,
        Kind.RBRACKET,
        Kind.RBRACE,
        Kind.DOLLAR,
        Kind.EOF,
    ]
    assert tokens[0] == Token(Kind.COMMAND, "%", 0, 2)


def test_tokenize_trailing_backslash():
    assert tokenize("\\") == [Token(Kind.COMMAND, "", 0, 1), Token(Kind.EOF, "", 1, 1)]


def test_tokenize_empty_string():
    assert tokenize("") == [Token(Kind.EOF, "", 0, 0)]


def test_command_name_at():
    assert command_name_at(r"x \label{a}", 2) == ("label", 8)
    assert command_name_at(r"\%", 0) is None
    assert command_name_at("abc", 0) is None


def test_find_command_respects_boundaries_and_escapes():
    assert find_command(r"a \citep{x} \cite{y}", 0, "cite") == 12
    assert find_command(r"\\cite{x}", 0, "cite") == -1
    assert find_command(r"a \cite{x}", 3, "cite") == -1


def test_find_any_command_returns_first_match():
    assert find_any_command(r"x \ref{a} \cite{b}", 0, "cite", "ref") == (2, "ref")
    assert find_any_command(r"x \ref{a} \cite{b}", 3, "cite", "ref") == (10, "cite")
    assert find_any_command("plain text", 0, "cite") == (-1, "")