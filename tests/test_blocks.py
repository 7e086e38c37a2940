from metablog.blocks import first_command_arg, lift


def test_lift_extracts_complex_metadata_with_token_boundaries():
    res = lift(
        "Before.\n\n\\begin{algorithm}\n"
        "\\caption{Main caption mentioning \\label{not:block}}\n"
        "\\begin{tabular}{c}\n\\label{not:block:either}\nx\n\\end{tabular}\n"
        "\\label{alg:real}\n\\end{algorithm}\n\nAfter."
    )
    assert len(res.blocks) == 1
    (block,) = res.blocks.values()
    assert block.caption == r"Main caption mentioning \label{not:block}"
    assert block.label == "alg:real"
    assert block.env_name == "algorithm"


def test_lift_does_not_extract_complex_blocks_inside_raw_text_environments():
    text = (
        "Before.\n\n\\begin{minted}{latex}\n\\begin{algorithm}\n"
        "\\caption{This is code, not a real algorithm block}\n\\end{algorithm}\n"
        "\\end{minted}\n\n\\begin{lstlisting}\n\\begin{tabular}{c}\nx\n\\end{tabular}\n"
        "\\end{lstlisting}\n\n\\begin{html}\n<pre>\\begin{algorithm}\\end{algorithm}</pre>\n"
        "\\end{html}\n\nAfter."
    )
    res = lift(text)
    assert res.blocks == {}
    assert r"\begin{algorithm}" in res.text
    assert "@@METABLOG_COMPLEX_BLOCK_" not in res.text
    assert res.text == text


def test_lift_replaces_block_with_placeholder_line():
    res = lift("A\n\\begin{tabular}{c}\nx\n\\end{tabular}\nB")
    block_id = "@@METABLOG_COMPLEX_BLOCK_0001@@"
    assert res.text == "A\n\n" + block_id + "\n\nB"
    block = res.blocks[block_id]
    assert block.id == block_id
    assert block.env_name == "tabular"
    assert block.raw_tex == "\\begin{tabular}{c}\nx\n\\end{tabular}"
    assert block.caption == ""
    assert block.label == ""


def test_lift_numbers_blocks_in_order():
    res = lift(
        "\\begin{tabular}{c}x\\end{tabular} mid "
        "\\begin{algorithm*}\\caption{Steps}\\end{algorithm*}"
    )
    assert sorted(res.blocks) == [
        "@@METABLOG_COMPLEX_BLOCK_0001@@",
        "@@METABLOG_COMPLEX_BLOCK_0002@@",
    ]
    assert res.blocks["@@METABLOG_COMPLEX_BLOCK_0001@@"].env_name == "tabular"
    second = res.blocks["@@METABLOG_COMPLEX_BLOCK_0002@@"]
    assert second.env_name == "algorithm*"
    assert second.caption == "Steps"


def test_lift_leaves_unterminated_environment_alone():
    text = "\\begin{tabular}{c} x"
    res = lift(text)
    assert res.text == text
    assert res.blocks == {}


def test_lift_keeps_other_environments():
    text = "\\begin{itemize}\\item a\\end{itemize}"
    res = lift(text)
    assert res.text == text
    assert res.blocks == {}


def test_lift_nested_same_name_environment_ends_at_outer():
    res = lift("\\begin{tabular}{c}\\begin{tabular}{c}y\\end{tabular}\\end{tabular}Z")
    (block,) = res.blocks.values()
    assert block.raw_tex == "\\begin{tabular}{c}\\begin{tabular}{c}y\\end{tabular}\\end{tabular}"
    assert res.text.endswith("\nZ")


def test_first_command_arg_skips_optional_argument():
    assert first_command_arg(r"x \caption[short]{ Long text } y", "caption") == "Long text"


def test_first_command_arg_missing_or_mismatched():
    assert first_command_arg("no command here", "caption") == ""
    assert first_command_arg(r"\captions{x}", "caption") == ""
    assert first_command_arg(r"\caption without braces", "caption") == ""