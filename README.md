# metablog

Building blocks for a static blog whose articles are written in LaTeX.

## Modules

- `metablog.lexer` – a TeX tokenizer. `tokenize` returns `Token`s
  (`kind`, `value`, `start`, `end`) ending in an `EOF` token; the
  environments `verbatim`, `lstlisting`, `minted` and `html`, and `\verb`
  commands, come out whole as single `RAW` tokens. Helpers:
  `command_name_at`, `is_command_at`, `find_command`, `find_any_command`.
- `metablog.blocks` – `lift` replaces each `tabular`, `tabularx`,
  `algorithm` and `algorithm*` environment with a placeholder line and
  returns a `LiftResult` whose `blocks` map each placeholder to a
  `ComplexBlock` holding the raw TeX, the first caption and the first label
  of the environment itself (not of nested environments). Environments
  inside raw environments are left alone. `first_command_arg` reads the
  mandatory argument of the first occurrence of a command.
- `metablog.nodes` – dataclasses of a document tree: `Document`,
  `Section`, `Paragraph`, `Figure`, `Table`, `ListBlock`, `CodeBlock`,
  inline nodes such as `Text`, `Bold`, `Link`, `Cite`, and others.
- `metablog.bib` – a BibTeX reader: `parse` returns `ReferenceEntry`
  objects keyed by citation key, `load` reads files (adding `.bib` when a
  name has no extension and appending a warning for any file it cannot
  read), and `clean_tex` strips TeX markup from a field value.
- `metablog.highlight` – `highlight(code, language)` returns
  class-based highlighted HTML (classes prefixed `ch`, no enclosing
  `<pre>`), falling back to escaped plain text for unknown languages;
  `theme_css()` returns the matching monokai stylesheet;
  `normalize_language` maps names such as `cpp`, `js` or `sh`.
- `metablog.assets` – `Converter` copies figure images referred to by a
  `Document` (or a single file via `convert_file`) into `assets/` of the
  output directory, or into an object implementing `MemoryStore`. Copies
  that are already up to date are left in place. PDF files are turned into
  SVG with `pdftocairo`, `mutool` or `inkscape`, whichever is found first.
  Failures raise `AssetError`; `Stats` counts the outcomes.
- `metablog.site_data` – `SiteConfig`, `Article` and `Site`; `load`
  reads the configuration and the article list (JSON, TOML with an
  `[[articles]]` array, or YAML for any other extension), drops deleted
  articles, rejects paths leaving the site root with `SiteDataError` and
  sorts the rest oldest first. Also `load_articles`, `save_articles`,
  `resolve_article_input`, `slugify` and the URL helpers
  (`article_url`, `tag_page_url`, `category_page_url`, ...).
- `metablog.pages` – HTML pages: `render_shell`, `render_home_page`,
  `render_articles_page_page`, `render_tags_index`,
  `render_tag_page_page`, `render_categories_index`,
  `render_category_page_page` and their first-page shortcuts.

## Installation

```
pip install .
```

Tests run with `pip install .[test]` followed by `pytest`.

## Examples

```python
from metablog import site_data, pages

site = site_data.load("my-blog", "data/config.toml", "data/articles.toml")
html = pages.render_home(site.config, site.articles)
```

```python
from metablog.bib import parse

entries = parse("@article{knuth84, title={Literate Programming}, year=1984}")
print(entries["knuth84"].fields["title"])  # Literate Programming
```

```python
from metablog.blocks import lift

result = lift(r"Text \begin{tabular}{c} x \end{tabular} more")
print(result.text)
for block in result.blocks.values():
    print(block.env_name, block.caption, block.label)
```

## What it does not do

This is a library only. It has no command-line program and no web server,
and it does not watch files for changes. It does not turn LaTeX into the
`metablog.nodes` tree and does not render article bodies to HTML; the
`pages` module renders only the site-level pages (home feed, article
lists, tag and category pages). Writing the rendered pages to disk is left
to the caller.