"""Document tree produced from LaTeX sources and consumed by renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar


class Block:
    """Base class of block-level nodes."""

    block_kind: ClassVar[str] = ""


class Inline:
    """Base class of inline nodes."""

    inline_kind: ClassVar[str] = ""


@dataclass
class ReferenceEntry:
    """One bibliography entry, keyed by its citation key."""

    key: str = ""
    type: str = ""
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class Author:
    attributes: list[str] = field(default_factory=list)
    name: list[Inline] = field(default_factory=list)
    institution_codes: list[str] = field(default_factory=list)
    email: str = ""


@dataclass
class Institution:
    code: str = ""
    aliases: list[str] = field(default_factory=list)
    number: int = 0
    info: list[Inline] = field(default_factory=list)


@dataclass
class Document:
    """Root of a parsed document."""

    title: list[Inline] = field(default_factory=list)
    title_align: str = ""
    authors: list[Author] = field(default_factory=list)
    institutions: list[Institution] = field(default_factory=list)
    abstract: list[Block] = field(default_factory=list)
    keywords: list[Inline] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)
    bibliography_files: list[str] = field(default_factory=list)
    references: dict[str, ReferenceEntry] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    input_file: str = ""
    source_root: str = ""


@dataclass
class Section(Block):
    block_kind: ClassVar[str] = "section"

    level: int = 0
    title: list[Inline] = field(default_factory=list)
    title_align: str = ""
    label: str = ""
    number: str = ""
    anchor_id: str = ""
    appendix: bool = False
    children: list[Block] = field(default_factory=list)


@dataclass
class Paragraph(Block):
    block_kind: ClassVar[str] = "paragraph"

    inlines: list[Inline] = field(default_factory=list)
    align: str = ""


@dataclass
class StyledBlock(Block):
    block_kind: ClassVar[str] = "styledBlock"

    color: str = ""
    background: str = ""
    align: str = ""
    underline: bool = False
    bold: bool = False
    italic: bool = False
    mono: bool = False
    font_size: str = ""
    font_family: str = ""
    font_style: str = ""
    font_weight: str = ""
    font_variant: str = ""
    children: list[Block] = field(default_factory=list)


@dataclass
class AbstractBlock(Block):
    block_kind: ClassVar[str] = "abstract"

    children: list[Block] = field(default_factory=list)


@dataclass
class KeywordsBlock(Block):
    block_kind: ClassVar[str] = "keywords"

    inlines: list[Inline] = field(default_factory=list)


@dataclass
class EnvironmentBlock(Block):
    block_kind: ClassVar[str] = "environment"

    env_name: str = ""
    children: list[Block] = field(default_factory=list)


@dataclass
class DisplayMath(Block):
    block_kind: ClassVar[str] = "displayMath"

    tex: str = ""
    label: str = ""
    numbered: bool = False
    number: str = ""
    anchor_id: str = ""


@dataclass
class ListItem:
    label: list[Inline] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)


@dataclass
class ListBlock(Block):
    block_kind: ClassVar[str] = "list"

    ordered: bool = False
    kind: str = ""
    items: list[ListItem] = field(default_factory=list)


@dataclass
class Image:
    source_path: str = ""
    output_path: str = ""
    options: dict[str, str] = field(default_factory=dict)


@dataclass
class Subfigure:
    image_index: int = 0
    label: str = ""
    caption: list[Inline] = field(default_factory=list)
    number: str = ""
    anchor_id: str = ""
    break_after: bool = False


@dataclass
class Figure(Block):
    block_kind: ClassVar[str] = "figure"

    starred: bool = False
    image: Image | None = None
    images: list[Image] = field(default_factory=list)
    subfigures: list[Subfigure] = field(default_factory=list)
    caption: list[Inline] = field(default_factory=list)
    caption_align: str = ""
    label: str = ""
    number: str = ""
    anchor_id: str = ""
    options: dict[str, str] = field(default_factory=dict)

    def all_images(self) -> list[Image]:
        """Images of the figure: the list if present, else the single image."""
        if self.images:
            return list(self.images)
        if self.image is not None:
            return [self.image]
        return []


@dataclass
class Subtable:
    blocks: list[Block] = field(default_factory=list)
    label: str = ""
    caption: list[Inline] = field(default_factory=list)
    number: str = ""
    anchor_id: str = ""
    break_after: bool = False


@dataclass
class Table(Block):
    block_kind: ClassVar[str] = "table"

    starred: bool = False
    children: list[Block] = field(default_factory=list)
    subtables: list[Subtable] = field(default_factory=list)
    caption: list[Inline] = field(default_factory=list)
    caption_align: str = ""
    label: str = ""
    number: str = ""
    anchor_id: str = ""


@dataclass
class TCB(Block):
    block_kind: ClassVar[str] = "tcb"

    title: list[Inline] = field(default_factory=list)
    title_align: str = ""
    title_background: str = ""
    border_color: str = ""
    body_background: str = ""
    children: list[Block] = field(default_factory=list)


@dataclass
class CodeBlock(Block):
    block_kind: ClassVar[str] = "codeBlock"

    env_name: str = ""
    language: str = ""
    text: str = ""


@dataclass
class RawHTML(Block):
    block_kind: ClassVar[str] = "rawHTML"

    html: str = ""


@dataclass
class ComplexHTML(Block):
    block_kind: ClassVar[str] = "complexHTML"

    block_id: str = ""
    env_name: str = ""
    raw_tex: str = ""
    html: str = ""
    caption: str = ""
    label: str = ""
    number: str = ""
    anchor_id: str = ""


@dataclass
class References(Block):
    block_kind: ClassVar[str] = "references"

    files: list[str] = field(default_factory=list)


@dataclass
class Text(Inline):
    inline_kind: ClassVar[str] = "text"

    value: str = ""


@dataclass
class Bold(Inline):
    inline_kind: ClassVar[str] = "bold"

    children: list[Inline] = field(default_factory=list)


@dataclass
class Italic(Inline):
    inline_kind: ClassVar[str] = "italic"

    children: list[Inline] = field(default_factory=list)


@dataclass
class Styled(Inline):
    inline_kind: ClassVar[str] = "styled"

    children: list[Inline] = field(default_factory=list)
    color: str = ""
    background: str = ""
    underline: bool = False
    bold: bool = False
    italic: bool = False
    mono: bool = False
    font_size: str = ""
    font_family: str = ""
    font_style: str = ""
    font_weight: str = ""
    font_variant: str = ""


@dataclass
class InlineMath(Inline):
    inline_kind: ClassVar[str] = "inlineMath"

    tex: str = ""


@dataclass
class LineBreak(Inline):
    inline_kind: ClassVar[str] = "lineBreak"


@dataclass
class RawHTMLInline(Inline):
    inline_kind: ClassVar[str] = "rawHTML"

    html: str = ""


@dataclass
class Link(Inline):
    inline_kind: ClassVar[str] = "link"

    url: str = ""
    children: list[Inline] = field(default_factory=list)


@dataclass
class Cite(Inline):
    inline_kind: ClassVar[str] = "cite"

    keys: list[str] = field(default_factory=list)


@dataclass
class Ref(Inline):
    inline_kind: ClassVar[str] = "ref"

    key: str = ""


@dataclass
class Footnote(Inline):
    inline_kind: ClassVar[str] = "footnote"

    children: list[Inline] = field(default_factory=list)