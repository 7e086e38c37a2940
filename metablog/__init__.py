"""Building blocks for a static blog of LaTeX articles: lexing, lifting, bibliography, highlighting, assets, site data and pages."""

__version__ = "0.1.0"

__all__ = [
    "assets",
    "bib",
    "blocks",
    "highlight",
    "lexer",
    "nodes",
    "pages",
    "site_data",
]