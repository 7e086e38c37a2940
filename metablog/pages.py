"""HTML pages of the generated site: shell, home feed, article lists, tags and categories."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from metablog.site_data import (
    Article,
    SiteConfig,
    _articles_by_newest,
    _normalized,
    _paginate_articles,
    _parse_date,
    article_list_page_url,
    article_url,
    articles_in_category,
    articles_with_tag,
    category_page_url,
    home_page_url,
    join_url,
    main_fig_url,
    slugify,
    tag_page_url,
)

_YEAR_ONLY_RE = re.compile(r"[0-9]{4}")
_UNKNOWN_YEAR = "未知"
_DESCRIPTION_LIMIT = 1000
_NAV_ITEMS = (
    ("所有文章", "articles/index.html"),
    ("标签", "tags/index.html"),
    ("分类", "categories/index.html"),
    ("关于", "about/index.html"),
)
_TAG_ICON = (
    '<svg viewBox="0 0 24 24" focusable="false"><path d="M20.6 13.4 13.4 20.6a2 2 0 0 1-2.8 0'
    'L3 13V3h10l7.6 7.6a2 2 0 0 1 0 2.8Z"></path><circle cx="8" cy="8" r="1.7"></circle></svg>'
)
_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&#34;", "'": "&#39;"})

PageURL = Callable[[int], str]


def _esc(text: str) -> str:
    return text.translate(_ESCAPES)


def render_shell(cfg: SiteConfig, base_prefix: str, page_title: str, body: str) -> str:
    """Wrap ``body`` in the full page layout with head, top bar and footer."""
    cfg = _normalized(cfg)
    title = f"{page_title} - {cfg.title}" if page_title else cfg.title
    parts = [
        '<!doctype html>\n<html lang="zh-CN">\n<head>\n',
        '<meta charset="utf-8">\n<meta name="viewport" content="width=device-width, initial-scale=1">\n',
        "<title>",
        _esc(title),
        '</title>\n<link rel="stylesheet" href="',
        _esc(join_url(base_prefix, "static/fonts.css")),
        '">\n<link rel="stylesheet" href="',
        _esc(join_url(base_prefix, "static/style.css")),
        '">\n',
    ]
    if cfg.icon:
        parts += ['<link rel="icon" href="', _esc(join_url(base_prefix, cfg.icon)), '">\n']
    parts += [
        '</head>\n<body class="site-layout">\n',
        header(cfg, base_prefix),
        '<main class="site-page">',
        body,
        "</main>\n",
        cfg.page_footer_html,
        "</body>\n</html>\n",
    ]
    return "".join(parts)


def header(cfg: SiteConfig, base_prefix: str) -> str:
    """Top bar with the site brand and navigation links."""
    site_title = cfg.title if cfg.title.strip() else "MetaBlog"
    parts = [
        '<header class="site-topbar"><div class="site-topbar-inner">',
        '<a class="site-brand" href="',
        _esc(join_url(base_prefix, "index.html")),
        '">',
    ]
    if cfg.logo:
        parts += ['<img class="site-logo" src="', _esc(join_url(base_prefix, cfg.logo)), '" alt="">']
    parts += ['<span class="site-title">', _esc(site_title), "</span></a>"]
    parts.append('<nav class="site-nav" aria-label="Site">')
    for text, href in _NAV_ITEMS:
        parts += ['<a href="', _esc(join_url(base_prefix, href)), '">', _esc(text), "</a>"]
    parts.append("</nav></div></header>")
    return "".join(parts)


def render_home(cfg: SiteConfig, articles: list[Article]) -> str:
    """First page of the home feed at the site root."""
    return render_home_page(cfg, articles, 1, "")


def render_home_page(cfg: SiteConfig, articles: list[Article], page: int, base_prefix: str) -> str:
    """One page of the home feed, newest articles first."""
    cfg = _normalized(cfg)
    if not articles:
        return render_shell(cfg, base_prefix, "", '<p class="home-empty">暂无文章。</p>')
    paged, total_pages = _paginate_articles(_articles_by_newest(articles), page, cfg.home_page_size)
    parts = ['<section class="home-article-feed" aria-label="Articles">']
    parts += (_home_card(a, base_prefix) for a in paged)
    parts.append("</section>")
    parts.append(_pagination(base_prefix, page, total_pages, home_page_url))
    return render_shell(cfg, base_prefix, "", "".join(parts))


def _home_card(a: Article, base_prefix: str) -> str:
    href = _esc(join_url(base_prefix, article_url(a.slug)))
    parts = ['<article class="home-article-card">']
    fig = main_fig_url(a, base_prefix)
    if fig:
        parts += [
            '<a class="home-article-figure" href="', href,
            '"><img src="', _esc(fig), '" alt=""></a>',
        ]
    parts += [
        '<div class="home-article-body"><h2 class="home-article-title"><a href="', href, '">',
        _esc(a.title),
        '</a></h2><div class="home-article-meta"><time>',
        _esc(a.date),
        "</time>",
    ]
    if a.category:
        parts.append('<span class="home-article-categories">')
        for depth, name in enumerate(a.category, start=1):
            if depth > 1:
                parts.append('<span class="category-separator">/</span>')
            url = join_url(base_prefix, category_page_url(a.category[:depth], 1))
            parts += ['<a href="', _esc(url), '">', _esc(name), "</a>"]
        parts.append("</span>")
    parts.append("</div>")
    desc = _truncate_description(a.description, _DESCRIPTION_LIMIT)
    if desc:
        parts += ['<p class="home-article-description">', _esc(desc), "</p>"]
    parts += [
        '<div class="home-article-tags"><span class="tag-icon" aria-hidden="true">',
        _TAG_ICON,
        '</span><div class="tag-links">',
    ]
    for tag in a.tags:
        parts += ['<a href="', _esc(join_url(base_prefix, tag_page_url(tag, 1))), '">', _esc(tag), "</a>"]
    parts.append("</div></div></div></article>")
    return "".join(parts)


def render_articles_page(cfg: SiteConfig, articles: list[Article], base_prefix: str, title: str) -> str:
    """First page of the list of all articles."""
    return _render_collection(cfg, articles, base_prefix, title, 1, article_list_page_url)


def render_articles_page_page(
    cfg: SiteConfig, articles: list[Article], base_prefix: str, title: str, page: int
) -> str:
    """One page of the list of all articles."""
    return _render_collection(cfg, articles, base_prefix, title, page, article_list_page_url)


def _render_collection(
    cfg: SiteConfig,
    articles: list[Article],
    base_prefix: str,
    title: str,
    page: int,
    page_url: PageURL,
) -> str:
    cfg = _normalized(cfg)
    paged, total_pages = _paginate_articles(_articles_by_newest(articles), page, cfg.article_list_page_size)
    body = (
        "<h1>" + _esc(title) + "</h1>"
        + _article_list(paged, base_prefix)
        + _pagination(base_prefix, page, total_pages, page_url)
    )
    return render_shell(cfg, base_prefix, title, body)


def render_tags_index(cfg: SiteConfig, articles: list[Article]) -> str:
    """Tag cloud page with the number of articles per tag."""
    counts: dict[str, int] = {}
    for a in articles:
        for tag in a.tags:
            counts[tag] = counts.get(tag, 0) + 1
    parts = ['<h1>标签</h1><ul class="term-cloud">']
    for tag in sorted(counts):
        parts += [
            '<li><a href="', _esc(slugify(tag)), '/index.html">',
            _esc(tag), "<sup>", str(counts[tag]), "</sup></a></li>",
        ]
    parts.append("</ul>")
    return render_shell(cfg, "..", "标签", "".join(parts))


def render_tag_page(cfg: SiteConfig, tag: str, articles: list[Article]) -> str:
    """First page of the articles carrying ``tag``."""
    return render_tag_page_page(cfg, tag, articles, 1, "../..")


def render_tag_page_page(
    cfg: SiteConfig, tag: str, articles: list[Article], page: int, base_prefix: str
) -> str:
    """One page of the articles carrying ``tag``."""
    return _render_collection(
        cfg,
        articles_with_tag(articles, tag),
        base_prefix,
        "标签：" + tag,
        page,
        lambda p: tag_page_url(tag, p),
    )


@dataclass
class _CategoryNode:
    name: str = ""
    path: list[str] = field(default_factory=list)
    children: dict[str, _CategoryNode] = field(default_factory=dict)


def _category_tree(articles: list[Article]) -> _CategoryNode:
    root = _CategoryNode()
    for a in articles:
        node = root
        for depth, part in enumerate(a.category, start=1):
            child = node.children.get(part)
            if child is None:
                child = _CategoryNode(name=part, path=list(a.category[:depth]))
                node.children[part] = child
            node = child
    return root


def _category_nodes(nodes: dict[str, _CategoryNode], base_prefix: str) -> str:
    if not nodes:
        return "<p>暂无分类。</p>"
    parts = ['<ol class="category-tree">']
    for name in sorted(nodes):
        node = nodes[name]
        parts.append("<li>")
        if node.children:
            parts.append("<details open><summary>")
        parts += [
            '<a href="', _esc(join_url(base_prefix, category_page_url(node.path, 1))), '">',
            _esc(node.name), "</a>",
        ]
        if node.children:
            parts += ["</summary>", _category_nodes(node.children, base_prefix), "</details>"]
        parts.append("</li>")
    parts.append("</ol>")
    return "".join(parts)


def render_categories_index(cfg: SiteConfig, articles: list[Article]) -> str:
    """Page with the tree of all categories."""
    body = "<h1>分类</h1>" + _category_nodes(_category_tree(articles).children, "..")
    return render_shell(cfg, "..", "分类", body)


def render_category_page(
    cfg: SiteConfig, category_path: list[str], articles: list[Article], base_prefix: str
) -> str:
    """First page of the articles within ``category_path``."""
    return render_category_page_page(cfg, category_path, articles, 1, base_prefix)


def render_category_page_page(
    cfg: SiteConfig, category_path: list[str], articles: list[Article], page: int, base_prefix: str
) -> str:
    """One page of the articles within ``category_path``."""
    path = list(category_path)
    return _render_collection(
        cfg,
        articles_in_category(articles, path),
        base_prefix,
        "分类：" + " / ".join(path),
        page,
        lambda p: category_page_url(path, p),
    )


def _article_list(articles: list[Article], base_prefix: str) -> str:
    if not articles:
        return "<p>暂无文章。</p>"
    years: dict[str, list[Article]] = {}
    for a in articles:
        years.setdefault(_year_of(a.date), []).append(a)
    parts: list[str] = []
    for year in sorted(years, reverse=True):
        parts += ['<h2 class="article-year">', _esc(year), '</h2><ul class="article-list">']
        for a in years[year]:
            href = _esc(join_url(base_prefix, article_url(a.slug)))
            parts.append("<li>")
            fig = main_fig_url(a, base_prefix)
            if fig:
                parts += ['<a class="article-thumb" href="', href, '"><img src="', _esc(fig), '" alt=""></a>']
            parts += [
                '<div class="article-list-main"><a href="', href, '">', _esc(a.title),
                '</a></div><span class="article-date">', _esc(_month_day(a.date)), "</span></li>",
            ]
        parts.append("</ul>")
    return "".join(parts)


def _pagination(base_prefix: str, page: int, total_pages: int, page_url: PageURL) -> str:
    if total_pages <= 1:
        return ""
    parts = ['<nav class="pagination" aria-label="Pagination">']
    if page > 1:
        parts += ['<a class="pagination-prev" href="', _esc(join_url(base_prefix, page_url(page - 1))), '">上一页</a>']
    parts.append("<ol>")
    for number in range(1, total_pages + 1):
        if number == page:
            parts.append(f'<li><span aria-current="page">{number}</span></li>')
        else:
            href = _esc(join_url(base_prefix, page_url(number)))
            parts.append(f'<li><a href="{href}">{number}</a></li>')
    parts.append("</ol>")
    if page < total_pages:
        parts += ['<a class="pagination-next" href="', _esc(join_url(base_prefix, page_url(page + 1))), '">下一页</a>']
    parts.append("</nav>")
    return "".join(parts)


def _year_of(date: str) -> str:
    parsed = _parse_date(date)
    if parsed is not None:
        return f"{parsed.year:04d}"
    if len(date) >= 4:
        return date[:4]
    return _UNKNOWN_YEAR


def _month_day(date: str) -> str:
    parsed = _parse_date(date)
    if parsed is not None:
        if parsed.month == 1 and parsed.day == 1 and _YEAR_ONLY_RE.fullmatch(date.strip()):
            return ""
        return f"{parsed.month:02d}-{parsed.day:02d}"
    if len(date) >= 10:
        return date[5:10]
    return date


def _truncate_description(text: str, limit: int) -> str:
    text = text.strip()
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit].strip() + " ..."