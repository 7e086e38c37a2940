"""Site configuration, article metadata and the URL scheme of the generated site."""

from __future__ import annotations

import dataclasses
import datetime
import functools
import json
import os
import posixpath
import re
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
import yaml

DEFAULT_HOME_PAGE_SIZE = 10
DEFAULT_ARTICLE_LIST_PAGE_SIZE = 20
DEFAULT_TITLE = "MetaBlog"

_ENTRY_CANDIDATES = ("main.tex", "index.tex", "article.tex")
_DATE_PATTERNS = [
    re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})"),
    re.compile(r"([0-9]{4})/([0-9]{2})/([0-9]{2})"),
    re.compile(r"([0-9]{4})-([0-9]{2})"),
    re.compile(r"([0-9]{4})/([0-9]{2})"),
    re.compile(r"([0-9]{4})"),
]


class SiteDataError(Exception):
    """Site data could not be parsed or refers to a path outside the site."""


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _from_slash(path: str) -> str:
    return path.replace("/", os.sep) if os.sep != "/" else path


def _extension(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _base_name(path: str) -> str:
    if not path:
        return "."
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/"
    return trimmed.rsplit("/", 1)[-1]


@dataclass
class SiteConfig:
    """Site-wide settings."""

    title: str = ""
    logo: str = ""
    icon: str = ""
    home_page_size: int = 0
    article_list_page_size: int = 0
    page_footer_html: str = ""

    def normalize(self) -> None:
        """Trim values and fill in defaults."""
        self.title = self.title.strip()
        self.logo = _to_slash(self.logo).strip()
        self.icon = _to_slash(self.icon).strip()
        if not self.title:
            self.title = DEFAULT_TITLE
        if self.home_page_size <= 0:
            self.home_page_size = DEFAULT_HOME_PAGE_SIZE
        if self.article_list_page_size <= 0:
            self.article_list_page_size = DEFAULT_ARTICLE_LIST_PAGE_SIZE


@dataclass
class Article:
    """Metadata of one article."""

    title: str = ""
    description: str = ""
    author: str = ""
    date: str = ""
    category: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    folder: str = ""
    main_fig: str = ""
    main_file: str = ""
    input: str = ""
    slug: str = ""
    deleted: bool = False

    def normalize(self) -> None:
        """Trim values, derive the slug and fold the legacy ``input`` field."""
        self.title = self.title.strip()
        self.description = self.description.replace("\r\n", "\n").replace("\r", "\n").strip()
        self.author = self.author.strip()
        self.date = self.date.strip()
        self.folder = _to_slash(self.folder).strip()
        self.main_fig = _to_slash(self.main_fig).strip()
        self.main_file = _to_slash(self.main_file).strip()
        self.input = _to_slash(self.input).strip()
        if not self.main_file and self.input:
            self.main_file = self.input
        self.input = ""
        self.slug = self.slug.strip().strip("/")
        if not self.slug:
            base = _base_name(self.folder)
            if base in (".", "/", ""):
                base = self.title
            self.slug = slugify(base)
        if not self.title:
            self.title = self.slug
        self.tags = _clean_list(self.tags)
        self.category = _clean_list(self.category)


@dataclass
class Site:
    """Loaded configuration and the active articles, oldest first."""

    config: SiteConfig
    articles: list[Article]
    root_dir: str


def _clean_list(items: list[str]) -> list[str]:
    return [item.strip() for item in items if item.strip()]


def _as_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise SiteDataError(f"field {name} must be a string")
    return str(value)


def _as_int(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise SiteDataError(f"field {name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SiteDataError(f"field {name} must be an integer") from exc


def _as_str_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SiteDataError(f"field {name} must be a list")
    return [_as_str(item, name) for item in value]


def _as_mapping(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SiteDataError(f"{what} must be a mapping")
    return value


def _config_from_mapping(data: dict[str, Any], cfg: SiteConfig) -> SiteConfig:
    for name in ("title", "logo", "icon"):
        if name in data:
            setattr(cfg, name, _as_str(data[name], name))
    for name in ("home_page_size", "article_list_page_size"):
        if name in data:
            setattr(cfg, name, _as_int(data[name], name))
    return cfg


def _article_from_mapping(raw: Any) -> Article:
    data = _as_mapping(raw, "article")
    article = Article()
    for name in ("title", "description", "author", "date", "folder",
                 "main_fig", "main_file", "input", "slug"):
        if name in data:
            setattr(article, name, _as_str(data[name], name))
    for name in ("category", "tags"):
        if name in data:
            setattr(article, name, _as_str_list(data[name], name))
    if "deleted" in data:
        article.deleted = bool(data["deleted"])
    return article


def _article_to_mapping(article: Article) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": article.title,
        "description": article.description,
        "author": article.author,
        "date": article.date,
        "category": list(article.category),
        "tags": list(article.tags),
        "folder": article.folder,
        "main_fig": article.main_fig,
        "main_file": article.main_file,
    }
    if article.input:
        data["input"] = article.input
    if article.slug:
        data["slug"] = article.slug
    if article.deleted:
        data["deleted"] = True
    return data


def _read_data(path: str) -> Any:
    with open(path, encoding="utf-8") as fh:
        text = fh.read().removeprefix("\ufeff")
    ext = _extension(_to_slash(path)).lower()
    try:
        if ext == ".json":
            return json.loads(text)
        if ext == ".toml":
            return tomllib.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise SiteDataError(f"parse {path}: {exc}") from exc


def _read_articles(path: str) -> list[Article]:
    data = _read_data(path)
    if _extension(_to_slash(path)).lower() == ".toml":
        data = data.get("articles")
    if data is None:
        return []
    if not isinstance(data, list):
        raise SiteDataError(f"parse {path}: articles must be a list")
    return [_article_from_mapping(item) for item in data]


def _marshal_articles(path: str, articles: list[Article]) -> str:
    records = [_article_to_mapping(a) for a in articles]
    ext = _extension(_to_slash(path)).lower()
    if ext == ".json":
        text = json.dumps(records, indent=2, ensure_ascii=False)
    elif ext == ".toml":
        text = tomli_w.dumps({"articles": records})
    else:
        text = yaml.safe_dump(records, allow_unicode=True, sort_keys=False)
    if not text.endswith("\n"):
        text += "\n"
    return text


def _resolve_user_path(root_dir: str, path: str) -> str:
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(root_dir, _from_slash(path)))


def _clean_relative_path(path: str) -> str:
    if not path.strip():
        raise SiteDataError("empty path")
    slashed = path.replace("\\", "/")
    if slashed.startswith("/") or os.path.isabs(path) or os.path.splitdrive(path)[0]:
        raise SiteDataError(f"absolute path not allowed: {path}")
    clean = posixpath.normpath(slashed)
    if clean in (".", "..") or clean.startswith("../"):
        raise SiteDataError(f"path leaves its directory: {path}")
    return _from_slash(clean)


def _is_within_dir(root: str, path: str) -> bool:
    root_abs = os.path.abspath(root)
    path_abs = os.path.abspath(path)
    try:
        return os.path.commonpath([root_abs, path_abs]) == root_abs
    except ValueError:
        return False


def _resolve_article_path(root_dir: str, path: str) -> str:
    result = os.path.normpath(os.path.join(root_dir, _clean_relative_path(path)))
    if not _is_within_dir(root_dir, result):
        raise SiteDataError(f"path escapes root directory: {path}")
    return result


def _validate_article_paths(root_dir: str, article: Article) -> None:
    try:
        folder = _resolve_article_path(root_dir, article.folder)
    except SiteDataError as exc:
        raise SiteDataError(f"article {article.title} folder: {exc}") from exc
    if article.main_file:
        try:
            _resolve_article_path(folder, article.main_file)
        except SiteDataError as exc:
            raise SiteDataError(f"article {article.title} main_file: {exc}") from exc
    if article.main_fig:
        try:
            _clean_relative_path(article.main_fig)
        except SiteDataError as exc:
            raise SiteDataError(f"article {article.title} main_fig: {exc}") from exc


def load(root_dir: str, config_path: str, articles_path: str) -> Site:
    """Load configuration and articles; deleted articles are dropped, the rest sorted oldest first."""
    cfg = SiteConfig(title=DEFAULT_TITLE)
    if config_path:
        path = _resolve_user_path(root_dir, config_path)
        _config_from_mapping(_as_mapping(_read_data(path), f"config {path}"), cfg)
    cfg.normalize()
    articles: list[Article] = []
    if articles_path:
        articles = _read_articles(_resolve_user_path(root_dir, articles_path))
    for article in articles:
        article.normalize()
        _validate_article_paths(root_dir, article)
    articles = active_articles(articles)
    articles.sort(key=functools.cmp_to_key(_compare_oldest_first))
    return Site(config=cfg, articles=articles, root_dir=root_dir)


def load_articles(path: str) -> list[Article]:
    """Read and normalize all articles of ``path``, deleted ones included; [] if it is missing."""
    if not os.path.exists(path):
        return []
    articles = _read_articles(path)
    for article in articles:
        article.normalize()
    return articles


def active_articles(articles: list[Article]) -> list[Article]:
    """Articles not marked deleted."""
    return [a for a in articles if not a.deleted]


def save_articles(path: str, articles: list[Article]) -> None:
    """Normalize the articles in place and write them in the format named by the extension."""
    for article in articles:
        article.normalize()
    text = _marshal_articles(path, articles)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def resolve_article_input(root_dir: str, article: Article) -> str:
    """Path of the LaTeX entry file of ``article``."""
    folder = _resolve_article_path(root_dir, article.folder)
    if article.main_file:
        return _resolve_article_path(folder, article.main_file)
    for name in _ENTRY_CANDIDATES:
        path = os.path.join(folder, name)
        if os.path.exists(path):
            return path
    try:
        names = os.listdir(folder)
    except OSError:
        names = []
    matches = sorted(os.path.join(folder, n) for n in names if n.endswith(".tex"))
    if matches:
        return matches[0]
    raise SiteDataError(f"no LaTeX entry found in {folder}")


def slugify(s: str) -> str:
    """Lower-case ASCII letters and digits, non-ASCII kept, other runs as one dash."""
    parts: list[str] = []
    last_dash = False
    for ch in s.strip().lower():
        if ("a" <= ch <= "z") or ("0" <= ch <= "9") or ord(ch) > 127:
            parts.append(ch)
            last_dash = False
        elif not last_dash:
            parts.append("-")
            last_dash = True
    return "".join(parts).strip("-") or "article"


def join_url(prefix: str, path: str) -> str:
    """Join a relative base prefix and a site path with one slash."""
    prefix = prefix.rstrip("/")
    path = path.lstrip("/")
    if not prefix:
        return path
    return prefix + "/" + path


def article_url(slug: str) -> str:
    return "articles/" + slugify(slug) + "/index.html"


def main_fig_url(article: Article, base_prefix: str) -> str:
    """URL of the article's main figure, PDF mapped to its SVG; "" if there is none."""
    if not article.main_fig:
        return ""
    rel = _to_slash(article.main_fig).removeprefix("./").strip("/")
    ext = _extension(rel)
    if ext.lower() == ".pdf":
        rel = rel[: len(rel) - len(ext)] + ".svg"
    return join_url(base_prefix, "assets/articles/" + slugify(article.slug) + "/" + rel)


def home_page_url(page: int) -> str:
    if page <= 1:
        return "index.html"
    return f"page/{page}/index.html"


def article_list_page_url(page: int) -> str:
    if page <= 1:
        return "articles/index.html"
    return f"articles/page/{page}/index.html"


def tag_page_url(tag: str, page: int) -> str:
    if page <= 1:
        return "tags/" + slugify(tag) + "/index.html"
    return f"tags/{slugify(tag)}/page/{page}/index.html"


def category_page_url(path: list[str], page: int) -> str:
    parts = ["categories", *(slugify(part) for part in path)]
    if page > 1:
        parts += ["page", str(page)]
    parts.append("index.html")
    return "/".join(parts)


def tags(articles: list[Article]) -> list[str]:
    """All tags in use, sorted."""
    return sorted({tag for a in articles for tag in a.tags})


def category_paths(articles: list[Article]) -> list[list[str]]:
    """Every category path and its prefixes, sorted and without repeats."""
    seen: dict[str, list[str]] = {}
    for article in articles:
        for depth in range(1, len(article.category) + 1):
            path = article.category[:depth]
            seen["\x00".join(path)] = list(path)
    return [seen[key] for key in sorted(seen)]


def articles_with_tag(articles: list[Article], tag: str) -> list[Article]:
    return [a for a in articles if tag in a.tags]


def articles_in_category(articles: list[Article], category_path: list[str]) -> list[Article]:
    """Articles whose category starts with ``category_path``."""
    depth = len(category_path)
    return [a for a in articles if a.category[:depth] == list(category_path) and len(a.category) >= depth]


def _normalized(cfg: SiteConfig) -> SiteConfig:
    copy = dataclasses.replace(cfg)
    copy.normalize()
    return copy


def home_page_count(cfg: SiteConfig, articles: list[Article]) -> int:
    return _page_count(len(articles), _normalized(cfg).home_page_size)


def article_list_page_count(cfg: SiteConfig, articles: list[Article]) -> int:
    return _page_count(len(articles), _normalized(cfg).article_list_page_size)


def _page_count(total: int, page_size: int) -> int:
    if page_size <= 0 or total <= 0:
        return 1
    return -(-total // page_size)


def _paginate_articles(articles: list[Article], page: int, page_size: int) -> tuple[list[Article], int]:
    total_pages = _page_count(len(articles), page_size)
    page = max(page, 1)
    if page > total_pages:
        return [], total_pages
    start = (page - 1) * page_size
    return articles[start : start + page_size], total_pages


def _parse_date(s: str) -> datetime.date | None:
    for pattern in _DATE_PATTERNS:
        match = pattern.fullmatch(s)
        if match is None:
            continue
        numbers = [int(g) for g in match.groups()] + [1, 1]
        try:
            return datetime.date(numbers[0], numbers[1], numbers[2])
        except ValueError:
            continue
    return None


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _compare_oldest_first(a: Article, b: Article) -> int:
    da, db = _parse_date(a.date), _parse_date(b.date)
    if da is not None and db is not None and da != db:
        return _cmp(da, db)
    if a.date != b.date:
        return _cmp(a.date, b.date)
    return _cmp(a.title, b.title)


def _compare_newest_first(a: Article, b: Article) -> int:
    da, db = _parse_date(a.date), _parse_date(b.date)
    if da is not None and db is not None and da != db:
        return _cmp(db, da)
    if a.date != b.date:
        return _cmp(b.date, a.date)
    return _cmp(a.title, b.title)


def _articles_by_newest(articles: list[Article]) -> list[Article]:
    return sorted(articles, key=functools.cmp_to_key(_compare_newest_first))