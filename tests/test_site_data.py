import json

import pytest

from metablog.site_data import (
    Article,
    SiteConfig,
    SiteDataError,
    active_articles,
    article_list_page_count,
    article_list_page_url,
    article_url,
    articles_in_category,
    articles_with_tag,
    category_page_url,
    category_paths,
    home_page_count,
    home_page_url,
    join_url,
    load,
    load_articles,
    main_fig_url,
    resolve_article_input,
    save_articles,
    slugify,
    tag_page_url,
    tags,
)


def test_main_fig_url_maps_pdf_to_svg():
    article = Article(title="PDF Figure", folder="articles/pdf-figure", main_fig="fig/main.pdf", slug="pdf-figure")
    article.normalize()
    assert main_fig_url(article, "..") == "../assets/articles/pdf-figure/fig/main.svg"


def test_main_fig_url_empty_without_figure():
    article = Article(title="x", folder="articles/x")
    article.normalize()
    assert main_fig_url(article, "..") == ""


def test_load_filters_deleted_articles(tmp_path):
    save_articles(str(tmp_path / "articles.toml"), [
        Article(title="Visible", folder="articles/visible", main_file="main.tex"),
        Article(title="Deleted", folder="articles/deleted", main_file="main.tex", deleted=True),
    ])
    site = load(str(tmp_path), "", "articles.toml")
    assert [a.title for a in site.articles] == ["Visible"]


@pytest.mark.parametrize("name,content", [
    ("folder", '[[articles]]\ntitle = "Bad"\nfolder = "../outside"\nmain_file = "main.tex"\n'),
    ("main_file", '[[articles]]\ntitle = "Bad"\nfolder = "articles/bad"\nmain_file = "../main.tex"\n'),
    ("main_fig", '[[articles]]\ntitle = "Bad"\nfolder = "articles/bad"\nmain_file = "main.tex"\nmain_fig = "../fig.png"\n'),
])
def test_load_rejects_article_path_traversal(tmp_path, name, content):
    path = tmp_path / f"{name}.toml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SiteDataError):
        load(str(tmp_path), "", str(path))


def test_load_allows_absolute_cli_data_path(tmp_path):
    path = tmp_path / "articles.toml"
    save_articles(str(path), [Article(title="Visible", folder="articles/visible", main_file="main.tex")])
    site = load(str(tmp_path), "", str(path))
    assert len(site.articles) == 1


def test_load_sorts_oldest_first_and_reads_config(tmp_path):
    (tmp_path / "config.toml").write_text('title = "RAM HTML Test"\n', encoding="utf-8")
    save_articles(str(tmp_path / "a.json"), [
        Article(title="Newer", date="2026-05-05", folder="articles/newer"),
        Article(title="Older", date="2025-01-02", folder="articles/older"),
    ])
    site = load(str(tmp_path), "config.toml", "a.json")
    assert [a.title for a in site.articles] == ["Older", "Newer"]
    assert site.config.title == "RAM HTML Test"
    assert site.config.home_page_size == 10
    assert site.config.article_list_page_size == 20


def test_load_empty_toml_articles(tmp_path):
    (tmp_path / "articles.toml").write_text("", encoding="utf-8")
    site = load(str(tmp_path), "", "articles.toml")
    assert site.articles == []
    assert site.config.title == "MetaBlog"


def test_load_invalid_json_raises(tmp_path):
    (tmp_path / "a.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(SiteDataError):
        load(str(tmp_path), "", "a.json")


def test_wrong_field_type_raises(tmp_path):
    (tmp_path / "a.yaml").write_text("- title: x\n  folder: articles/x\n  tags: {a: 1}\n", encoding="utf-8")
    with pytest.raises(SiteDataError):
        load_articles(str(tmp_path / "a.yaml"))


@pytest.mark.parametrize("ext", ["json", "yaml", "toml"])
def test_save_and_load_articles_round_trip(tmp_path, ext):
    path = str(tmp_path / "sub" / f"articles.{ext}")
    original = [
        Article(title="高斯过程", date="2026-05-07", folder="articles/gp",
                category=["Paper", " L2O "], tags=["Go", ""], main_file="main.tex"),
        Article(title="Gone", folder="articles/gone", deleted=True),
    ]
    save_articles(path, original)
    loaded = load_articles(path)
    assert loaded == original
    assert loaded[0].category == ["Paper", "L2O"]
    assert loaded[0].tags == ["Go"]
    assert loaded[1].deleted is True


def test_save_json_omits_empty_optional_fields(tmp_path):
    path = tmp_path / "a.json"
    save_articles(str(path), [Article(title="T", folder="articles/t")])
    data = json.loads(path.read_text(encoding="utf-8"))
    assert "input" not in data[0]
    assert "deleted" not in data[0]
    assert data[0]["slug"] == "t"


def test_load_articles_missing_file_is_empty(tmp_path):
    assert load_articles(str(tmp_path / "none.yaml")) == []


def test_article_normalize_derives_fields():
    article = Article(title="", folder="articles/My Post/", input="entry.tex", description="a\r\nb\rc ")
    article.normalize()
    assert article.main_file == "entry.tex"
    assert article.input == ""
    assert article.slug == "my-post"
    assert article.title == "my-post"
    assert article.description == "a\nb\nc"


def test_article_normalize_slug_from_title_without_folder():
    article = Article(title="Hello World")
    article.normalize()
    assert article.slug == "hello-world"


def test_config_normalize_defaults():
    cfg = SiteConfig(title="  ", home_page_size=-1, logo=" logo.png ")
    cfg.normalize()
    assert (cfg.title, cfg.home_page_size, cfg.article_list_page_size, cfg.logo) == ("MetaBlog", 10, 20, "logo.png")


@pytest.mark.parametrize("text,expected", [
    ("Hello, World!", "hello-world"),
    ("", "article"),
    ("---", "article"),
    ("L2O", "l2o"),
    ("Learn to Optimize", "learn-to-optimize"),
    ("高斯过程", "高斯过程"),
])
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_url_helpers():
    assert article_url("My Post") == "articles/my-post/index.html"
    assert home_page_url(1) == "index.html"
    assert home_page_url(2) == "page/2/index.html"
    assert article_list_page_url(0) == "articles/index.html"
    assert article_list_page_url(3) == "articles/page/3/index.html"
    assert tag_page_url("Go", 1) == "tags/go/index.html"
    assert tag_page_url("Go", 2) == "tags/go/page/2/index.html"
    assert category_page_url(["Paper", "Learn to Optimize"], 1) == "categories/paper/learn-to-optimize/index.html"
    assert category_page_url(["Paper"], 3) == "categories/paper/page/3/index.html"


def test_join_url():
    assert join_url("../", "/static/style.css") == "../static/style.css"
    assert join_url("", "/index.html") == "index.html"


def _articles():
    items = [
        Article(title="A", folder="articles/a", tags=["Go", "L2O"], category=["Paper", "L2O"]),
        Article(title="B", folder="articles/b", tags=["Go"], category=["Notes"]),
        Article(title="C", folder="articles/c", category=["Paper"], deleted=True),
    ]
    for item in items:
        item.normalize()
    return items


def test_tags_and_categories():
    articles = _articles()
    assert tags(articles) == ["Go", "L2O"]
    assert category_paths(articles) == [["Notes"], ["Paper"], ["Paper", "L2O"]]


def test_filters():
    articles = _articles()
    assert [a.title for a in articles_with_tag(articles, "L2O")] == ["A"]
    assert [a.title for a in articles_in_category(articles, ["Paper"])] == ["A", "C"]
    assert [a.title for a in articles_in_category(articles, ["Paper", "L2O"])] == ["A"]
    assert articles_in_category(articles, ["Paper", "L2O", "X"]) == []
    assert [a.title for a in active_articles(articles)] == ["A", "B"]


def test_page_counts():
    articles = [Article(title=str(i)) for i in range(11)]
    cfg = SiteConfig()
    assert home_page_count(cfg, articles) == 2
    assert article_list_page_count(cfg, articles) == 1
    assert home_page_count(cfg, []) == 1
    assert cfg.home_page_size == 0
    assert article_list_page_count(SiteConfig(article_list_page_size=5), articles) == 3


def test_resolve_article_input_candidates(tmp_path):
    folder = tmp_path / "articles" / "x"
    folder.mkdir(parents=True)
    (folder / "b.tex").write_text("", encoding="utf-8")
    (folder / "a.tex").write_text("", encoding="utf-8")
    article = Article(title="x", folder="articles/x")
    assert resolve_article_input(str(tmp_path), article) == str(folder / "a.tex")
    (folder / "index.tex").write_text("", encoding="utf-8")
    assert resolve_article_input(str(tmp_path), article) == str(folder / "index.tex")
    article.main_file = "sub/entry.tex"
    assert resolve_article_input(str(tmp_path), article) == str(folder / "sub" / "entry.tex")


def test_resolve_article_input_without_entry_raises(tmp_path):
    (tmp_path / "articles" / "empty").mkdir(parents=True)
    with pytest.raises(SiteDataError):
        resolve_article_input(str(tmp_path), Article(title="e", folder="articles/empty"))