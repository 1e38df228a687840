import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from bazelblog.content import (
    ContentProcessor,
    FileContentLoader,
    Page,
    Post,
    load_pages,
    load_posts,
    output_url,
)
from bazelblog.extractors import (
    CompositeMetadataExtractor,
    DateExtractor,
    TitleExtractor,
    extract_frontmatter,
)
from bazelblog.renderers import (
    LegacyHTMLRenderer,
    MarkdownRenderer,
    RendererRegistry,
    _generate_heading_id,
)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_extract_frontmatter_variants():
    data, body = extract_frontmatter("---\ntitle: Hello\ndate: July 1, 2025\n---\n\nBody\n")
    assert data == {"title": "Hello", "date": "July 1, 2025"}
    assert body == "\nBody\n"

    data, body = extract_frontmatter("No frontmatter here")
    assert data == {} and body == "No frontmatter here"

    # malformed YAML keeps the whole text as body
    broken = "---\ntitle: [unclosed\n---\nBody"
    assert extract_frontmatter(broken) == ({}, broken)

    # a scalar block is not metadata
    scalar = "---\njust text\n---\nBody"
    assert extract_frontmatter(scalar) == ({}, scalar)

    # unterminated block
    open_block = "---\ntitle: x\nBody"
    assert extract_frontmatter(open_block) == ({}, open_block)


def test_title_extractor_falls_back_to_filename(tmp_path):
    extractor = TitleExtractor()
    path = tmp_path / "My Post.md"
    assert extractor.extract({"title": "Custom"}, path) == "Custom"
    assert extractor.extract({"title": "  "}, path) == "My Post"
    assert extractor.extract({}, path) == "My Post"
    assert extractor.extract({"title": 2025}, path) == "2025"


def test_date_extractor_falls_back_to_mtime(tmp_path):
    path = write(tmp_path / "post.md", "x")
    stamp = datetime(2020, 5, 17, 12, 0, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    extractor = DateExtractor()
    assert extractor.extract({"date": "July 1, 2025"}, path) == datetime(
        2025, 7, 1, tzinfo=timezone.utc
    )
    for frontmatter in ({}, {"date": ""}, {"date": "sometime soon"}):
        fallback = extractor.extract(frontmatter, path)
        assert fallback.timestamp() == stamp
        assert fallback.tzinfo is not None


def test_composite_extractor_strips_body(tmp_path):
    path = tmp_path / "Fallback.md"
    meta = CompositeMetadataExtractor().extract("---\ntitle: T\n---\n\n  Body text \n\n", path)
    assert meta.title == "T"
    assert meta.body == "Body text"
    assert meta.date is None
    assert meta.frontmatter == {"title": "T"}


def test_heading_ids():
    assert _generate_heading_id("Hello World") == "hello-world"
    assert _generate_heading_id("<em>Styled</em> Heading!") == "styled-heading"
    assert _generate_heading_id("???") == "heading"


def test_markdown_renderer_features():
    renderer = MarkdownRenderer()
    html = renderer.render(
        "## Getting Started\n\nline one\nline two\n\n~~gone~~\n\n"
        "| a | b |\n|---|---|\n| 1 | 2 |\n\n- [x] done\n\n## Getting Started\n"
    )
    assert '<h2 id="getting-started">Getting Started</h2>' in html
    assert '<h2 id="getting-started-1">' in html
    assert "line one<br />" in html
    assert "<del>gone</del>" in html
    assert "<table>" in html
    assert "checkbox" in html


def test_markdown_renderer_passes_raw_html_and_highlights():
    renderer = MarkdownRenderer()
    html = renderer.render('<div class="note">kept</div>\n\n```python\nprint("hi")\n```\n')
    assert '<div class="note">kept</div>' in html
    assert 'class="highlight"' in html

    plain = renderer.render("```\na < b\n```\n")
    assert "<pre><code>a &lt; b" in plain

    unknown = renderer.render("```nosuchlang\nx\n```\n")
    assert 'class="language-nosuchlang"' in unknown


def test_markdown_renderer_degrades_to_literal_text(monkeypatch):
    import bazelblog.renderers as renderers

    def exploding(*args, **kwargs):
        def markdown(text):
            raise RuntimeError("boom")

        return markdown

    monkeypatch.setattr(renderers.mistune, "create_markdown", exploding)
    assert MarkdownRenderer().render("a < b") == "<p>a &lt; b</p>\n"


def test_renderer_registry_selects_by_suffix(tmp_path):
    registry = RendererRegistry()
    assert isinstance(registry.get_renderer(tmp_path / "a.md"), MarkdownRenderer)
    assert isinstance(registry.get_renderer(tmp_path / "a.html"), LegacyHTMLRenderer)
    assert registry.get_renderer(tmp_path / "a.txt") is None
    assert LegacyHTMLRenderer().render("<html><body>B</body></html>") == "B"


def test_output_url():
    assert output_url("posts", "First Steps.md") == "posts/First Steps.html"
    assert output_url("pages", "about.html") == "pages/about.html"


def test_file_loader_scans_direct_children_in_name_order(tmp_path):
    source = tmp_path / "pages"
    write(source / "b.md", "b")
    write(source / "a.html", "a")
    write(source / "c.txt", "c")
    write(source / "nested" / "d.md", "d")

    assert [p.name for p in FileContentLoader(source).iter_files()] == ["b.md"]
    assert [p.name for p in FileContentLoader(source, include_html=True).iter_files()] == [
        "a.html",
        "b.md",
    ]
    assert FileContentLoader(tmp_path / "missing").iter_files() == []


def test_load_posts_sorted_newest_first_and_stable(tmp_path):
    posts_dir = tmp_path / "posts"
    write(posts_dir / "First Steps.md", "---\ntitle: First Steps\ndate: July 1, 2025\n---\n\nHi")
    write(posts_dir / "Design Ideas.md", "---\ntitle: Design Ideas\ndate: June 20, 2025\n---\nX")
    write(posts_dir / "b-same.md", "---\ndate: 2024-01-01\n---\nB")
    write(posts_dir / "a-same.md", "---\ndate: 2024-01-01\n---\nA")
    write(posts_dir / "legacy.html", "<body>ignored</body>")

    posts = load_posts(posts_dir)
    assert [p.title for p in posts] == ["First Steps", "Design Ideas", "a-same", "b-same"]
    first = posts[0]
    assert isinstance(first, Post)
    assert first.url == "posts/First Steps.html"
    assert first.source_filename == "First Steps.md"
    assert first.date == datetime(2025, 7, 1, tzinfo=timezone.utc)
    assert first.body == "<p>Hi</p>\n"


def test_load_posts_missing_dir(tmp_path):
    assert load_posts(tmp_path / "nope") == []


def test_load_pages_markdown_and_legacy_html(tmp_path):
    pages_dir = tmp_path / "pages"
    write(pages_dir / "contact.md", "---\ntitle: Contact Us\n---\n# Reach out")
    write(
        pages_dir / "about.html",
        "<html><head><title>x</title></head><body><h1>About</h1></body></html>",
    )

    pages = load_pages(pages_dir)
    assert [p.url for p in pages] == ["pages/about.html", "pages/contact.html"]
    about, contact = pages
    assert isinstance(about, Page)
    assert about.title == "about"
    assert about.body == "<h1>About</h1>"
    assert contact.title == "Contact Us"
    assert '<h1 id="reach-out">Reach out</h1>' in contact.body


def test_load_pages_url_collision_last_wins(tmp_path, caplog):
    pages_dir = tmp_path / "pages"
    write(pages_dir / "about.html", "<body>from html</body>")
    write(pages_dir / "about.md", "from markdown")

    with caplog.at_level(logging.WARNING, logger="bazelblog.content"):
        pages = ContentProcessor().load_pages(pages_dir)

    assert len(pages) == 1
    assert pages[0].source_filename == "about.md"
    assert "<p>from markdown</p>" in pages[0].body
    assert "pages/about.html" in caplog.text


def test_extract_frontmatter_empty_block_and_bom():
    data, body = extract_frontmatter("---\n---\n\nHello")
    assert data == {}
    assert body == "\nHello"

    # an empty block does not swallow a later delimiter in the body
    data, body = extract_frontmatter("---\n---\nIntro\n---\nMore")
    assert data == {} and body == "Intro\n---\nMore"

    data, body = extract_frontmatter("\ufeff---\ntitle: Real\n---\nBody")
    assert data == {"title": "Real"}
    assert body == "Body"


def test_bom_prefixed_post_keeps_frontmatter_title(tmp_path):
    path = tmp_path / "posts" / "b.md"
    path.parent.mkdir()
    path.write_bytes("\ufeff---\ntitle: Real\ndate: 2025-01-01\n---\nText".encode("utf-8"))
    [post] = load_posts(tmp_path / "posts")
    assert post.title == "Real"
    assert "<h2" not in post.body


def test_non_utf8_source_does_not_fail_the_load(tmp_path, caplog):
    posts_dir = tmp_path / "posts"
    write(posts_dir / "good.md", "---\ndate: 2025-01-02\n---\nFine")
    latin = posts_dir / "latin1.md"
    latin.write_bytes(
        "---\ntitle: Caf\xe9\ndate: 2025-01-01\n---\nCr\xe8me br\xfbl\xe9e".encode("latin-1")
    )
    write(tmp_path / "pages" / "ok.md", "ok")
    (tmp_path / "pages" / "legacy.html").write_bytes("<body>r\xe9sum\xe9</body>".encode("latin-1"))

    with caplog.at_level(logging.WARNING, logger="bazelblog.content"):
        posts = load_posts(posts_dir)
        pages = load_pages(tmp_path / "pages")

    assert [p.source_filename for p in posts] == ["good.md", "latin1.md"]
    assert posts[1].title == "Caf\ufffd"
    assert "\ufffd" in posts[1].body
    assert [p.source_filename for p in pages] == ["legacy.html", "ok.md"]
    assert "latin1.md is not valid UTF-8" in caplog.text
