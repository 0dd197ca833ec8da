from pathlib import Path

import pytest

from folio.html_utils import absolutize_html_urls, escape_html, is_external_url, join_root_url
from folio.utils import (
    category_of,
    ensure_clean_dir,
    first_paragraph,
    is_markdown,
    slugify,
    source_url,
    titleize,
)


@pytest.mark.parametrize(
    "name, slug",
    [
        ("2024-01-15-Hello World", "hello-world"),
        ("C++", "c"),
        ("Chat Bot!", "chat-bot"),
        ("", "index"),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_titleize():
    assert titleize("2024-01-15-hello-world.md") == "Hello World"
    assert titleize("my_notes") == "My Notes"
    assert titleize("---") == "Untitled"


def test_category_and_source_url():
    assert category_of(Path("index.md")) == ""
    assert category_of(Path("blog/2024/post.md")) == "blog"
    assert source_url(Path("index.md")) == "/"
    assert source_url(Path("works/index.md")) == "/works/"
    assert source_url(Path("projects/2023-05-01-Chat Bot.md")) == "/projects/chat-bot/"
    assert source_url(Path("about.md")) == "/about/"


def test_is_markdown():
    assert is_markdown(Path("a.md"))
    assert is_markdown(Path("a.MARKDOWN"))
    assert not is_markdown(Path("a.txt"))


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    target.mkdir()
    (target / "old.txt").write_text("x", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []


def test_first_paragraph_skips_markup_and_truncates():
    text = "# Title\n\n![img](a.png)\n\nSome **bold** [link](x.md) text.\n\nSecond."
    assert first_paragraph(text) == "Some bold link text."
    long = "word " * 60
    summary = first_paragraph(long, limit=20)
    assert len(summary) == 20
    assert summary.endswith("…")
    assert first_paragraph("```\ncode\n```") == ""


def test_escape_html():
    assert escape_html('<a href="x">&</a>') == "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"


def test_is_external_url():
    assert is_external_url("https://github.com")
    assert is_external_url("//cdn.example.com/x.js", "https://me.dev")
    assert not is_external_url("https://me.dev/a/", "https://me.dev")
    assert not is_external_url("/about/")


def test_join_root_url():
    assert join_root_url("https://example.com/", "/about/") == "https://example.com/about/"
    assert join_root_url("", "/about/") == "/about/"


def test_absolutize_html_urls():
    html = (
        '<a href="/about/">a</a><img src="/x.png">'
        '<a href="https://o.io">o</a><a href="#top">t</a><a href="mailto:a@b.c">m</a>'
    )
    out = absolutize_html_urls(html, "http://localhost:4000")
    assert 'href="http://localhost:4000/about/"' in out
    assert 'src="http://localhost:4000/x.png"' in out
    assert 'href="https://o.io"' in out
    assert 'href="#top"' in out
    assert 'href="mailto:a@b.c"' in out
    assert absolutize_html_urls(html, "") == html
