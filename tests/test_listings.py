from datetime import date
from types import SimpleNamespace

import pytest

from folio.listings import PageCollection, TagIndex, build_listings, build_tag_index


def page(title, tags=(), category="blog", sort_date=None, draft=False, url=None):
    return SimpleNamespace(
        title=title,
        tags=tuple(tags),
        category=category,
        sort_date=sort_date,
        draft=draft,
        url=url or f"/{category}/{title.lower()}/",
        content=f"<p>{title}</p>",
    )


def test_tag_counts_aggregate_across_documents():
    pages = [page("A", ["react"]), page("B", ["react", "git"]), page("C", ["python"])]
    index = build_tag_index(pages)
    assert index.counts() == {"react": 2, "git": 1, "python": 1}
    assert list(index.counts()) == ["react", "git", "python"]


def test_tags_group_case_insensitively_keeping_first_spelling():
    pages = [page("A", ["Python"]), page("B", ["python", "PYTHON"])]
    index = build_tag_index(pages)
    assert list(index) == ["Python"]
    assert len(index["python"]) == 2


def test_tag_index_missing_key():
    with pytest.raises(KeyError):
        TagIndex({})["nope"]


def test_tag_url_is_slugged():
    index = build_tag_index([page("A", ["C++ Tips"])])
    assert index.url_for("C++ Tips") == "/tags/c-tips/"
    assert index.url_for("c++ tips") == "/tags/c-tips/"


def test_clashing_tag_slugs_get_distinct_urls(caplog):
    pages = [page("A", ["C"]), page("B", ["C++"]), page("C", ["C#"])]
    with caplog.at_level("WARNING", logger="folio"):
        index = build_tag_index(pages)
    assert [index.url_for(tag) for tag in ("C", "C++", "C#")] == ["/tags/c/", "/tags/c-2/", "/tags/c-3/"]
    assert "'C++' shares the slug 'c'" in caplog.text

    urls = [listing.url for listing in build_listings(pages, {}, index) if listing.tag]
    assert urls == ["/tags/c/", "/tags/c-2/", "/tags/c-3/"]


def test_collection_sorting_newest_first_then_title():
    pages = PageCollection(
        [
            page("b", sort_date=date(2020, 1, 1)),
            page("a", sort_date=date(2020, 1, 1)),
            page("undated"),
            page("new", sort_date=date(2024, 5, 1)),
        ]
    )
    assert [p.title for p in pages.sorted()] == ["new", "a", "b", "undated"]
    assert [p.title for p in pages.sorted(reverse=False)] == ["undated", "a", "b", "new"]
    assert [p.title for p in pages.latest(1)] == ["new"]


def test_collection_filters():
    pages = PageCollection(
        [page("a", ["Git"], "works"), page("b", ["git"], "blog", draft=True), page("c")]
    )
    assert [p.title for p in pages.category("works")] == ["a"]
    assert [p.title for p in pages.with_tag("GIT")] == ["a", "b"]
    assert [p.title for p in pages.published()] == ["a", "c"]


def test_build_listings_uses_category_index_page():
    pages = [
        page("Founder", ["Python"], "works", date(2022, 1, 1)),
        page("Intern", ["Python"], "works", date(2018, 1, 1)),
        page("Hidden", ["Python"], "blog", draft=True),
    ]
    intro = page("My Work", category="works", url="/works/")
    listings = {listing.url: listing for listing in build_listings(pages, {"works": intro}, build_tag_index(pages))}

    works = listings["/works/"]
    assert works.title == "My Work"
    assert works.intro == "<p>My Work</p>"
    assert [p.title for p in works.pages] == ["Founder", "Intern"]
    assert "/blog/" not in listings

    assert listings["/tags/"].counts == {"Python": 3}
    tag = listings["/tags/python/"]
    assert tag.title == "#Python"
    assert tag.layout == "tag"
    assert [p.title for p in tag.pages] == ["Founder", "Intern"]


def test_build_listings_without_tags_has_no_tag_pages():
    listings = build_listings([page("x", category="projects")], {}, TagIndex({}))
    assert [listing.url for listing in listings] == ["/projects/"]
    assert listings[0].title == "Projects"
