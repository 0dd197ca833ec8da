from pathlib import Path

import pytest

from folio.config import config_from_mapping
from folio.documents import ContentDocument
from folio.errors import IconNotFoundError
from folio.icons import IconResolver
from folio.plugins import (
    CompressPlugin,
    IconPlugin,
    LinkRewritePlugin,
    PluginContext,
    PluginRegistry,
    create_plugin_registry,
)

SVG = '<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg" class="old" viewBox="0 0 24 24"><path d="M0 0"/></svg>\n'


def make_context(tmp_path: Path, rel: str = "blog/post.md", site_url: str = "") -> PluginContext:
    content = tmp_path / "content"
    document = ContentDocument.create(content / rel, {"title": "x"}, "", category=rel.split("/")[0])
    return PluginContext(document=document, content_root=content, site_url=site_url)


def write_icon(tmp_path: Path, rel: str) -> Path:
    path = tmp_path / "icons" / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SVG, encoding="utf-8")
    return path


def test_links_rewrite_relative_markdown(tmp_path):
    html = '<a href="../projects/2023-01-01-chat-bot.md#demo">bot</a> <a href="other.md">o</a>'
    out = LinkRewritePlugin().apply(html, make_context(tmp_path))
    assert 'href="/projects/chat-bot/#demo"' in out
    assert 'href="/blog/other/"' in out


def test_links_rewrite_root_markdown(tmp_path):
    out = LinkRewritePlugin().apply('<a href="/works/index.md">w</a>', make_context(tmp_path))
    assert 'href="/works/"' in out


def test_links_mark_external_only(tmp_path):
    html = (
        '<a href="https://github.com/me">gh</a>'
        '<a href="https://me.dev/about/">self</a>'
        '<a href="/about/">about</a>'
        '<a href="mailto:me@me.dev">mail</a>'
    )
    out = LinkRewritePlugin().apply(html, make_context(tmp_path, site_url="https://me.dev"))
    assert '<a href="https://github.com/me" target="_blank" rel="noopener noreferrer">' in out
    assert '<a href="https://me.dev/about/">' in out
    assert '<a href="/about/">' in out
    assert '<a href="mailto:me@me.dev">' in out


def test_links_leave_paths_outside_content_alone(tmp_path):
    html = '<a href="../../../README.md">readme</a>'
    assert LinkRewritePlugin().apply(html, make_context(tmp_path)) == html


def test_icon_plugin_inlines_svg(tmp_path):
    write_icon(tmp_path, "mdi/github.svg")
    plugin = IconPlugin(IconResolver(tmp_path / "icons"))
    out = plugin.apply('<p><Icon name="mdi:github" class="big" label="GitHub" /></p>', make_context(tmp_path))
    assert out.startswith("<p><svg")
    assert 'class="icon icon-mdi-github big"' in out
    assert 'aria-label="GitHub"' in out
    assert "<?xml" not in out
    assert 'class="old"' not in out


def test_icon_plugin_falls_back_to_flat_icon(tmp_path):
    write_icon(tmp_path, "github.svg")
    plugin = IconPlugin(IconResolver(tmp_path / "icons"))
    out = plugin.apply('<Icon name="mdi:github"></Icon>', make_context(tmp_path))
    assert 'aria-hidden="true"' in out


def test_icon_plugin_missing_icon_raises(tmp_path):
    plugin = IconPlugin(IconResolver(tmp_path / "icons"))
    with pytest.raises(IconNotFoundError) as excinfo:
        plugin.apply('<Icon name="nope" />', make_context(tmp_path))
    assert excinfo.value.name == "nope"


def test_compress_preserves_preformatted_blocks(tmp_path):
    html = (
        "<html>\n  <body>\n    <!-- note -->\n    <p>a   b</p>\n"
        "<pre><code>x  =  1\n  y</code></pre>\n<script>var a  =  1;\n</script>\n"
        "<!--[if IE]>old<![endif]-->\n  </body>\n</html>\n"
    )
    out = CompressPlugin().apply(html, make_context(tmp_path))
    assert "<!-- note -->" not in out
    assert "<p>a b</p>" in out
    assert "<pre><code>x  =  1\n  y</code></pre>" in out
    assert "<script>var a  =  1;\n</script>" in out
    assert "<!--[if IE]>" in out
    assert "\n" not in out.replace("x  =  1\n  y", "").replace("1;\n", "")


class ShoutPlugin:
    name = "shout"
    stage = "content"

    def apply(self, html, context):
        return html.upper()


def test_registry_applies_canonical_order_regardless_of_registration(tmp_path):
    registry = PluginRegistry()
    registry.register(CompressPlugin())
    registry.register(ShoutPlugin())
    registry.register(LinkRewritePlugin())
    assert registry.names() == ["links", "compress", "shout"]


def test_registry_runs_only_requested_stage(tmp_path):
    registry = PluginRegistry([ShoutPlugin(), CompressPlugin()])
    context = make_context(tmp_path)
    assert registry.apply("<p>a  b</p>", context, stage="content") == "<P>A  B</P>"
    assert registry.apply("<p>a  b</p>", context, stage="page") == "<p>a b</p>"


def test_registry_rejects_non_plugins():
    with pytest.raises(TypeError):
        PluginRegistry().register(object())


def test_create_plugin_registry_follows_configuration(tmp_path):
    config = config_from_mapping(tmp_path, {"plugins": ["compress", "links"]})
    registry = create_plugin_registry(config)
    assert registry.names() == ["links", "compress"]
    assert len(create_plugin_registry(config_from_mapping(tmp_path, {"plugins": []}))) == 0
