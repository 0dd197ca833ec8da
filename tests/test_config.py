from pathlib import Path

import pytest

from folio.config import (
    PLUGIN_ORDER,
    RenderConfiguration,
    config_from_mapping,
    load_config,
    load_data,
)
from folio.errors import ConfigError


def write_config(root: Path, text: str) -> None:
    (root / "folio.yaml").write_text(text, encoding="utf-8")


def test_defaults_without_config_file(tmp_path):
    config = load_config(tmp_path)
    assert config.render == RenderConfiguration()
    assert config.render.highlight_theme == "github-dark"
    assert config.render.recognizes("Python")
    assert not config.render.recognizes("rust")
    assert config.render.plugins == PLUGIN_ORDER
    assert config.output_path == tmp_path / "dist"
    assert config.content_path == tmp_path / "content"
    assert config.output_mode == "static"
    assert config.deployment_adapter == "none"


def test_site_metadata_and_camel_case_aliases(tmp_path):
    write_config(
        tmp_path,
        "site:\n  title: Me\n  url: https://me.dev/\n"
        "highlightTheme: monokai\nrecognizedLanguages: [Rust, python]\n"
        "outputMode: server\ndeploymentAdapter: vercel\nwrap: false\n",
    )
    config = load_config(tmp_path)
    assert config.title == "Me"
    assert config.url == "https://me.dev"
    assert config.site["title"] == "Me"
    assert config.render.highlight_theme == "monokai"
    assert config.render.theme_class == "theme-monokai"
    assert config.render.recognized_languages == frozenset({"rust", "python"})
    assert config.render.wrap is False
    assert config.output_mode == "server"
    assert config.deployment_adapter == "vercel"


def test_plugins_are_reordered_canonically(tmp_path):
    config = config_from_mapping(tmp_path, {"plugins": ["compress", "icons", "links", "icons"]})
    assert config.render.plugins == ("links", "icons", "compress")
    assert config.render.has_plugin("icons")


@pytest.mark.parametrize(
    "raw, key",
    [
        ({"highlight_theme": "no-such-theme"}, "highlight_theme"),
        ({"recognized_languages": ["klingon"]}, "recognized_languages"),
        ({"recognized_languages": "python"}, "recognized_languages"),
        ({"plugins": ["minify"]}, "plugins"),
        ({"markdown_extensions": ["emoji"]}, "markdown_extensions"),
        ({"output_mode": "hybrid"}, "output_mode"),
        ({"deployment_adapter": "heroku"}, "deployment_adapter"),
        ({"site": ["not", "a", "mapping"]}, "site"),
    ],
)
def test_invalid_values_raise_config_error(tmp_path, raw, key):
    with pytest.raises(ConfigError) as excinfo:
        config_from_mapping(tmp_path, raw)
    assert excinfo.value.key == key


def test_invalid_yaml_raises_config_error(tmp_path):
    write_config(tmp_path, "site: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_non_mapping_config_raises(tmp_path):
    write_config(tmp_path, "- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_configuration_is_immutable(tmp_path):
    config = load_config(tmp_path)
    with pytest.raises(AttributeError):
        config.render.wrap = False


def test_load_data_merges_site_yaml(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "site.yaml").write_text("lang: fr\n", encoding="utf-8")
    (data_dir / "nav.yaml").write_text("- label: Home\n  url: /\n", encoding="utf-8")
    (data_dir / "empty.yaml").write_text("", encoding="utf-8")
    data = load_data(tmp_path)
    assert data["lang"] == "fr"
    assert data["nav"] == [{"label": "Home", "url": "/"}]
    assert "empty" not in data


def test_load_data_without_directory(tmp_path):
    assert load_data(tmp_path) == {}
