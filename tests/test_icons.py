import pytest

from folio.errors import IconNotFoundError
from folio.icons import IconResolver


def test_inline_grouped_icon_with_label(tmp_path):
    (tmp_path / "mdi").mkdir()
    (tmp_path / "mdi" / "github.svg").write_text(
        '<?xml version="1.0"?>\n<!-- logo -->\n<svg class="old" viewBox="0 0 24 24"><path d="M0 0"/></svg>',
        encoding="utf-8",
    )
    svg = IconResolver(tmp_path).inline("mdi:github", css_class="w-4", label="GitHub")
    assert svg.startswith('<svg viewBox="0 0 24 24" class="icon icon-mdi-github w-4" role="img"')
    assert 'aria-label="GitHub"' in svg
    assert "old" not in svg
    assert "<?xml" not in svg


def test_unlabelled_icon_is_hidden(tmp_path):
    (tmp_path / "star.svg").write_text("<svg><path/></svg>", encoding="utf-8")
    resolver = IconResolver(tmp_path)
    assert resolver.inline("star") == '<svg class="icon icon-star" aria-hidden="true"><path/></svg>'
    # falls back to the flat file when the set directory is absent
    assert resolver.resolve("mdi:star") == tmp_path / "star.svg"


def test_missing_icon_lists_searched_paths(tmp_path):
    with pytest.raises(IconNotFoundError) as excinfo:
        IconResolver(tmp_path).inline("mdi:ghost")
    assert excinfo.value.searched_paths == [tmp_path / "mdi" / "ghost.svg", tmp_path / "ghost.svg"]
