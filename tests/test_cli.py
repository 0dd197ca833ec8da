from datetime import date
from pathlib import Path

import yaml
from click.testing import CliRunner

from folio.cli import cli


def write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def create_project(root: Path) -> Path:
    write(root / "folio.yaml", "site:\n  title: Test\n")
    write(root / "content" / "blog" / "a.md", "---\ntitle: A\ndate: 2024-01-01\ntags: [react]\n---\nA\n")
    write(root / "content" / "blog" / "b.md", "---\ntitle: B\ndate: 2024-01-02\ntags: [react, git]\n---\nB\n")
    write(root / "content" / "projects" / "c.md", "---\ntitle: C\ntags: [python]\n---\nC\n")
    return root


def answers(monkeypatch, *values):
    responses = iter(values)

    class MockQuestion:
        def ask(self):
            return next(responses)

    def mock_prompt(*args, **kwargs):
        return MockQuestion()

    for name in ("select", "text"):
        monkeypatch.setattr(f"folio.cli.questionary.{name}", mock_prompt)


def test_build_succeeds(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 3 pages" in result.output
    assert (tmp_path / "dist" / "blog" / "a" / "index.html").exists()


def test_build_reports_failures_and_exits_non_zero(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "content" / "blog" / "broken.md", "---\ntitle: Broken\n")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "1 document(s) failed" in result.output
    assert "content/blog/broken.md:1: front matter block is never closed" in result.output
    assert (project / "dist" / "blog" / "a" / "index.html").exists()


def test_build_strict_stops(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "content" / "blog" / "broken.md", "---\ntitle: Broken\n")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build", "--strict"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: content/blog/broken.md:1" in result.output


def test_build_invalid_config(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "folio.yaml", "highlight_theme: nope\n")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "highlight_theme" in result.output


def test_build_without_content(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Expected content directory" in result.output


def test_check_reports_without_writing(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "content" / "blog" / "code.md", "---\ntitle: Code\ndate: 2024-02-02\n---\n```rust\nfn x() {}\n```\n")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["check"])
    assert result.exit_code == 0
    assert "Checked 4 documents: 0 failed, 1 warnings" in result.output
    assert not (project / "dist").exists()


def test_tags_lists_counts(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    result = CliRunner().invoke(cli, ["tags"], catch_exceptions=False)
    assert result.exit_code == 0
    lines = [line.split() for line in result.output.strip().splitlines()]
    assert lines == [["react", "2"], ["git", "1"], ["python", "1"]]


def test_serve_passes_ports(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["root"] = root
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self, include_drafts=False):
            called["drafts"] = include_drafts

    monkeypatch.setattr("folio.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--drafts", "--port", "5050", "--ws-port", "5051"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called == {"root": tmp_path, "port": 5050, "ws_port": 5051, "drafts": True}


def test_new_blog_post_has_required_front_matter(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    answers(monkeypatch, "blog", "Hello World", "python, notes", "2024-05-01")
    result = CliRunner().invoke(cli, ["new"], catch_exceptions=False)
    assert result.exit_code == 0

    target = tmp_path / "content" / "blog" / f"{date.today().isoformat()}-hello-world.md"
    assert target.exists()
    text = target.read_text(encoding="utf-8")
    front_matter = yaml.safe_load(text.split("---")[1])
    assert front_matter == {"title": "Hello World", "date": "2024-05-01", "tags": ["python", "notes"]}


def test_new_project_skips_date_and_tags(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    answers(monkeypatch, "projects", "Chat Bot", "")
    result = CliRunner().invoke(cli, ["new"], catch_exceptions=False)
    assert result.exit_code == 0
    text = (tmp_path / "content" / "projects" / "chat-bot.md").read_text(encoding="utf-8")
    assert text.startswith("---\ntitle: Chat Bot\n---\n")


def test_new_rejects_duplicate_slug(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    answers(monkeypatch, "projects", "C", "")
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_new_aborts_on_cancel(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    answers(monkeypatch, None)
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code == 1
    assert "Aborted" in result.output


def test_new_requires_content_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code != 0
    assert "No content/ directory found" in result.output


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "folio" in result.output


def test_module_main_entrypoint():
    from folio.__main__ import main

    assert callable(main)
