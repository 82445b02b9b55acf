import json
from pathlib import Path

from click.testing import CliRunner

from tagindex import core


def write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def make_site(root: Path) -> None:
    write_file(root / "_posts" / "2018-05-01-laravel.md", "---\ntitle: Laravel\ntags: [PHP, Laravel]\n---\nBody\n")
    write_file(root / "_posts" / "2018-06-01-testing.md", "---\ntitle: Tests\ntags: [Laravel, Unit Testing]\n---\n")
    (root / "tag").mkdir()


def test_generate_with_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-1] == "Tags generated, total: 3"
    names = sorted(p.name for p in (tmp_path / "tag").iterdir())
    assert names == ["laravel.md", "php.md", "unit-testing.md"]


def test_generate_with_explicit_directories(tmp_path):
    write_file(tmp_path / "content" / "post.md", "---\ntags: [ReactPHP]\n---\n")
    (tmp_path / "out").mkdir()

    runner = CliRunner()
    result = runner.invoke(
        core.cli,
        [
            "generate",
            "--content-dir",
            str(tmp_path / "content"),
            "--output-dir",
            str(tmp_path / "out"),
        ],
    )
    assert result.exit_code == 0, result.output
    assert (tmp_path / "out" / "reactphp.md").exists()


def test_generate_json_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate", "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.splitlines()[-1])
    assert payload["ok"] is True
    assert payload["total"] == 3
    assert payload["tags"] == ["Laravel", "PHP", "Unit Testing"]
    assert payload["files_scanned"] == 2


def test_generate_dry_run(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "would write" in result.output
    assert list((tmp_path / "tag").iterdir()) == []


def test_generate_uses_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "blog" / "posts" / "a.markdown", "---\ntags: [OOP]\n---\n")
    (tmp_path / "blog" / "tags").mkdir()
    write_file(tmp_path / "blog" / "tagindex.json", json.dumps({
        "content_dir": "posts",
        "output_dir": "tags",
        "file_extension": "markdown",
    }))

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate", "--config", "blog/tagindex.json"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "blog" / "tags" / "oop.markdown").exists()


def test_generate_keep_stale(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)
    write_file(tmp_path / "tag" / "cobol.md", "---\nlayout: tag\ntag: COBOL\n---")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate", "--keep-stale"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "tag" / "cobol.md").exists()

    result = runner.invoke(core.cli, ["generate"])
    assert result.exit_code == 0, result.output
    assert "Removed stale tag pages: 1" in result.output
    assert not (tmp_path / "tag" / "cobol.md").exists()


def test_tags_listing_with_summary(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["tags", "--summary"])
    assert result.exit_code == 0, result.output
    rows = [json.loads(line) for line in result.output.splitlines()]
    assert rows[0]["tag"] == "Laravel"
    assert len(rows[0]["files"]) == 2
    assert rows[2] == {
        "tag": "Unit Testing",
        "slug": "unit-testing",
        "files": [str(Path("_posts") / "2018-06-01-testing.md")],
    }
    assert rows[-1] == {"summary": {"total_tags": 3, "files_scanned": 2}}


def test_generate_reports_skipped_post_and_succeeds(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)
    (tmp_path / "_posts" / "broken.md").write_bytes(b"---\ntags: [\xff\xfe]\n---\n")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate"])
    assert result.exit_code == 0, result.output
    assert "Warning: skipped" in result.output
    assert "broken.md" in result.output
    assert result.output.splitlines()[-1] == "Tags generated, total: 3"


def test_generate_with_extension_option(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "_posts" / "post.markdown", "---\ntags: [Design Patterns]\n---\n")
    write_file(tmp_path / "_posts" / "other.md", "---\ntags: [Ignored]\n---\n")
    (tmp_path / "tag").mkdir()

    runner = CliRunner()
    result = runner.invoke(core.cli, ["generate", "--extension", "markdown"])
    assert result.exit_code == 0, result.output
    assert [p.name for p in (tmp_path / "tag").iterdir()] == ["design-patterns.markdown"]


def test_generate_verbose(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_site(tmp_path)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["-v", "generate"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-1] == "Tags generated, total: 3"
