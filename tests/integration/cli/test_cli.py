"""Integration tests for the mdrender CLI commands"""

import json

from typer.testing import CliRunner

from mdrender.cli.cli import app


runner = CliRunner()


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("render", "list", "build", "schema"):
        assert command in result.output


def test_render_json(tmp_path):
    """render writes the slug, front matter and payload of one document."""
    src = tmp_path / "Hello World.md"
    src.write_text("---\ntitle: Hello\n---\n\n# Hello\n\nWorld\n")
    out = tmp_path / "hello.json"

    result = runner.invoke(app, ["render", str(src), "--out", str(out)])

    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert data["slug"] == "hello-world"
    assert data["front_matter"]["title"] == "Hello"
    assert data["payload"]["headings"] == [{"slug": "hello", "text": "Hello", "level": 1}]


def test_render_html(tmp_path):
    """--html prints the rendered, sanitized HTML."""
    src = tmp_path / "page.md"
    src.write_text("# Hi\n\n<script>x()</script>\n")
    out = tmp_path / "page.html"

    result = runner.invoke(app, ["render", str(src), "--html", "--out", str(out)])

    assert result.exit_code == 0, result.output
    html = out.read_text()
    assert '<h1 id="hi">' in html
    assert "script" not in html


def test_render_missing_file(tmp_path):
    result = runner.invoke(app, ["render", str(tmp_path / "nope.md")])
    assert result.exit_code == 1


def test_render_strict_front_matter(tmp_path):
    """--strict turns malformed front matter into a failure."""
    src = tmp_path / "bad.md"
    src.write_text("---\ntitle: [x\n---\nBody\n")
    assert runner.invoke(app, ["render", str(src), "--out", str(tmp_path / "a.json")]).exit_code == 0
    assert runner.invoke(app, ["render", str(src), "--strict"]).exit_code == 1


def test_list_newest_first(content_dir):
    result = runner.invoke(app, ["list", str(content_dir)])
    assert result.exit_code == 0, result.output
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    assert [line.split()[1] for line in lines] == ["newer", "older", "about"]


def test_list_missing_root(tmp_path):
    assert runner.invoke(app, ["list", str(tmp_path / "missing")]).exit_code == 1


def test_build_writes_payloads_and_index(content_dir, tmp_path, write_doc):
    """build writes one payload per document plus an ordered index with failures."""
    write_doc(content_dir, "broken.md", "---\ntitle: [x\n---\nBody\n")
    (tmp_path / "config.yaml").write_text("strict_frontmatter: true\n")
    dist = tmp_path / "dist"

    result = runner.invoke(app, ["build", str(content_dir), "--out-dir", str(dist)])

    assert result.exit_code == 0, result.output
    index = json.loads((dist / "index.json").read_text())
    assert [d["slug"] for d in index["documents"]] == ["newer", "older", "about"]
    assert index["documents"][0]["frontmatter"] == {"title": "Newer", "date": "2024-03-01"}
    assert [(e["slug"], e["kind"]) for e in index["errors"]] == [("broken", "MetadataParseError")]
    payload = json.loads((dist / "newer.json").read_text())["payload"]
    assert payload["version"] == 1
    assert not (dist / "broken.json").exists()


def test_build_uses_content_root_setting(content_dir, tmp_path, monkeypatch):
    """Without an argument build reads the configured content root."""
    monkeypatch.setenv("MDRENDER_CONTENT_ROOT", str(content_dir))
    monkeypatch.setenv("MDRENDER_OUTPUT_DIR", str(tmp_path / "site"))
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "site" / "about.json").exists()


def test_schema_prints_yaml(tmp_path):
    """schema prints the effective allow-list, honouring config.yaml."""
    (tmp_path / "config.yaml").write_text("allowed_tags: [p, em]\n")
    result = runner.invoke(app, ["schema"])
    assert result.exit_code == 0, result.output
    assert "allowed_tags:\n- em\n- p" in result.stdout
