"""Root test configuration: content-directory fixtures"""

import pytest


def _write(root, name: str, text: str):
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(name="write_doc")
def write_doc_fixture():
    """Write a document under a root, creating parent directories."""
    return _write


@pytest.fixture(name="content_dir")
def content_dir_fixture(tmp_path):
    """Content root with two dated posts and one undated page."""
    root = tmp_path / "content"
    root.mkdir()
    _write(root, "older.md", "---\ntitle: Older\ndate: 2024-01-01\n---\n\n# Older\n")
    _write(root, "newer.mdx", "---\ntitle: Newer\ndate: 2024-03-01\n---\n\n# Newer\n")
    _write(root, "about.md", "# About\n\nNo front matter here.\n")
    return root


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    """Run each test from its tmp directory so config.yaml lookups stay isolated."""
    monkeypatch.chdir(tmp_path)
    for key in ("MDRENDER_CONTENT_ROOT", "MDRENDER_OUTPUT_DIR", "MDRENDER_SANITIZE",
                "MDRENDER_ENABLED_LANGUAGES", "MDRENDER_STRICT_FRONTMATTER"):
        monkeypatch.delenv(key, raising=False)
