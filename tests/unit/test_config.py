"""Unit tests for config.py"""

import pytest

from mdrender.config import Settings, load_config


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or override exists."""
    settings = load_config()
    assert settings.content_root == "content"
    assert settings.extensions == [".md", ".mdx"]
    assert settings.sanitize is True


def test_load_config_uses_env(monkeypatch):
    """MDRENDER_CONTENT_ROOT env var is picked up by load_config."""
    monkeypatch.setenv("MDRENDER_CONTENT_ROOT", "docs")
    assert load_config().content_root == "docs"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """Env vars take precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("content_root: pages\noutput_dir: site\n")
    monkeypatch.setenv("MDRENDER_CONTENT_ROOT", "docs")
    settings = load_config()
    assert settings.content_root == "docs"
    assert settings.output_dir == "site"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDRENDER_OUTPUT_DIR", "env-dist")
    assert load_config(overrides={"output_dir": "cli-dist"}).output_dir == "cli-dist"
    assert load_config(overrides={"output_dir": None}).output_dir == "env-dist"


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("content_root: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_env_lists_and_mappings(monkeypatch):
    """List settings accept comma-separated strings; mappings accept JSON."""
    monkeypatch.setenv("MDRENDER_ENABLED_LANGUAGES", "python, js")
    monkeypatch.setenv("MDRENDER_PROTOCOLS", '{"href": ["https"]}')
    settings = load_config()
    assert settings.enabled_languages == ["python", "js"]
    assert settings.protocols == {"href": ["https"]}


def test_env_bool(monkeypatch):
    monkeypatch.setenv("MDRENDER_SANITIZE", "false")
    assert load_config().sanitize is False


def test_extensions_get_leading_dot():
    assert Settings(extensions="md, markdown").extensions == [".md", ".markdown"]


def test_pipeline_config_from_settings():
    """Sanitizer and highlighter settings flow into the pipeline configuration."""
    settings = Settings(allowed_tags=["p", "em"], enabled_languages=["Python"], anchor_class="")
    config = settings.pipeline_config()
    assert config.sanitization.allowed_tags == frozenset({"p", "em"})
    assert config.sanitization.allows_attribute("div", "class")
    assert config.enabled_languages == frozenset({"python"})
    assert config.anchor_class is None
