"""Application configuration: settings schema and config.yaml loader"""

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from mdrender.core.schema import SanitizationSchema
from mdrender.core.stages.base import PipelineConfig


CONFIG_FILE = "config.yaml"


def _split(v):
    if isinstance(v, str):
        return [part.strip() for part in v.split(",") if part.strip()]
    return v


class Settings(BaseModel):
    content_root:       str = Field(default="content", description="Directory holding the documents")
    extensions:         list[str] = Field(default=[".md", ".mdx"], description="File suffixes to load")
    recursive:          bool = Field(default=False, description="Descend into subdirectories")
    output_dir:         str = Field(default="dist", description="Directory for built payload JSON")
    parser_config:      str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    strict_frontmatter: bool = Field(default=False, description="Fail a load on malformed front matter")
    sanitize:           bool = Field(default=True, description="Run the allow-list sanitizer last")
    anchor_class:       str = Field(default="anchor", description="Class of heading self-links")
    allowed_tags:       Optional[list[str]] = None
    allowed_attributes: Optional[dict[str, list[str]]] = None
    global_attributes:  Optional[list[str]] = None
    protocols:          Optional[dict[str, list[str]]] = None
    enabled_languages:  Optional[list[str]] = Field(default=None, description="None = all languages")

    @field_validator("extensions", "allowed_tags", "global_attributes", "enabled_languages", mode="before")
    @classmethod
    def _comma_list(cls, v):
        return _split(v)

    @field_validator("allowed_attributes", "protocols", mode="before")
    @classmethod
    def _json_mapping(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("extensions")
    @classmethod
    def _dotted(cls, v):
        return [e if e.startswith(".") else f".{e}" for e in v]

    def sanitization_schema(self) -> SanitizationSchema:
        return SanitizationSchema.build(
            allowed_tags=self.allowed_tags,
            allowed_attributes=self.allowed_attributes,
            global_attributes=self.global_attributes,
            protocols=self.protocols,
        )

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            parser_config=self.parser_config,
            sanitization=self.sanitization_schema(),
            sanitize=self.sanitize,
            enabled_languages=self.enabled_languages,
            anchor_class=self.anchor_class or None,
        )


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDRENDER_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDRENDER_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
