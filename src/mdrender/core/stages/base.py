"""Stage contract, capabilities, and per-run context shared by all pipeline stages"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mdrender.core.models import Node
from mdrender.core.schema import SanitizationSchema, default_schema
from mdrender.errors import SanitizationRemoval, UnsupportedSyntaxWarning


log = logging.getLogger(__name__)


class Capability(str, Enum):
    annotates  = "annotates"     # adds metadata, never removes nodes
    transforms = "transforms"    # restructures nodes
    filters    = "filters"       # may remove nodes


class PipelineConfig(BaseModel):
    """Read-only configuration shared by every document run."""
    model_config = ConfigDict(frozen=True)

    parser_config:     str = "gfm-like"
    sanitization:      SanitizationSchema = Field(default_factory=default_schema)
    sanitize:          bool = True
    enabled_languages: Optional[frozenset[str]] = None    # None = every language Pygments knows
    anchor_class:      Optional[str] = "anchor"

    @field_validator('enabled_languages', mode='before')
    @classmethod
    def _lower_languages(cls, v):
        if v is None:
            return v
        return frozenset(lang.strip().lower() for lang in v if lang.strip())


@dataclass
class StageContext:
    """Per-document run state: diagnostics and sanitizer audit records."""
    config:      PipelineConfig
    diagnostics: list[UnsupportedSyntaxWarning] = field(default_factory=list)
    removals:    list[SanitizationRemoval] = field(default_factory=list)

    def warn(self, message: str) -> None:
        log.warning(message)
        self.diagnostics.append(UnsupportedSyntaxWarning(message))


class Stage:
    """One ordered tree-to-tree transformation.

    Stages receive a tree they own (the pipeline passes a copy) and return the
    resulting tree. Per-document state lives on the context, never on the stage.
    """
    name: str = ""
    capability: Capability = Capability.transforms

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} ({self.capability.value})>"
