"""Tree, front matter, payload, and load-result models for the render pipeline"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeType(str, Enum):
    root      = "root"
    element   = "element"      # HTML-named element (markdown constructs map here)
    text      = "text"
    raw       = "raw"          # verbatim HTML admitted at parse time, resolved by sanitize
    component = "component"    # embeddable component, resolved by the presentation layer


class Node(BaseModel):
    """A single node of the render tree."""
    type:     NodeType
    tag:      Optional[str] = None
    attrs:    dict[str, Any] = Field(default_factory=dict)
    children: list["Node"] = Field(default_factory=list)
    value:    Optional[str] = None
    data:     dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def root(cls, children: list["Node"] = None) -> "Node":
        return cls(type=NodeType.root, children=children or [])

    @classmethod
    def element(cls, tag: str, attrs: dict = None, children: list["Node"] = None, **data) -> "Node":
        return cls(type=NodeType.element, tag=tag, attrs=attrs or {}, children=children or [], data=data)

    @classmethod
    def text(cls, value: str) -> "Node":
        return cls(type=NodeType.text, value=value)

    @classmethod
    def raw(cls, value: str) -> "Node":
        return cls(type=NodeType.raw, value=value)

    @classmethod
    def component(cls, name: str, attrs: dict = None, children: list["Node"] = None, **data) -> "Node":
        return cls(type=NodeType.component, tag=name, attrs=attrs or {}, children=children or [], data=data)


def parse_iso_date(value: str) -> datetime:
    """Parse an ISO date or datetime string into a naive UTC datetime."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        parsed = datetime.combine(date.fromisoformat(value), datetime.min.time())
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_jsonable(value: Any) -> Any:
    """Normalize YAML-loaded values: dates become ISO strings, keys become strings."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


class FrontMatter(BaseModel):
    """Declared front matter fields plus an open extension bag (model_extra)."""
    model_config = ConfigDict(extra="allow")

    title:       Optional[str] = None
    description: Optional[str] = None
    date:        Optional[str] = Field(default=None, description="ISO date or datetime")
    tags:        Optional[list[str]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _scalar_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, v):
        if v is None:
            return v
        if isinstance(v, (datetime, date)):
            return v.isoformat()
        if not isinstance(v, str):
            raise ValueError(f"expected an ISO date string, got {type(v).__name__}")
        parse_iso_date(v)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, v):
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        if isinstance(v, (list, tuple)):
            return [str(t) for t in v]
        return v

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def as_dict(self) -> dict[str, Any]:
        """Declared fields that are set, followed by extension keys."""
        out = {k: getattr(self, k) for k in type(self).model_fields if getattr(self, k) is not None}
        out.update(self.extra)
        return out

    def sort_key(self) -> Optional[datetime]:
        return parse_iso_date(self.date) if self.date else None


class HeadingRef(BaseModel):
    """Outline entry for one enriched heading."""
    model_config = ConfigDict(frozen=True)
    slug:  str
    text:  str
    level: int


class RenderPayload(BaseModel):
    """Opaque, immutable result handed to the presentation layer."""
    model_config = ConfigDict(frozen=True)

    version:  int = 1
    body:     str                       # canonical JSON of the final tree
    headings: tuple[HeadingRef, ...] = ()
    warnings: tuple[str, ...] = ()
    digest:   str

    @property
    def tree(self) -> Node:
        """Decode a fresh copy of the final tree."""
        return Node.model_validate_json(self.body)


class RenderedDocument(BaseModel):
    """Successful single-document load: payload plus extracted front matter."""
    slug:         str
    front_matter: FrontMatter
    payload:      RenderPayload


@dataclass
class Document:
    """Per-load working state; flows through the pipeline exactly once."""
    slug:         str
    raw_source:   str
    path:         Optional[Path] = None
    front_matter: Optional[FrontMatter] = None
    body:         Optional[str] = None       # raw_source without the front matter block
    tree:         Optional[Node] = None
    payload:      Optional[RenderPayload] = None


@dataclass
class LoadError:
    """A per-file failure in a batch load."""
    slug:  str
    error: Exception
    path:  Optional[Path] = None

    @property
    def kind(self) -> str:
        return type(self.error).__name__


@dataclass
class DirectoryResult:
    documents: list[RenderedDocument] = field(default_factory=list)
    errors:    list[LoadError] = field(default_factory=list)
