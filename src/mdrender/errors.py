"""Error and diagnostic types raised or recorded by the render pipeline"""

from dataclasses import dataclass
from typing import Optional


class MdrenderError(Exception):
    """Base class for mdrender errors."""


class NotFound(MdrenderError, FileNotFoundError):
    """Requested document does not exist under the content root."""

    def __init__(self, slug: str, path=None):
        self.slug = slug
        self.path = path
        super().__init__(f"Document not found: {slug}" + (f" ({path})" if path else ""))


class MetadataParseError(MdrenderError, ValueError):
    """A front matter block was opened but could not be read as a mapping.

    ``body`` holds the text a caller should continue with when it chooses to
    fall back to empty front matter instead of failing.
    """

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class PipelineStageError(MdrenderError, RuntimeError):
    """A pipeline stage failed; the run was aborted."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        super().__init__(f"Stage '{stage}' failed: {cause}")


class UnsupportedSyntaxWarning(UserWarning):
    """Unknown code language or component name; content kept as literal."""


@dataclass(frozen=True)
class SanitizationRemoval:
    """Audit record for content removed by the sanitizer."""
    action: str                       # drop | unwrap | strip-attribute | strip-markup
    tag: Optional[str] = None
    attribute: Optional[str] = None
