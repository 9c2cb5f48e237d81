"""Front matter extraction: split a raw document into metadata and body"""

import logging
import re
from typing import Any

import yaml
from pydantic import ValidationError

from mdrender.core.models import FrontMatter, to_jsonable
from mdrender.errors import MetadataParseError


log = logging.getLogger(__name__)

FRONTMATTER_OPEN_RE = re.compile(r'\A---[ \t]*\r?\n')
FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)


def extract_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the YAML header removed.

    Raises MetadataParseError when a header is opened but is unterminated,
    is not valid YAML, or is not a mapping.
    """
    text = text.removeprefix('\ufeff')
    if not FRONTMATTER_OPEN_RE.match(text):
        return {}, text

    m = FRONTMATTER_RE.match(text)
    if not m:
        raise MetadataParseError("Unterminated front matter block", body=text)
    body = text[m.end():]
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise MetadataParseError(f"Invalid YAML front matter: {e}", body=body) from e
    if not isinstance(fm, dict):
        raise MetadataParseError(
            f"Invalid YAML front matter: expected a mapping, got {type(fm).__name__}", body=body)
    return to_jsonable(fm), body


def parse_front_matter(text: str, strict: bool = False) -> tuple[FrontMatter, str]:
    """Extract and validate front matter.

    By default a malformed block degrades to an empty FrontMatter (logged as a
    warning) so one bad header never fails a whole load; strict re-raises.
    """
    try:
        data, body = extract_front_matter(text)
        try:
            front_matter = FrontMatter.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MetadataParseError(f"Invalid front matter fields: {fields}", body=body) from e
    except MetadataParseError as e:
        if strict:
            raise
        log.warning("%s; continuing with empty front matter", e)
        return FrontMatter(), e.body
    return front_matter, body
