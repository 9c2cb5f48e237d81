"""Slug generation for document and heading identifiers"""

import re


_NON_ALNUM_RE = re.compile(r'[\W_]+')


def slugify(text: str) -> str:
    """Lowercase text, collapse runs of non-alphanumerics to '-', trim hyphens."""
    return _NON_ALNUM_RE.sub('-', text.lower()).strip('-')


def unique_slug(base: str, taken: set[str]) -> str:
    """Return base, or base-1, base-2, ... (first free suffix); record it in taken."""
    slug = base
    n = 0
    while slug in taken:
        n += 1
        slug = f"{base}-{n}"
    taken.add(slug)
    return slug
