"""Allow-list sanitization schema and its defaults"""

import logging
import re
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


log = logging.getLogger(__name__)

# Disallowed tags in this set lose their whole subtree instead of being unwrapped.
UNSAFE_TAGS = frozenset({
    'script', 'style', 'noscript', 'template', 'iframe', 'frame', 'frameset', 'object',
    'embed', 'applet', 'base', 'link', 'meta', 'title', 'xmp', 'noembed', 'noframes',
    'plaintext', 'svg', 'math',
})

DEFAULT_TAGS = frozenset({
    # text level
    'a', 'abbr', 'b', 'strong', 'i', 'em', 'cite', 'code', 'dfn', 'kbd', 'mark', 'q', 's',
    'del', 'ins', 'samp', 'small', 'span', 'sub', 'sup', 'u', 'var', 'br', 'wbr', 'time',
    # grouping
    'div', 'p', 'blockquote', 'hr', 'pre', 'section', 'article', 'aside', 'header',
    'footer', 'nav', 'main', 'figure', 'figcaption', 'details', 'summary',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    # lists
    'ul', 'ol', 'li', 'dl', 'dt', 'dd',
    # tables
    'table', 'caption', 'thead', 'tbody', 'tfoot', 'tr', 'th', 'td', 'colgroup', 'col',
    # media
    'img', 'picture', 'source', 'audio', 'video', 'track',
    # task list checkboxes
    'input',
})

DEFAULT_ATTRIBUTES = {
    'a':          {'href', 'title', 'target', 'rel'},
    'img':        {'src', 'alt', 'title', 'width', 'height', 'loading'},
    'input':      {'type', 'checked', 'disabled'},
    'th':         {'align', 'colspan', 'rowspan', 'scope'},
    'td':         {'align', 'colspan', 'rowspan'},
    'ol':         {'start', 'reversed', 'type'},
    'li':         {'value'},
    'time':       {'datetime'},
    'blockquote': {'cite'},
    'q':          {'cite'},
    'del':        {'cite', 'datetime'},
    'ins':        {'cite', 'datetime'},
    'details':    {'open'},
    'col':        {'span'},
    'colgroup':   {'span'},
    'video':      {'src', 'width', 'height', 'controls', 'poster', 'preload', 'loop', 'muted'},
    'audio':      {'src', 'controls', 'preload', 'loop', 'muted'},
    'source':     {'src', 'srcset', 'type', 'media'},
    'track':      {'src', 'kind', 'srclang', 'label', 'default'},
}

DEFAULT_GLOBAL_ATTRIBUTES = frozenset({'class', 'id', 'title', 'role', 'lang', 'aria-*', 'data-*'})

DEFAULT_PROTOCOLS = {
    'href':   {'http', 'https', 'mailto', 'tel'},
    'src':    {'http', 'https'},
    'srcset': {'http', 'https'},
    'cite':   {'http', 'https'},
    'poster': {'http', 'https'},
}

SCHEME_RE = re.compile(r'^([a-z][a-z0-9+.\-]*):')
_IGNORED_URL_CHARS_RE = re.compile(r'[\x00-\x20]+')


def url_scheme(value: str) -> Optional[str]:
    """Return the lowercase URL scheme, ignoring whitespace/control chars; None if relative."""
    m = SCHEME_RE.match(_IGNORED_URL_CHARS_RE.sub('', value).lower())
    return m.group(1) if m else None


def is_event_handler(name: str) -> bool:
    return name.lower().startswith('on')


def _lower_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


class SanitizationSchema(BaseModel):
    """Tags, per-tag attributes, global attributes, and URL protocols that survive sanitizing.

    Attribute names ending in '*' match by prefix (``data-*``). Attributes not
    listed in ``protocols`` accept any value; listed ones accept relative URLs,
    fragments, and the listed schemes only.
    """
    model_config = ConfigDict(frozen=True)

    allowed_tags:       frozenset[str]
    allowed_attributes: dict[str, frozenset[str]] = {}
    global_attributes:  frozenset[str] = frozenset()
    protocols:          dict[str, frozenset[str]] = {}

    @field_validator('allowed_tags', 'global_attributes', mode='before')
    @classmethod
    def _normalize_names(cls, v):
        return _lower_set(v)

    @field_validator('allowed_attributes', 'protocols', mode='before')
    @classmethod
    def _normalize_mapping(cls, v):
        return {k.strip().lower(): _lower_set(names) for k, names in dict(v).items()}

    @model_validator(mode='after')
    def _warn_unsafe(self):
        unsafe = sorted(self.allowed_tags & UNSAFE_TAGS)
        if unsafe:
            log.warning("Sanitization schema explicitly allows unsafe tags: %s", ", ".join(unsafe))
        return self

    @classmethod
    def build(
        cls,
        allowed_tags: Optional[Iterable[str]] = None,
        allowed_attributes: Optional[Mapping[str, Iterable[str]]] = None,
        global_attributes: Optional[Iterable[str]] = None,
        protocols: Optional[Mapping[str, Iterable[str]]] = None,
        ) -> "SanitizationSchema":
        """Build a schema, taking the default for every option left as None."""
        return cls(
            allowed_tags=DEFAULT_TAGS if allowed_tags is None else allowed_tags,
            allowed_attributes=DEFAULT_ATTRIBUTES if allowed_attributes is None else allowed_attributes,
            global_attributes=DEFAULT_GLOBAL_ATTRIBUTES if global_attributes is None else global_attributes,
            protocols=DEFAULT_PROTOCOLS if protocols is None else protocols,
        )

    def allows_tag(self, tag: str) -> bool:
        return tag.lower() in self.allowed_tags

    def allows_attribute(self, tag: str, name: str) -> bool:
        name = name.lower()
        if is_event_handler(name):
            return False
        permitted = self.allowed_attributes.get(tag.lower(), frozenset()) | self.global_attributes
        return any(
            name.startswith(p[:-1]) if p.endswith('*') else name == p
            for p in permitted
        )

    def allows_url(self, name: str, value) -> bool:
        schemes = self.protocols.get(name.lower())
        if schemes is None or not isinstance(value, str):
            return True
        scheme = url_scheme(value)
        return scheme is None or scheme in schemes

    def as_dict(self) -> dict:
        """Plain sorted representation, for display and config files."""
        return {
            'allowed_tags': sorted(self.allowed_tags),
            'allowed_attributes': {k: sorted(v) for k, v in sorted(self.allowed_attributes.items())},
            'global_attributes': sorted(self.global_attributes),
            'protocols': {k: sorted(v) for k, v in sorted(self.protocols.items())},
        }


def default_schema() -> SanitizationSchema:
    return SanitizationSchema.build()
