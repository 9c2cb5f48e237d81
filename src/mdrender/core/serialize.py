"""Serialization of the final tree and front matter into a render payload"""

import hashlib
import json
from typing import Iterable

from mdrender.core.models import FrontMatter, HeadingRef, Node, RenderPayload
from mdrender.core.utils.tree import heading_level, text_content, walk


def canonical_json(value) -> str:
    """Compact, key-sorted JSON; identical input always gives identical bytes."""
    return json.dumps(value, sort_keys=True, separators=(',', ':'), ensure_ascii=False)


def tree_json(tree: Node) -> str:
    return canonical_json(tree.model_dump(mode='json', exclude_defaults=True))


def payload_digest(body: str, front_matter: FrontMatter) -> str:
    """Hex SHA-256 over the canonical body and front matter."""
    content = body + '\n' + canonical_json(front_matter.as_dict())
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


def outline(tree: Node) -> tuple[HeadingRef, ...]:
    """Heading outline (slug, text, level) in document order."""
    return tuple(
        HeadingRef(slug=node.attrs['id'], text=text_content(node).strip(), level=heading_level(node))
        for node in walk(tree)
        if heading_level(node) and node.attrs.get('id')
    )


def serialize(tree: Node, front_matter: FrontMatter, warnings: Iterable[str] = ()) -> RenderPayload:
    """Package the final tree into an immutable payload with outline and digest."""
    body = tree_json(tree)
    return RenderPayload(
        body=body,
        headings=outline(tree),
        warnings=tuple(warnings),
        digest=payload_digest(body, front_matter),
    )
