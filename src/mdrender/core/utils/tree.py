"""Shared render-tree helpers"""

from typing import Iterator

from mdrender.core.models import Node, NodeType


HEADING_TAGS = {'h1', 'h2', 'h3', 'h4', 'h5', 'h6'}


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all descendants in document (pre-)order."""
    yield node
    for child in node.children:
        yield from walk(child)


def text_content(node: Node) -> str:
    """Concatenated text of all text descendants (raw markup is not text)."""
    if node.type == NodeType.text:
        return node.value or ''
    return ''.join(text_content(c) for c in node.children)


def heading_level(node: Node) -> int | None:
    """Return the heading level (1-6) for an h1-h6 element, else None."""
    if node.type == NodeType.element and node.tag in HEADING_TAGS:
        return int(node.tag[1])
    return None


def class_list(node: Node) -> list[str]:
    value = node.attrs.get('class') or []
    return value.split() if isinstance(value, str) else list(value)


def add_class(node: Node, *names: str) -> None:
    classes = class_list(node)
    node.attrs['class'] = classes + [n for n in names if n not in classes]


def merge_text(children: list[Node]) -> list[Node]:
    """Merge adjacent text nodes and drop empty ones."""
    merged: list[Node] = []
    for child in children:
        if child.type == NodeType.text:
            if not child.value:
                continue
            if merged and merged[-1].type == NodeType.text:
                merged[-1] = Node.text(merged[-1].value + child.value)
                continue
        merged.append(child)
    return merged
