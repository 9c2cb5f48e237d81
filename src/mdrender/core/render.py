"""Reference HTML renderer for render payloads.

The presentation layer normally owns rendering; this module implements the
same ``render(payload, components)`` contract for the CLI and for tests.
Components are resolved only against the mapping passed in by the caller.
"""

import html
import warnings
from typing import Any, Callable, Mapping, Optional

from mdrender.core.models import Node, NodeType, RenderPayload
from mdrender.errors import UnsupportedSyntaxWarning


ComponentRenderer = Callable[[dict[str, Any], str], str]

VOID_TAGS = {'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link', 'meta',
             'source', 'track', 'wbr'}


def _attr_text(attrs: dict[str, Any]) -> str:
    parts = []
    for name, value in attrs.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(f' {name}')
            continue
        if isinstance(value, (list, tuple)):
            value = ' '.join(str(v) for v in value)
        parts.append(f' {name}="{html.escape(str(value), quote=True)}"')
    return ''.join(parts)


def _component(node: Node, inner: str, components: Mapping[str, ComponentRenderer]) -> str:
    renderer = components.get(node.tag)
    if renderer is not None:
        return renderer(dict(node.attrs), inner)

    message = f"Unknown component '{node.tag}' rendered as literal text"
    warnings.warn(UnsupportedSyntaxWarning(message), stacklevel=2)
    source = node.data.get('source') or f'<{node.tag}>'
    if source.rstrip().endswith('/>'):
        return html.escape(source) + inner
    return html.escape(source) + inner + html.escape(f'</{node.tag}>')


def render_node(node: Node, components: Mapping[str, ComponentRenderer]) -> str:
    if node.type == NodeType.text:
        return html.escape(node.value or '', quote=False)
    if node.type == NodeType.raw:
        return node.value or ''
    inner = ''.join(render_node(c, components) for c in node.children)
    if node.type == NodeType.root:
        return inner
    if node.type == NodeType.component:
        return _component(node, inner, components)
    if node.tag in VOID_TAGS:
        return f'<{node.tag}{_attr_text(node.attrs)}>'
    return f'<{node.tag}{_attr_text(node.attrs)}>{inner}</{node.tag}>'


def render_html(payload: RenderPayload, components: Optional[Mapping[str, ComponentRenderer]] = None) -> str:
    """Render a payload to HTML, resolving components against the given registry."""
    return render_node(payload.tree, components or {})
