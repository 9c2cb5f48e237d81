"""GFM extension stage: task list items and autolink literals"""

import re

from mdrender.core.models import Node, NodeType
from mdrender.core.stages.base import Capability, Stage, StageContext
from mdrender.core.utils.tree import add_class, merge_text


TASK_RE = re.compile(r'^\[([ xX])\](?=[ \t])')
URL_RE = re.compile(r'''(?<![\w/@.])(?:https?://|www\.)[^\s<]*[^\s<.,:;"')\]!?*_~]''')
NO_AUTOLINK_TAGS = {'a', 'code', 'pre'}
RAW_NO_AUTOLINK_RE = re.compile(r'<(/?)(a|code|pre)\b[^>]*>', re.IGNORECASE)


def autolink_text(value: str) -> list[Node]:
    """Split a text value into text and <a> nodes for bare URLs."""
    nodes: list[Node] = []
    pos = 0
    for m in URL_RE.finditer(value):
        url = m.group(0)
        href = f'http://{url}' if url.startswith('www.') else url
        nodes.append(Node.text(value[pos:m.start()]))
        nodes.append(Node.element('a', {'href': href}, [Node.text(url)]))
        pos = m.end()
    nodes.append(Node.text(value[pos:]))
    return merge_text(nodes)


def _raw_depth(fragment: str, depth: int) -> int:
    """Track how many raw a/code/pre tags are open after a raw HTML fragment."""
    for m in RAW_NO_AUTOLINK_RE.finditer(fragment):
        depth = max(depth - 1, 0) if m.group(1) else depth + 1
    return depth


def _task_item(item: Node) -> bool:
    """Turn a leading '[ ]' / '[x]' in a list item into a checkbox; True if converted."""
    if not item.children:
        return False
    first = item.children[0]
    container = first if first.type == NodeType.element and first.tag == 'p' else item
    if not container.children or container.children[0].type != NodeType.text:
        return False
    text = container.children[0]
    m = TASK_RE.match(text.value or '')
    if not m:
        return False
    attrs = {'type': 'checkbox', 'disabled': True}
    if m.group(1) != ' ':
        attrs['checked'] = True
    text.value = text.value[m.end():]
    container.children.insert(0, Node.element('input', attrs))
    add_class(item, 'task-list-item')
    return True


class GfmStage(Stage):
    """Task lists and bare-URL autolinks (tables and strikethrough come from the parser preset)."""
    name = "gfm"
    capability = Capability.transforms

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        self._visit(tree)
        return tree

    def _visit(self, node: Node) -> None:
        if node.type == NodeType.element and node.tag in ('ul', 'ol'):
            converted = [_task_item(li) for li in node.children if li.tag == 'li']
            if any(converted):
                add_class(node, 'contains-task-list')
        if node.type == NodeType.element and node.tag in NO_AUTOLINK_TAGS:
            return
        children: list[Node] = []
        depth = 0                       # open raw a/code/pre fragments among siblings
        for child in node.children:
            if child.type == NodeType.raw:
                depth = _raw_depth(child.value or '', depth)
                children.append(child)
            elif child.type == NodeType.text and depth == 0:
                children.extend(autolink_text(child.value or ''))
            elif child.type == NodeType.text:
                children.append(child)
            else:
                if depth == 0:
                    self._visit(child)
                children.append(child)
        node.children = children
