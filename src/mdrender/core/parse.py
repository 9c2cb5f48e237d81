"""Markdown/MDX parsing: markdown-it token stream to render tree"""

import json
import logging
import re
from typing import Any

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin

from mdrender.core.models import Node, NodeType
from mdrender.core.utils.tree import merge_text


log = logging.getLogger(__name__)

COMPONENT_NAME = r'[A-Z][A-Za-z0-9_.]*'
_ATTR = r'''[A-Za-z_:][\w:.-]*(?:\s*=\s*(?:"[^"]*"|'[^']*'|\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}))?'''
_ATTR_RE = re.compile(
    r'''([A-Za-z_:][\w:.-]*)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|\{([^{}]*(?:\{[^{}]*\}[^{}]*)*)\}))?''')
OPEN_TAG_RE = re.compile(rf'<({COMPONENT_NAME})((?:\s+{_ATTR})*)\s*(/?)>')
CLOSE_TAG_RE = re.compile(rf'</({COMPONENT_NAME})\s*>')
LOOKS_LIKE_COMPONENT_RE = re.compile(r'</?[A-Z]')
ALIGN_RE = re.compile(r'text-align:\s*(\w+)')


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name, with footnotes."""
    return MarkdownIt(preset, options_update={"linkify": False}).use(footnote_plugin)


def _decode_expression(expr: str) -> Any:
    """Decode a {expression} attribute as a JSON literal, else keep its text."""
    try:
        return json.loads(expr)
    except ValueError:
        return expr.strip()


def parse_component_attrs(src: str) -> dict[str, Any]:
    """Parse MDX-style attributes: name="v", name='v', name={expr}, bare name."""
    attrs: dict[str, Any] = {}
    for m in _ATTR_RE.finditer(src):
        name, double, single, expr = m.groups()
        if double is not None:
            attrs[name] = double
        elif single is not None:
            attrs[name] = single
        elif expr is not None:
            attrs[name] = _decode_expression(expr)
        else:
            attrs[name] = True
    return attrs


def _token_attrs(tok) -> dict[str, Any]:
    """Copy markdown-it token attrs; table alignment styles become align."""
    attrs: dict[str, Any] = {}
    for key, value in (tok.attrs or {}).items():
        if key == 'style' and tok.tag in ('th', 'td'):
            m = ALIGN_RE.search(str(value))
            if m:
                attrs['align'] = m.group(1)
        elif key == 'class':
            attrs['class'] = str(value).split()
        else:
            attrs[key] = str(value)
    return attrs


def _footnote_label(meta: dict) -> tuple[int, str]:
    n = meta['id'] + 1
    sub = meta.get('subId', 0)
    return n, f'{n}-{sub}' if sub > 0 else str(n)


class DocumentParser:
    """Parse a markdown body into a root Node.

    Markdown constructs become HTML-named element nodes. Raw HTML is kept
    verbatim in raw nodes for the sanitizer. Capitalized MDX-style tags become
    component nodes; tags that look like components but cannot be parsed stay
    as literal text.
    """

    def __init__(self, preset: str = 'gfm-like'):
        self.preset = preset
        self._md = _make_parser(preset)

    def parse(self, body: str) -> Node:
        root = Node.root()
        self._convert(self._md.parse(body), root)
        root.children = self._fold(root.children)
        return root

    # --- token conversion ---

    def _convert(self, tokens: list, parent: Node) -> None:
        stack = [parent]
        for tok in tokens:
            top = stack[-1]
            if tok.nesting == 1:
                if tok.type == 'paragraph_open' and tok.hidden:
                    stack.append(top)           # tight list: no <p>
                elif tok.type == 'footnote_block_open':
                    items = Node.element('ol', {'class': ['footnotes-list']})
                    top.children.append(Node.element('section', {'class': ['footnotes']}, [items]))
                    stack.append(items)
                else:
                    node = self._open(tok)
                    top.children.append(node)
                    stack.append(node)
            elif tok.nesting == -1:
                stack.pop()
            else:
                top.children.extend(self._leaf(tok))

    def _open(self, tok) -> Node:
        if tok.type == 'footnote_open':
            n, _ = _footnote_label(tok.meta)
            return Node.element('li', {'id': f'fn-{n}', 'class': ['footnote-item']})
        tag = tok.tag
        if not tag:
            log.debug("Container token %s has no tag; using div", tok.type)
            tag = 'div'
        node = Node.element(tag, _token_attrs(tok))
        if tok.type == 'heading_open':
            node.data['level'] = int(tag[1])
        return node

    def _leaf(self, tok) -> list[Node]:
        kind = tok.type
        if kind == 'inline':
            container = Node.root()
            self._convert(tok.children or [], container)
            return merge_text(container.children)
        if kind == 'text':
            return [Node.text(tok.content)]
        if kind == 'softbreak':
            return [Node.text('\n')]
        if kind == 'hardbreak':
            return [Node.element('br')]
        if kind == 'code_inline':
            return [Node.element('code', children=[Node.text(tok.content)])]
        if kind in ('fence', 'code_block'):
            return [self._code_block(tok)]
        if kind == 'html_block':
            return self._raw(tok.content, block=True)
        if kind == 'html_inline':
            return self._raw(tok.content, block=False)
        if kind == 'image':
            attrs = {'src': str(tok.attrGet('src') or ''), 'alt': tok.content}
            if tok.attrGet('title'):
                attrs['title'] = str(tok.attrGet('title'))
            return [Node.element('img', attrs)]
        if kind == 'hr':
            return [Node.element('hr')]
        if kind == 'footnote_ref':
            n, label = _footnote_label(tok.meta)
            link = Node.element('a', {'href': f'#fn-{n}', 'id': f'fnref-{label}'}, [Node.text(f'[{n}]')])
            return [Node.element('sup', {'class': ['footnote-ref']}, [link])]
        if kind == 'footnote_anchor':
            _, label = _footnote_label(tok.meta)
            back = Node.element('a', {'href': f'#fnref-{label}', 'class': ['footnote-backref']},
                                [Node.text('↩')])
            return [Node.text(' '), back]
        if tok.content:
            log.debug("Keeping unhandled %s token as text", kind)
            return [Node.text(tok.content)]
        return []

    def _code_block(self, tok) -> Node:
        info = (tok.info or '').strip() if tok.type == 'fence' else ''
        lang, _, meta = info.partition(' ')
        if lang:
            code = Node.element('code', {'class': [f'language-{lang}']}, [Node.text(tok.content)],
                                lang=lang, meta=meta.strip() or None)
        else:
            code = Node.element('code', children=[Node.text(tok.content)])
        return Node.element('pre', children=[code])

    # --- raw HTML and components ---

    def _raw(self, src: str, block: bool) -> list[Node]:
        stripped = src.strip()
        if not LOOKS_LIKE_COMPONENT_RE.match(stripped):
            return [Node.raw(src)]

        m = OPEN_TAG_RE.match(stripped)
        if m:
            name, attr_src, self_closing = m.groups()
            attrs = parse_component_attrs(attr_src)
            rest = stripped[m.end():]
            if self_closing:
                return [Node.component(name, attrs, source=m.group(0))] + self._tail(rest, block)
            close = re.search(rf'</{re.escape(name)}\s*>\s*\Z', rest)
            if close:
                inner = rest[:close.start()]
                children = self._blocks(inner) if block else merge_text([Node.text(inner)])
                return [Node.component(name, attrs, children, source=m.group(0))]
            opener = Node.component(name, attrs, source=m.group(0), open=True, block=block)
            return [opener] + self._tail(rest, block)

        m = CLOSE_TAG_RE.match(stripped)
        if m and not stripped[m.end():].strip():
            return [Node.component(m.group(1), source=stripped, close=True, block=block)]

        log.debug("Unparseable component syntax kept as text: %.40s", stripped)
        return [_literal(stripped if block else src, block)]

    def _tail(self, rest: str, block: bool) -> list[Node]:
        if not rest.strip():
            return []
        return self._blocks(rest) if block else [Node.text(rest)]

    def _blocks(self, src: str) -> list[Node]:
        return self.parse(src).children

    def _fold(self, children: list[Node]) -> list[Node]:
        """Fold component open/close markers at one sibling level into component nodes."""
        out: list[Node] = []
        stack: list[tuple[Node, list[Node]]] = []
        for child in children:
            if child.children:
                child.children = self._fold(child.children)
            if child.type == NodeType.component and child.data.get('open'):
                stack.append((child, out))
                out = []
            elif child.type == NodeType.component and child.data.get('close'):
                if stack and stack[-1][0].tag == child.tag:
                    opener, parent_out = stack.pop()
                    opener.data.pop('open')
                    opener.data.pop('block', None)
                    opener.children = merge_text(out)
                    parent_out.append(opener)
                    out = parent_out
                else:
                    out.append(_literal(child.data['source'], child.data.get('block', False)))
            else:
                out.append(child)
        while stack:
            opener, parent_out = stack.pop()
            parent_out.append(_literal(opener.data['source'], opener.data.get('block', False)))
            parent_out.extend(out)
            out = parent_out
        return merge_text(out)


def _literal(src: str, block: bool) -> Node:
    text = Node.text(src)
    return Node.element('p', children=[text]) if block else text
