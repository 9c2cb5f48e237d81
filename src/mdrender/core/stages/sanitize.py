"""Allow-list HTML sanitizer: admits raw HTML into the tree, then filters it"""

import html

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from mdrender.core.models import Node, NodeType
from mdrender.core.schema import UNSAFE_TAGS, SanitizationSchema, is_event_handler, url_scheme
from mdrender.core.stages.base import Capability, Stage, StageContext
from mdrender.core.utils.tree import merge_text, walk
from mdrender.errors import SanitizationRemoval


SLOT_TAG = 'mdrender-slot'
MARKUP_ONLY = (Comment, CData, Declaration, Doctype, ProcessingInstruction)
UNSAFE_SCHEMES = {'javascript', 'vbscript'}


def _soup_attrs(tag: Tag) -> dict:
    attrs = {}
    for name, value in tag.attrs.items():
        if isinstance(value, list):
            value = list(value) if name == 'class' else ' '.join(value)
        attrs[name] = value
    return attrs


class SanitizeStage(Stage):
    """Resolve raw HTML against the tree and filter everything through the schema.

    Sibling runs containing raw fragments are re-parsed together, with the
    already-structured siblings held in placeholder slots, so tags opened and
    closed in different fragments form one element. Never raises: unknown
    input is removed, not rejected.
    """
    name = "sanitize"
    capability = Capability.filters

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        schema = ctx.config.sanitization
        tree.children = self._admit_raw(tree.children, ctx.removals)
        tree.children = self._filter_children(tree.children, schema, ctx.removals)
        self._dedupe_ids(tree, ctx.removals)
        return tree

    # --- raw HTML admission ---

    def _admit_raw(self, children: list[Node], removals: list) -> list[Node]:
        for child in children:
            if child.type != NodeType.raw and child.children:
                child.children = self._admit_raw(child.children, removals)
        if not any(c.type == NodeType.raw for c in children):
            return children

        pieces: list[str] = []
        slots: dict[str, Node] = {}
        for i, child in enumerate(children):
            if child.type == NodeType.raw:
                pieces.append(child.value or '')
            elif child.type == NodeType.text:
                pieces.append(html.escape(child.value or '', quote=False))
            else:
                slots[str(i)] = child
                pieces.append(f'<{SLOT_TAG} data-index="{i}"></{SLOT_TAG}>')
        soup = BeautifulSoup(''.join(pieces), 'html.parser')
        return self._from_soup(soup.contents, slots, removals)

    def _from_soup(self, contents: list, slots: dict[str, Node], removals: list) -> list[Node]:
        nodes: list[Node] = []
        for item in contents:
            if isinstance(item, Tag):
                if item.name == SLOT_TAG:
                    slot = slots.pop(item.get('data-index'), None)
                    if slot is not None:
                        nodes.append(slot)
                    continue
                children = self._from_soup(item.contents, slots, removals)
                nodes.append(Node.element(item.name, _soup_attrs(item), children))
            elif isinstance(item, MARKUP_ONLY):
                removals.append(SanitizationRemoval('strip-markup'))
            elif isinstance(item, NavigableString):
                nodes.append(Node.text(str(item)))
        return nodes

    # --- allow-list filtering ---

    def _filter_children(self, children: list[Node], schema: SanitizationSchema, removals: list) -> list[Node]:
        kept: list[Node] = []
        for child in children:
            kept.extend(self._filter(child, schema, removals))
        return merge_text(kept)

    def _filter(self, node: Node, schema: SanitizationSchema, removals: list) -> list[Node]:
        if node.type == NodeType.text:
            return [node]
        if node.type == NodeType.raw:
            removals.append(SanitizationRemoval('strip-markup'))
            return []
        if node.type == NodeType.component:
            if (node.tag or '').lower() in UNSAFE_TAGS:
                removals.append(SanitizationRemoval('drop', tag=node.tag))
                return []
            node.attrs = self._component_attrs(node, removals)
            node.children = self._filter_children(node.children, schema, removals)
            return [node]
        if node.type == NodeType.root:
            node.children = self._filter_children(node.children, schema, removals)
            return [node]

        tag = (node.tag or '').lower()
        if schema.allows_tag(tag):
            node.tag = tag
            node.attrs = self._element_attrs(tag, node.attrs, schema, removals)
            node.children = self._filter_children(node.children, schema, removals)
            return [node]
        if tag in UNSAFE_TAGS or any(is_event_handler(a) for a in node.attrs):
            removals.append(SanitizationRemoval('drop', tag=tag))
            return []
        removals.append(SanitizationRemoval('unwrap', tag=tag))
        return self._filter_children(node.children, schema, removals)

    def _element_attrs(self, tag: str, attrs: dict, schema: SanitizationSchema, removals: list) -> dict:
        kept = {}
        for name, value in attrs.items():
            if schema.allows_attribute(tag, name) and schema.allows_url(name, value):
                kept[name.lower()] = value
            else:
                removals.append(SanitizationRemoval('strip-attribute', tag=tag, attribute=name))
        return kept

    def _component_attrs(self, node: Node, removals: list) -> dict:
        kept = {}
        for name, value in node.attrs.items():
            handler = is_event_handler(name)
            unsafe_url = isinstance(value, str) and url_scheme(value) in UNSAFE_SCHEMES
            if handler or unsafe_url:
                removals.append(SanitizationRemoval('strip-attribute', tag=node.tag, attribute=name))
            else:
                kept[name] = value
        return kept

    # --- id uniqueness ---

    def _dedupe_ids(self, tree: Node, removals: list) -> None:
        """Strip ids that repeat an enriched heading's slug or an earlier id."""
        taken = {n.attrs['id'] for n in walk(tree) if n.data.get('level') and n.attrs.get('id')}
        seen: set[str] = set()
        for node in walk(tree):
            node_id = node.attrs.get('id')
            if node.type != NodeType.element or not isinstance(node_id, str):
                continue
            if node.data.get('level') and node_id in taken and node_id not in seen:
                seen.add(node_id)
                continue
            if node_id in taken or node_id in seen:
                del node.attrs['id']
                removals.append(SanitizationRemoval('strip-attribute', tag=node.tag, attribute='id'))
                continue
            seen.add(node_id)
