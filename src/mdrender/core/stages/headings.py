"""Heading enrichment: unique slug ids and wrapping self-links"""

from mdrender.core.models import Node
from mdrender.core.stages.base import Capability, Stage, StageContext
from mdrender.core.utils.slug import slugify, unique_slug
from mdrender.core.utils.tree import heading_level, text_content, walk


FALLBACK_SLUG = 'section'


class HeadingSlugStage(Stage):
    """Assign each heading a unique id derived from its text, in document order."""
    name = "heading-slug"
    capability = Capability.annotates

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        taken: set[str] = set()
        for node in walk(tree):
            if heading_level(node) is None:
                continue
            base = slugify(text_content(node)) or FALLBACK_SLUG
            node.attrs['id'] = unique_slug(base, taken)
        return tree


class HeadingAutolinkStage(Stage):
    """Wrap heading content in a link to the heading's own id."""
    name = "heading-autolink"
    capability = Capability.transforms

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        for node in walk(tree):
            slug = node.attrs.get('id') if heading_level(node) else None
            if not slug:
                continue
            attrs = {'href': f'#{slug}'}
            if ctx.config.anchor_class:
                attrs['class'] = [ctx.config.anchor_class]
            node.children = [Node.element('a', attrs, node.children)]
        return tree
