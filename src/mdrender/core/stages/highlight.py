"""Syntax highlighting of fenced code blocks with Pygments"""

import logging

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from mdrender.core.models import Node, NodeType
from mdrender.core.stages.base import Capability, Stage, StageContext
from mdrender.core.utils.tree import merge_text, text_content, walk


log = logging.getLogger(__name__)


def token_class(ttype) -> str:
    """Pygments short CSS class for a token type ('' for plain text)."""
    while ttype not in STANDARD_TYPES:
        ttype = ttype.parent
    return STANDARD_TYPES[ttype]


def _enabled(lang: str, lexer: Lexer, enabled: frozenset[str] | None) -> bool:
    if enabled is None:
        return True
    names = {lang.lower(), lexer.name.lower(), *(a.lower() for a in lexer.aliases)}
    return bool(names & enabled)


def highlight_tokens(code: str, lexer: Lexer) -> list[Node]:
    """Tokenize code into text and classified <span> nodes; joined text equals code."""
    nodes: list[Node] = []
    for ttype, value in lexer.get_tokens(code):
        if not value:
            continue
        cls = token_class(ttype)
        if not cls:
            nodes.append(Node.text(value))
            continue
        last = nodes[-1] if nodes else None
        if last is not None and last.tag == 'span' and last.attrs['class'] == [cls]:
            last.children[0].value += value
        else:
            nodes.append(Node.element('span', {'class': [cls]}, [Node.text(value)]))
    return merge_text(nodes)


class HighlightStage(Stage):
    """Annotate code blocks that declare a language; others pass through untouched."""
    name = "highlight"
    capability = Capability.annotates

    def __call__(self, tree: Node, ctx: StageContext) -> Node:
        for node in walk(tree):
            if node.type == NodeType.element and node.tag == 'code' and node.data.get('lang'):
                self._highlight(node, node.data['lang'], ctx)
        return tree

    def _highlight(self, node: Node, lang: str, ctx: StageContext) -> None:
        try:
            lexer = get_lexer_by_name(lang, stripnl=False, ensurenl=False)
        except ClassNotFound:
            ctx.warn(f"Unsupported code block language '{lang}'; left unhighlighted")
            return
        if not _enabled(lang, lexer, ctx.config.enabled_languages):
            log.debug("Highlighting disabled for language %s", lang)
            return

        code = text_content(node)
        children = highlight_tokens(code, lexer)
        if text_content(Node.root(children)) != code:
            log.debug("Lexer %s altered code text; leaving block unhighlighted", lexer.name)
            return
        node.children = children
        node.data['highlighted'] = lexer.name
