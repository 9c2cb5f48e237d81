"""Unit tests for core/render.py"""

import pytest

from mdrender.core.models import Node
from mdrender.core.pipeline import render_source
from mdrender.core.render import render_html, render_node
from mdrender.errors import UnsupportedSyntaxWarning


ALERT_MD = '<Alert type="info">\nCareful\n</Alert>\n'


def test_component_resolved_from_registry():
    """Components render through the caller-supplied registry."""
    payload, _ = render_source(ALERT_MD)
    html = render_html(payload, {"Alert": lambda attrs, inner: f'<div class="alert-{attrs["type"]}">{inner}</div>'})
    assert html == '<div class="alert-info"><p>Careful</p></div>'


def test_registries_are_independent():
    """The same payload renders differently against different registries."""
    payload, _ = render_source(ALERT_MD)
    first = render_html(payload, {"Alert": lambda attrs, inner: "one"})
    second = render_html(payload, {"Alert": lambda attrs, inner: "two"})
    assert (first, second) == ("one", "two")


def test_unknown_component_literal():
    """Unknown components render as escaped source text with a warning."""
    payload, _ = render_source(ALERT_MD)
    with pytest.warns(UnsupportedSyntaxWarning, match="Unknown component 'Alert'"):
        html = render_html(payload)
    assert html == "&lt;Alert type=&quot;info&quot;&gt;<p>Careful</p>&lt;/Alert&gt;"


def test_unknown_self_closing_component():
    """Self-closing unknown components get no closing tag."""
    payload, _ = render_source("<Chart data={[1,2]} />\n")
    with pytest.warns(UnsupportedSyntaxWarning):
        html = render_html(payload)
    assert html == "&lt;Chart data={[1,2]} /&gt;"


def test_text_escaped(render):
    assert render("a < b & c\n") == "<p>a &lt; b &amp; c</p>"


@pytest.mark.parametrize("node, expected", [
    (Node.element("input", {"type": "checkbox", "disabled": True}), '<input type="checkbox" disabled>'),
    (Node.element("br"), "<br>"),
    (Node.element("span", {"class": ["a", "b"]}, [Node.text("x")]), '<span class="a b">x</span>'),
    (Node.element("a", {"title": 'say "hi"', "hidden": False}), '<a title="say &quot;hi&quot;"></a>'),
])
def test_render_node(node, expected):
    """Void tags, boolean and list attributes render as HTML expects."""
    assert render_node(node, {}) == expected
