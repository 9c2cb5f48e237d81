"""Unit tests for core/serialize.py"""

import json

import pytest
from pydantic import ValidationError

from mdrender.core.models import FrontMatter, HeadingRef, RenderPayload
from mdrender.core.serialize import canonical_json, serialize


@pytest.fixture(name="tree")
def tree_fixture(pipeline):
    tree, _ = pipeline.run(pipeline.parse("# Title\n\nSome *text*.\n\n## Part\n"))
    return tree


def test_payload_tree_round_trip(tree):
    """The payload body decodes back to the serialized tree."""
    payload = serialize(tree, FrontMatter())
    assert payload.tree == tree


def test_payload_body_is_canonical(tree):
    """The body is compact, key-sorted JSON."""
    payload = serialize(tree, FrontMatter())
    assert payload.body == canonical_json(json.loads(payload.body))
    assert json.loads(payload.body)["type"] == "root"


def test_payload_is_immutable(tree):
    """Payloads cannot be modified after serialization."""
    payload = serialize(tree, FrontMatter())
    with pytest.raises(ValidationError):
        payload.body = "{}"


def test_payload_outline(tree):
    """The outline lists enriched headings in document order."""
    payload = serialize(tree, FrontMatter())
    assert payload.headings == (
        HeadingRef(slug="title", text="Title", level=1),
        HeadingRef(slug="part", text="Part", level=2),
    )


def test_payload_carries_warnings(tree):
    payload = serialize(tree, FrontMatter(), ["careful"])
    assert payload.warnings == ("careful",)
    assert payload.version == 1


def test_digest_covers_front_matter(tree):
    """The digest changes with the front matter, not only with the body."""
    a = serialize(tree, FrontMatter(title="a"))
    b = serialize(tree, FrontMatter(title="b"))
    assert a.body == b.body
    assert a.digest != b.digest
    assert serialize(tree, FrontMatter(title="a")).digest == a.digest


def test_payload_json_round_trip(tree):
    """A payload survives a JSON dump and reload unchanged."""
    payload = serialize(tree, FrontMatter())
    assert RenderPayload.model_validate_json(payload.model_dump_json()) == payload
