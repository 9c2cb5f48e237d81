"""Shared fixtures for core unit tests"""

import pytest

from mdrender.core.pipeline import Pipeline, render_source
from mdrender.core.render import render_html


@pytest.fixture(name="pipeline")
def pipeline_fixture():
    return Pipeline()


@pytest.fixture(name="render")
def render_fixture():
    """Render markdown source straight to HTML with no component registry."""
    def _render(md: str, config=None) -> str:
        payload, _ = render_source(md, config)
        return render_html(payload)
    return _render


SAMPLE_MD = """\
---
title: Sample
date: 2024-02-01
tags: [docs, demo]
---

# Getting Started

Intro with **bold** text and a link to https://example.com.

## Getting Started

- [ ] first task
- [x] done task

```python
import os
```

<script>alert("x")</script>

<Alert type="info">
Read this.
</Alert>
"""


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
