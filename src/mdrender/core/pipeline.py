"""Pipeline orchestration: parse, ordered stages, serialize"""

import logging
from typing import Optional, Sequence, Union

from mdrender.core.frontmatter import parse_front_matter
from mdrender.core.models import Document, FrontMatter, Node, RenderedDocument, RenderPayload
from mdrender.core.parse import DocumentParser
from mdrender.core.serialize import serialize
from mdrender.core.stages.base import PipelineConfig, Stage, StageContext
from mdrender.core.stages.gfm import GfmStage
from mdrender.core.stages.headings import HeadingAutolinkStage, HeadingSlugStage
from mdrender.core.stages.highlight import HighlightStage
from mdrender.core.stages.sanitize import SanitizeStage
from mdrender.errors import PipelineStageError


log = logging.getLogger(__name__)

STAGES: dict[str, type[Stage]] = {
    cls.name: cls
    for cls in (GfmStage, HeadingSlugStage, HeadingAutolinkStage, HighlightStage, SanitizeStage)
}
DEFAULT_STAGES = ('gfm', 'heading-slug', 'heading-autolink', 'highlight', 'sanitize')
SANITIZE = 'sanitize'


def _build_stages(stages: Sequence[Union[str, Stage]], sanitize: bool) -> list[Stage]:
    built = []
    for stage in stages:
        if isinstance(stage, str):
            if stage not in STAGES:
                raise ValueError(f"Unknown pipeline stage: {stage!r} (known: {', '.join(STAGES)})")
            stage = STAGES[stage]()
        built.append(stage)

    if not sanitize:
        log.warning("Sanitization disabled by configuration; raw HTML passes through unfiltered")
        return [s for s in built if s.name != SANITIZE]

    positions = [i for i, s in enumerate(built) if s.name == SANITIZE]
    if not positions:
        built.append(SanitizeStage())
    elif positions != [len(built) - 1]:
        raise ValueError("The sanitize stage must appear once, as the last stage")
    return built


class Pipeline:
    """One configurable pipeline: parser plus an explicit, ordered stage list."""

    def __init__(self, config: Optional[PipelineConfig] = None, stages: Sequence[Union[str, Stage]] = None):
        self.config = config or PipelineConfig()
        self.parser = DocumentParser(self.config.parser_config)
        self.stages = _build_stages(stages or DEFAULT_STAGES, self.config.sanitize)

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self.stages]

    def parse(self, body: str) -> Node:
        try:
            return self.parser.parse(body)
        except Exception as e:
            raise PipelineStageError('parse', e) from e

    def run(self, tree: Node) -> tuple[Node, StageContext]:
        """Apply every stage in order. The input tree is left untouched."""
        ctx = StageContext(self.config)
        for stage in self.stages:
            try:
                tree = stage(tree.model_copy(deep=True), ctx)
            except Exception as e:
                raise PipelineStageError(stage.name, e) from e
            log.debug("Stage %s done", stage.name)
        return tree, ctx

    def render(self, body: str, front_matter: FrontMatter) -> RenderPayload:
        tree, ctx = self.run(self.parse(body))
        return serialize(tree, front_matter, [str(w) for w in ctx.diagnostics])


def process_document(document: Document, pipeline: Pipeline, strict: bool = False) -> RenderedDocument:
    """Run one document through extraction, parsing, stages, and serialization."""
    document.front_matter, document.body = parse_front_matter(document.raw_source, strict=strict)
    document.tree, ctx = pipeline.run(pipeline.parse(document.body))
    document.payload = serialize(document.tree, document.front_matter, [str(w) for w in ctx.diagnostics])
    return RenderedDocument(slug=document.slug, front_matter=document.front_matter, payload=document.payload)


def render_source(
    raw: str,
    config: Optional[PipelineConfig] = None,
    strict: bool = False,
    ) -> tuple[RenderPayload, FrontMatter]:
    """Render raw document text. Returns (payload, front_matter)."""
    rendered = process_document(Document(slug='', raw_source=raw), Pipeline(config), strict)
    return rendered.payload, rendered.front_matter
