"""Document discovery and concurrent loading from a content root"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from mdrender.core.models import DirectoryResult, Document, LoadError, RenderedDocument
from mdrender.core.pipeline import Pipeline, process_document
from mdrender.core.stages.base import PipelineConfig
from mdrender.core.utils.slug import slugify
from mdrender.errors import NotFound


log = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ('.md', '.mdx')


def discover_files(root: Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS, recursive: bool = False) -> list[Path]:
    """Return sorted files under root whose suffix is in extensions."""
    if not root.is_dir():
        raise NotFound(str(root), root)
    suffixes = {e.lower() for e in extensions}
    candidates = root.rglob('*') if recursive else root.iterdir()
    return sorted(p for p in candidates if p.is_file() and p.suffix.lower() in suffixes)


def slug_for(path: Path, root: Path) -> str:
    """Slug from the file name; nested paths keep their directories, joined by '/'."""
    parts = path.relative_to(root).with_suffix('').parts
    return '/'.join(slugify(p) or 'doc' for p in parts)


def resolve_slug(root: Path, slug: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> Path:
    """Path of the document a slug names.

    Tries <slug><ext> first, then any file whose slug_for() equals slug (so
    'hello-world' finds 'Hello World.md'). Falls back to the first candidate
    path, which the caller reports as NotFound.
    """
    candidates = [root / f"{slug}{ext}" for ext in extensions]
    found = next((p for p in candidates if p.is_file()), None)
    if found is None and root.is_dir():
        found = next((p for p in discover_files(root, extensions, recursive=True) if slug_for(p, root) == slug),
                     None)
    return found or candidates[0]


def sort_documents(documents: Iterable[RenderedDocument]) -> list[RenderedDocument]:
    """Dated documents newest first; dateless ones after, keeping their order."""
    documents = list(documents)
    dated = [d for d in documents if d.front_matter.date]
    undated = [d for d in documents if not d.front_matter.date]
    return sorted(dated, key=lambda d: d.front_matter.sort_key(), reverse=True) + undated


def _read(path: Path, slug: str) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except FileNotFoundError as e:
        raise NotFound(slug, path) from e


def load_document(
    root: Path,
    slug: str,
    config: Optional[PipelineConfig] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    strict: bool = False,
    ) -> RenderedDocument:
    """Load and render a single document addressed by slug."""
    path = resolve_slug(Path(root), slug, extensions)
    document = Document(slug=slug, raw_source=_read(path, slug), path=path)
    return process_document(document, Pipeline(config), strict)


async def _load(path: Path, slug: str, pipeline: Pipeline, strict: bool) -> RenderedDocument:
    raw = await asyncio.to_thread(_read, path, slug)
    return process_document(Document(slug=slug, raw_source=raw, path=path), pipeline, strict)


async def _load_all(
    jobs: list[tuple[str, Path]],
    pipeline: Pipeline,
    strict: bool,
    errors: Optional[list[LoadError]] = None,
    ) -> DirectoryResult:
    """Load every job concurrently, wait for all of them, then sort."""
    outcomes = await asyncio.gather(
        *(_load(path, slug, pipeline, strict) for slug, path in jobs),
        return_exceptions=True,
    )
    result = DirectoryResult(errors=list(errors or []))
    documents = []
    for (slug, path), outcome in zip(jobs, outcomes):
        if isinstance(outcome, Exception):
            log.warning("Failed to load %s: %s", path, outcome)
            result.errors.append(LoadError(slug=slug, error=outcome, path=path))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            documents.append(outcome)
    result.documents = sort_documents(documents)
    return result


async def load_documents(
    root: Path,
    slugs: Iterable[str],
    config: Optional[PipelineConfig] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    strict: bool = False,
    ) -> DirectoryResult:
    """Load the given slugs concurrently; missing ones are reported as NotFound errors."""
    root = Path(root)
    jobs = [(slug, resolve_slug(root, slug, extensions)) for slug in slugs]
    return await _load_all(jobs, Pipeline(config), strict)


async def load_directory(
    root: Path,
    config: Optional[PipelineConfig] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    recursive: bool = False,
    strict: bool = False,
    ) -> DirectoryResult:
    """Discover and load every matching file under root.

    Per-file failures (including duplicate slugs) are collected in
    ``errors``; the batch itself only fails when root does not exist.
    """
    root = Path(root)
    jobs: list[tuple[str, Path]] = []
    errors: list[LoadError] = []
    seen: dict[str, Path] = {}
    for path in discover_files(root, extensions, recursive):
        slug = slug_for(path, root)
        if slug in seen:
            errors.append(LoadError(
                slug=slug, path=path,
                error=ValueError(f"Duplicate slug '{slug}' (already used by {seen[slug].name})"),
            ))
            continue
        seen[slug] = path
        jobs.append((slug, path))
    log.debug("Loading %d document(s) from %s", len(jobs), root)
    return await _load_all(jobs, Pipeline(config), strict, errors)
