"""CLI command implementations"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from mdrender.config import Settings, load_config
from mdrender.core.loader import load_directory, slug_for
from mdrender.core.models import DirectoryResult, Document
from mdrender.core.pipeline import Pipeline, process_document
from mdrender.core.render import render_html
from mdrender.errors import MdrenderError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _load_dir(settings: Settings, root: Optional[str]) -> DirectoryResult:
    try:
        return asyncio.run(load_directory(
            Path(root or settings.content_root),
            settings.pipeline_config(),
            extensions=settings.extensions,
            recursive=settings.recursive,
            strict=settings.strict_frontmatter,
        ))
    except (MdrenderError, ValueError) as e:
        _fail(f"Could not load {root or settings.content_root}", e)


def _echo_errors(result: DirectoryResult) -> None:
    for err in result.errors:
        typer.echo(f"  failed: {err.slug} ({err.kind}: {err.error})", err=True)


def render_cmd(
    path: Annotated[str, typer.Argument(help="Markdown/MDX file to render")],
    html: Annotated[bool, typer.Option("--html", help="Print rendered HTML instead of the payload JSON")] = False,
    out: Annotated[Optional[str], typer.Option("--out", help="Write output to this file")] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on malformed front matter")] = False,
    ):
    """Render a single document to payload JSON (or HTML)."""
    settings = _settings(overrides={"strict_frontmatter": strict or None})
    source = Path(path)
    try:
        document = Document(slug=slug_for(source, source.parent), raw_source=source.read_text(encoding="utf-8"),
                            path=source)
        rendered = process_document(document, Pipeline(settings.pipeline_config()), settings.strict_frontmatter)
    except (OSError, MdrenderError, ValueError) as e:
        _fail(f"Could not render {path}", e)

    output = render_html(rendered.payload) if html else rendered.model_dump_json(indent=2)
    if out:
        Path(out).write_text(output, encoding="utf-8")
        typer.echo(f"  {path} -> {out}")
    else:
        typer.echo(output)


def list_cmd(
    root: Annotated[Optional[str], typer.Argument(help="Content root (default: content_root setting)")] = None,
    recursive: Annotated[bool, typer.Option("--recursive", help="Descend into subdirectories")] = False,
    ):
    """List documents under a content root, newest first."""
    settings = _settings(overrides={"recursive": recursive or None})
    result = _load_dir(settings, root)
    for doc in result.documents:
        fm = doc.front_matter
        typer.echo(f"{fm.date or '-':<12} {doc.slug}" + (f"  {fm.title}" if fm.title else ""))
    _echo_errors(result)
    if not result.documents and result.errors:
        raise typer.Exit(1)


def build_cmd(
    root: Annotated[Optional[str], typer.Argument(help="Content root (default: content_root setting)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    recursive: Annotated[bool, typer.Option("--recursive", help="Descend into subdirectories")] = False,
    ):
    """Render every document to <slug>.json plus an ordered index.json."""
    settings = _settings(overrides={"output_dir": out, "recursive": recursive or None})
    result = _load_dir(settings, root)
    output_dir = Path(settings.output_dir)

    index = []
    try:
        for doc in result.documents:
            dest = output_dir / f"{doc.slug}.json"
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(doc.model_dump_json(indent=2), encoding="utf-8")
            index.append({"slug": doc.slug, "frontmatter": doc.front_matter.as_dict()})
            typer.echo(f"  {doc.slug} -> {dest}")
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / "index.json").write_text(
            json.dumps({
                "documents": index,
                "errors": [{"slug": e.slug, "kind": e.kind, "error": str(e.error)} for e in result.errors],
            }, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as e:
        _fail("Build failed", e)
    _echo_errors(result)
    typer.echo(f"Built {len(result.documents)} document(s) to {output_dir}/"
               + (f", {len(result.errors)} failed" if result.errors else ""))
    if not result.documents and result.errors:
        raise typer.Exit(1)


def schema_cmd():
    """Print the effective sanitization schema as YAML."""
    settings = _settings()
    try:
        schema = settings.sanitization_schema()
    except ValueError as e:
        _fail("Invalid sanitization settings", e)
    typer.echo(yaml.safe_dump(schema.as_dict(), sort_keys=False).rstrip())
