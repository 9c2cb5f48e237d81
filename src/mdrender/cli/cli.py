"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from mdrender._logging import configure_logging
from mdrender.cli.commands import build_cmd, list_cmd, render_cmd, schema_cmd


app = typer.Typer(name="mdrender", no_args_is_help=True, help="Markdown/MDX to sanitized render payloads")


@app.callback()
def main(verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False):
    configure_logging("DEBUG" if verbose else None)


app.command(name="render")(render_cmd)
app.command(name="list")(list_cmd)
app.command(name="build")(build_cmd)
app.command(name="schema")(schema_cmd)
