"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdblog.cli.commands import comment_cmd, init_cmd, read_cmd, render_cmd


app = typer.Typer(name="mdblog", no_args_is_help=True, help="Blog markdown to html compiler")

app.command(name="init")(init_cmd)
app.command(name="read")(read_cmd)
app.command(name="render")(render_cmd)
app.command(name="comment")(comment_cmd)
