import typer

from bytedocs.cli.handlers import handlers, show
from bytedocs.cli.serve import openapi, serve

app = typer.Typer(
    name="bytedocs",
    help="bytedocs CLI: derive API documentation from Go handler source.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("handlers")(handlers)
app.command("show")(show)
app.command("openapi")(openapi)
app.command("serve")(serve)


def main() -> None:
    app()
