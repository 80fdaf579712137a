"""Entry point: `oneliner [QUERY...]` plus the assess, config, setup, cache and audit commands."""
from __future__ import annotations

import sys

import typer

from . import __version__
from .commands.assess import assess
from .commands.audit import audit
from .commands.cache import cache_app
from .commands.config import config_app, setup
from .commands.generate import ask

app = typer.Typer(
    name="oneliner",
    help="Generate shell one-liners from natural language, with a risk check before anything runs.",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("ask")(ask)
app.command("assess")(assess)
app.add_typer(config_app)
app.command("setup")(setup)
app.add_typer(cache_app)
app.command("audit")(audit)

SUBCOMMANDS = {"ask", "assess", "config", "setup", "cache", "audit"}
ROOT_OPTIONS = {"-h", "--help", "--version"}


def _version_callback(value: bool) -> None:
    if value:
        print(f"oneliner {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit",
    ),
):
    """Generate shell one-liners from natural language, with a risk check before anything runs."""


def route_args(args: list[str]) -> list[str]:
    """Anything that is not a sub-command or a root option is a query for `ask`."""
    if not args or args[0] in SUBCOMMANDS or args[0] in ROOT_OPTIONS:
        return args
    return ["ask", *args]


def main(argv: list[str] | None = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    app(args=route_args(args), prog_name="oneliner")


if __name__ == "__main__":
    main()
