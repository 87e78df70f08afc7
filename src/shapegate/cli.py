"""shapegate command line interface.

Commands:
    init    Learn patterns from the codebase and write .shapegate.yml
    check   Match files against the learned patterns
    learn   Re-scan the codebase and merge into the pattern store
    bless   Promote a file to a pattern's blessed references
    version Print the version
"""

import typer

from shapegate.cli_utils import console
from shapegate.commands.bless import bless_command
from shapegate.commands.check import check_command
from shapegate.commands.init import init_command
from shapegate.commands.learn import learn_command

app = typer.Typer(
    name="shapegate",
    help="Learn the structural patterns of a codebase and check new code against them",
    no_args_is_help=True,
    add_completion=False,
)

app.command("init")(init_command)
app.command("check")(check_command)
app.command("learn")(learn_command)
app.command("bless")(bless_command)


@app.command("version")
def version_command() -> None:
    """Print version information."""
    from shapegate import __version__

    console.print(f"shapegate {__version__}")


if __name__ == "__main__":
    app()
