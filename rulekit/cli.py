"""CLI entrypoint for rulekit."""

import logging
import sys
from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(__version__, prog_name="rulekit")
@click.option(
    "--verbose",
    "-V",
    is_flag=True,
    help="Log rule evaluation (short-circuit points, pass counts) to stderr",
)
def cli(verbose: bool) -> None:
    """rulekit - Evaluate declarative validation rulesets.

    Rulesets are TOML or YAML documents naming predicates and the policy
    (all, any, at_least, ...) that combines them.
    """
    if verbose:
        from rich.console import Console
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.argument("ruleset_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("value")
@click.option(
    "--raw",
    is_flag=True,
    help="Treat VALUE as a plain string instead of parsing it as JSON",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output the result as JSON",
)
def check(ruleset_path: Path, value: str, raw: bool, output_json: bool) -> None:
    """Evaluate VALUE against a ruleset file.

    VALUE is parsed as JSON unless --raw is given, so 42 is a number and
    '"42"' is a string.

    Exit codes: 0 pass, 1 fail, 2 invalid ruleset or invocation.

    Examples:

        rulekit check rules/age.toml 21

        rulekit check rules/slug.yaml --raw hello-world
    """
    from .commands.check import run_check

    exit_code = run_check(ruleset_path, value, raw=raw, output_json=output_json)
    sys.exit(exit_code)


@cli.command()
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output the registry as JSON",
)
def predicates(output_json: bool) -> None:
    """List the registered predicates.

    Every predicate also has a negated form, e.g. not_equals.
    """
    from .commands.predicates import run_predicates

    exit_code = run_predicates(output_json=output_json)
    sys.exit(exit_code)


@cli.command()
@click.argument("ruleset_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(ruleset_path: Path) -> None:
    """Print the structure of a ruleset file."""
    from .commands.check import run_show

    exit_code = run_show(ruleset_path)
    sys.exit(exit_code)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
