"""Check and show command implementations."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ..errors import RuleError
from ..load import load_ruleset
from ..rule import Negation, Rule
from ..ruleset import Ruleset, describe
from ..schema import RulesetDef


def _print_error(console: Console, error: RuleError, output_json: bool) -> None:
    if output_json:
        print(json.dumps({"result": "error", **error.to_dict()}, indent=2, default=str))
        return
    console.print(f"✗ {type(error).__name__}: {escape(error.message)}", style="bold red")
    root = error.root()
    if root is not error:
        console.print(f"  caused by {type(root).__name__}: {escape(str(root))}", style="dim")


def _parse_value(value: str, raw: bool) -> Any:
    if raw:
        return value
    return json.loads(value)


def run_check(
    ruleset_path: Path,
    value: str,
    *,
    raw: bool = False,
    output_json: bool = False,
) -> int:
    """Evaluate a value against a ruleset file.

    Args:
        ruleset_path: Path to a TOML or YAML ruleset
        value: The value to check, as given on the command line
        raw: Treat value as a plain string instead of JSON
        output_json: Output results as JSON instead of human-readable

    Returns:
        Exit code (0 = pass, 1 = fail, 2 = invalid ruleset or invocation)
    """
    console = Console(stderr=True)

    try:
        subject = _parse_value(value, raw)
    except json.JSONDecodeError as e:
        console.print(f"✗ VALUE is not valid JSON ({e.msg}); pass --raw to check it as a string", style="bold red")
        return 2

    try:
        definition = load_ruleset(ruleset_path)
        passed = definition.evaluate(subject)
    except RuleError as e:
        _print_error(console, e, output_json)
        return 2

    if output_json:
        print(
            json.dumps(
                {
                    "result": "pass" if passed else "fail",
                    "ruleset": _ruleset_meta(definition),
                    "value": subject,
                },
                indent=2,
                default=str,
            )
        )
    else:
        label = f"{escape(definition.ruleset_id)} v{definition.version}"
        if passed:
            console.print(f"✓ PASS  {label}", style="bold green")
        else:
            console.print(f"✗ FAIL  {label}", style="bold red")
        if definition.description:
            console.print(f"  {escape(definition.description)}", style="dim")

    return 0 if passed else 1


def _ruleset_meta(definition: RulesetDef) -> dict:
    return {
        "ruleset_id": definition.ruleset_id,
        "version": definition.version,
        "policy": str(definition.ruleset.policy),
        "rules": len(definition.ruleset),
        "path": str(definition.source) if definition.source else None,
    }


def _add_branch(tree: Tree, entry: Any) -> None:
    if isinstance(entry, Ruleset):
        branch = tree.add(f"[bold]{escape(str(entry.policy))}[/]" + (f" [dim]{escape(entry.name)}[/]" if entry.name else ""))
        for child in entry:
            _add_branch(branch, child)
    elif isinstance(entry, Negation):
        branch = tree.add("[yellow]not[/]")
        _add_branch(branch, entry.entry)
    elif isinstance(entry, Rule):
        tree.add(escape(repr(entry)))
    else:
        tree.add(escape(describe(entry)))


def run_show(ruleset_path: Path) -> int:
    """Print the structure of a ruleset file as a tree.

    Returns:
        Exit code (0 = success, 2 = invalid ruleset)
    """
    console = Console(stderr=True)

    try:
        definition = load_ruleset(ruleset_path)
    except RuleError as e:
        _print_error(console, e, output_json=False)
        return 2

    tree = Tree(
        f"[bold]{escape(definition.ruleset_id)}[/] v{definition.version} [dim]({escape(str(definition.ruleset.policy))})[/]"
    )
    for entry in definition.ruleset:
        _add_branch(tree, entry)

    Console().print(tree)
    if definition.description:
        console.print(escape(definition.description), style="dim")
    return 0
