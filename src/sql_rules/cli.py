"""Command line interface for SQL Rules."""

import sys
from collections.abc import Iterable
from json import dumps
from logging import DEBUG, basicConfig
from pathlib import Path
from typing import Any, Literal

from constrainer import GenericConstrainer, Rule, RuleError, RuleViolationError
from constrainer.rules import OPTIONAL_RULES, default_rules, rule_catalogue
from cyclopts import App
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlschema import Database, read_only_sqlite, sqlite_to_database

app = App(help="SQL Rules schema linter")


type Format = Literal["table", "json", "text"]

console = Console()
err_console = Console(stderr=True)

# Constants
SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}
KIND_LABELS = {
    "table": "Table",
    "column": "Column",
    "foreign_key": "Foreign key",
    "unapplicable": "Unapplicable",
}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure_logging(*, verbose: bool) -> None:
    """Route library log records to stderr when running verbosely."""
    if verbose:
        basicConfig(
            level=DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )


def validate_database_location(database_location: Path) -> None:
    """Validate database location."""
    if not database_location.exists():
        print_error(f"Database file does not exist: {database_location}")
        sys.exit(1)


def validate_database_extension(
    database_location: Path,
    file_extensions: Iterable[str],
) -> None:
    """Validate database file extension."""
    if database_location.suffix.lower() not in file_extensions:
        print_error(
            f"Database file has invalid extension: {', '.join(file_extensions)}",
        )
        sys.exit(1)


def available_rules() -> dict[str, Rule[Any]]:
    """Instantiate every rule of the catalogue, default configuration first."""
    rules = {rule.name: rule for rule in default_rules()}
    for name, rule_class in rule_catalogue().items():
        rules.setdefault(name, rule_class())
    return rules


def select_rules(
    names: Iterable[str] | None = None,
    excluded: Iterable[str] | None = None,
) -> list[Rule[Any]]:
    """Select rules by name, defaulting to the default rule set."""
    rules = available_rules()
    names = list(names or ())
    excluded = set(excluded or ())

    if unknown := sorted({*names, *excluded} - rules.keys()):
        print_error(f"Unknown rule: {', '.join(unknown)}")
        sys.exit(1)

    if names:
        selected = [rule for name, rule in rules.items() if name in names]
    else:
        selected = default_rules()
    return [rule for rule in selected if rule.name not in excluded]


def run_rules(
    database: Database,
    rules: Iterable[Rule[Any]],
    *,
    exhaustive: bool = False,
) -> list[RuleError]:
    """Apply the rules, stopping at the first failure unless exhaustive."""
    constrainer = GenericConstrainer.from_rules(*rules)
    if exhaustive:
        return list(constrainer.violations(database))
    try:
        constrainer.validate_schema(database)
    except RuleError as error:
        return [error]
    return []


def failure_to_dict(error: RuleError) -> dict[str, Any]:
    """Convert a failure into a JSON serializable mapping."""
    if isinstance(error, RuleViolationError):
        return {"kind": error.kind, **error.info.to_dict()}
    return {"kind": error.kind, "message": str(error)}


def format_failure_table(failures: Iterable[RuleError]) -> None:
    """Format failures as a rich table."""
    table = Table(title="Rule Violations")
    table.add_column("Kind", style="bold cyan")
    table.add_column("Rule", style="bold yellow")
    table.add_column("Object")
    table.add_column("Message")
    table.add_column("Resolution", style="green")

    for failure in failures:
        row = failure_to_dict(failure)
        table.add_row(
            KIND_LABELS[row["kind"]],
            row.get("rule", ""),
            row.get("object", ""),
            row["message"],
            row.get("resolution") or "",
        )

    console.print(table)


@app.command
def lint(  # noqa: PLR0913
    sqlite_location: Path,
    fmt: Format = "table",
    *,
    rule: list[str] | None = None,
    exclude: list[str] | None = None,
    exhaustive: bool = False,
    verbose: bool = False,
) -> None:
    """Lint the schema of a SQLite database.

    Parameters
    ----------
    sqlite_location
        SQLite database to lint.
    fmt
        Output format.
    rule
        Only apply the named rules.
    exclude
        Do not apply the named rules.
    exhaustive
        Report every violation instead of stopping at the first one.
    verbose
        Log rule registration and traversal to stderr.

    """
    configure_logging(verbose=verbose)
    selected = select_rules(rule, exclude)

    validate_database_location(sqlite_location)
    validate_database_extension(sqlite_location, SQLITE_EXTENSIONS)
    print_info(f"Source database: {sqlite_location}")
    print_info(f"Rules: {len(selected)}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Linting schema...", total=None)
        try:
            database = sqlite_to_database(read_only_sqlite(sqlite_location))
            failures = run_rules(database, selected, exhaustive=exhaustive)
        except SQLAlchemyError as e:
            print_error(f"Failed to read database schema: {e}")
            sys.exit(1)

    if not failures:
        print_success("No rule violations found")
        return

    if fmt == "json":
        sys.stdout.write(dumps([failure_to_dict(failure) for failure in failures]))
    elif fmt == "text":
        sys.stdout.write("\n\n".join(str(failure) for failure in failures) + "\n")
    elif fmt == "table":
        format_failure_table(failures)

    print_error(f"{len(failures)} rule violation(s) found")
    sys.exit(1)


@app.command
def rules(fmt: Literal["table", "json"] = "table") -> None:
    """List available rules."""
    defaults = {rule.name for rule in default_rules()}
    catalogue = [
        {
            "name": name,
            "kind": KIND_LABELS[rule_class.kind],
            "default": name in defaults,
            "description": (rule_class.__doc__ or "").strip().partition("\n")[0],
        }
        for name, rule_class in rule_catalogue().items()
    ]

    if fmt == "json":
        sys.stdout.write(dumps(catalogue))
        return

    table = Table(title="Rules")
    table.add_column("Rule", style="bold cyan")
    table.add_column("Kind", style="bold yellow")
    table.add_column("Default")
    table.add_column("Description")
    for entry in catalogue:
        table.add_row(
            entry["name"],
            entry["kind"],
            "yes" if entry["default"] else "opt-in",
            entry["description"],
        )
    console.print(table)
    print_info(f"Opt-in rules: {', '.join(sorted(OPTIONAL_RULES))}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
