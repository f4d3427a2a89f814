"""Command-line interface for shellsnip."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from rich.console import Console
from rich.table import Table

from .config import DEFAULT_CONFIG_FILENAME, DEFAULT_TIMEOUT, ConfigError, load_config
from .filesystem import display_path
from .logging_config import setup_logging
from .manager import ShellsnipError, ShellsnipManager
from .models import GenerateAction, GenerateResult, InstallAction, InstallResult, StatusReport, StatusState
from .registry import BUILTIN_TOOLS, describe

app = typer.Typer(help="Generate shell integration snippets and wire them into every shell")
console = Console()

_ACTION_STYLES = {
    GenerateAction.WRITTEN: "green",
    GenerateAction.TOOL_ABSENT: "yellow",
    GenerateAction.SUBPROCESS_FAILED: "yellow",
    GenerateAction.WRITE_FAILED: "red",
    InstallAction.ADDED: "green",
    InstallAction.ALREADY_PRESENT: "green",
    InstallAction.CONFIG_MISSING: "yellow",
    InstallAction.WRITE_FAILED: "red",
}


def _load_manager(config: Path | None) -> ShellsnipManager:
    config_obj = load_config(config)
    return ShellsnipManager(config_obj)


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        console.print("[red]Permission denied.[/red] Check ownership of your home directory and shell configs.")
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        message = str(exc)
        console.print(f"[red]{message}[/red]")
        if "does not exist" in message:
            console.print("[yellow]Use 'shellsnip init --config <path>' to create a configuration file.[/yellow]")
        elif "Expected to find" in message:
            console.print(
                "[yellow]Make sure you pointed to the directory containing the config file, or to the file itself.[/yellow]"
            )
        raise typer.Exit(code=1)
    if isinstance(exc, ShellsnipError):
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    raise exc


def _styled(action: GenerateAction | InstallAction) -> str:
    style = _ACTION_STYLES.get(action, "white")
    return f"[{style}]{action.value}[/{style}]"


def _format_generate_results(results: Iterable[GenerateResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta", title="Snippets")
    table.add_column("Tool")
    table.add_column("Shell")
    table.add_column("File")
    table.add_column("Action")
    table.add_column("Details", overflow="fold")

    for result in results:
        table.add_row(
            result.snippet.tool,
            result.snippet.dialect.value,
            display_path(result.snippet.target_path),
            _styled(result.action),
            result.details or "",
        )

    console.print(table)


def _format_install_results(results: Iterable[InstallResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta", title="Shell configs")
    table.add_column("Shell")
    table.add_column("Config")
    table.add_column("Source line")
    table.add_column("Action")

    for result in results:
        table.add_row(
            result.snippet.dialect.value,
            display_path(result.config_path),
            result.snippet.source_line,
            _styled(result.action),
        )

    console.print(table)


def _format_status(report: StatusReport) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tool")
    table.add_column("Shell")
    table.add_column("State")
    table.add_column("Details", overflow="fold")

    status_styles = {
        StatusState.IN_SYNC: "green",
        StatusState.TOOL_ABSENT: "dim",
        StatusState.SNIPPET_MISSING: "red",
        StatusState.CONFIG_MISSING: "yellow",
        StatusState.NOT_SOURCED: "red",
    }

    for entry in report.entries:
        style = status_styles.get(entry.state, "white")
        table.add_row(
            entry.snippet.tool,
            entry.snippet.dialect.value,
            f"[{style}]{entry.state.value}[/{style}]",
            entry.details or "",
        )

    console.print(table)


def _render_init_config(*, home: str, timeout: float, disabled: list[str]) -> str:
    data: dict[str, object] = {
        "settings": {
            "home": home,
            "timeout": timeout,
        },
    }
    if disabled:
        data["tools"] = {name: {"enabled": False} for name in disabled}

    buffer = io.StringIO()
    buffer.write("# shellsnip configuration\n")
    buffer.write(f"# Built-in tools: {', '.join(BUILTIN_TOOLS)}\n")
    buffer.write("# Add [tools.<name>] tables to override them or declare your own.\n\n")
    buffer.write(tomli_w.dumps(data))
    return buffer.getvalue()


_CONFIG_OPTION_HELP = "Path to shellsnip.toml"
_TOOL_OPTION_HELP = "Limit to specific tool(s)"
_SHELL_OPTION_HELP = "Limit to specific shell(s): bash, fish, nushell, zsh"


@app.command()
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    home: str = typer.Option("~", "--home", help="Home directory snippets are written to"),
    disable: list[str] = typer.Option(None, "--disable", help="Built-in tool(s) to turn off"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter shellsnip configuration file."""

    config_path = config
    if config_path.exists() and not force:
        console.print(f"[red]Configuration '{config_path}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    unknown = [name for name in disable or [] if name not in BUILTIN_TOOLS]
    if unknown:
        console.print(f"[red]Unknown built-in tool(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(code=1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_render_init_config(home=home, timeout=DEFAULT_TIMEOUT, disabled=list(disable or [])))
    console.print(f"[green]Created '{config_path}'.[/green]")


@app.command()
def install(
    config: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_OPTION_HELP),
    tool: list[str] = typer.Option(None, "--tool", "-t", help=_TOOL_OPTION_HELP),
    shell: list[str] = typer.Option(None, "--shell", "-s", help=_SHELL_OPTION_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Regenerate snippet files and add missing source lines to shell configs."""

    setup_logging(verbose=verbose)
    try:
        manager = _load_manager(config)
        report = manager.install(tool or None, shell or None)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return

    _format_generate_results(report.generated)
    if report.installed:
        _format_install_results(report.installed)

    if report.failed:
        failed = ", ".join(dialect.value for dialect in report.failed_dialects())
        suffix = f" for: {failed}" if failed else ""
        console.print(f"[red]Some files could not be written{suffix}. Changes already applied were kept.[/red]")
        raise typer.Exit(code=1)

    console.print("[green]Done. Restart your shell to pick up the changes.[/green]")


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_OPTION_HELP),
    tool: list[str] = typer.Option(None, "--tool", "-t", help=_TOOL_OPTION_HELP),
    shell: list[str] = typer.Option(None, "--shell", "-s", help=_SHELL_OPTION_HELP),
) -> None:
    """Show every snippet and whether its shell loads it."""

    setup_logging()
    try:
        manager = _load_manager(config)
        report = manager.status(tool or None, shell or None)
        _format_status(report)
        if not report.healthy:
            console.print(
                "[yellow]Some snippets are not wired in. Run 'shellsnip doctor' for a health summary or 'shellsnip install' to fix them.[/yellow]"
            )
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def doctor(
    config: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_OPTION_HELP),
    tool: list[str] = typer.Option(None, "--tool", "-t", help=_TOOL_OPTION_HELP),
    shell: list[str] = typer.Option(None, "--shell", "-s", help=_SHELL_OPTION_HELP),
) -> None:
    """Run health checks and exit with non-zero status if issues are found."""

    setup_logging()
    try:
        manager = _load_manager(config)
        report = manager.status(tool or None, shell or None)
        _format_status(report)

        if not report.healthy:
            console.print("[red]Issues detected. Run 'shellsnip install' to regenerate and wire snippets.[/red]")
            raise typer.Exit(code=1)

        console.print("[green]All installed tools are wired into their shells.[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command("list")
def list_tools(
    config: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_OPTION_HELP),
) -> None:
    """List known tools, how their snippets are produced, and whether they are installed."""

    setup_logging()
    try:
        manager = _load_manager(config)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tool")
    table.add_column("Mode")
    table.add_column("Source")
    table.add_column("Shells")
    table.add_column("Found")

    for tool in manager.config.tools.values():
        found = "[green]yes[/green]" if manager.is_available(tool) else "[dim]no[/dim]"
        table.add_row(
            tool.name,
            tool.mode.value,
            describe(tool),
            ", ".join(dialect.value for dialect in tool.dialects),
            found,
        )

    console.print(table)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
