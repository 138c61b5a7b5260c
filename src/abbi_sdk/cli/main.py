"""Command-line tool for checking an ABBI integration."""

import json
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..campaigns import ImmediateDispatcher
from ..client import ABBIClient
from ..config import ConfigManager
from ..core.types import AppType, CampaignInfo
from ..links import parse_sdk_url
from ..observability import setup_logging

# Initialize console for rich output
console = Console()

app = typer.Typer(
    name="abbi",
    help="ABBI SDK - send goals, fire triggers and check SDK URLs against the backend",
    add_completion=False,
)


class ConsolePresenter:
    """Prints campaigns instead of rendering them, then dismisses them."""

    def present(self, campaign: CampaignInfo, dismiss: Callable[[], bool]) -> None:
        console.print(Panel.fit(
            json.dumps(campaign.model_dump(mode="json"), indent=2),
            title=f"Campaign {campaign.campaign_id}",
        ))
        dismiss()


def load_config(ctx: typer.Context) -> ConfigManager:
    """Load configuration from the --config file, if any."""
    config_manager = ConfigManager()
    config_path = (ctx.obj or {}).get("config_file")
    if config_path:
        config_manager.load_from_file(config_path)
    return config_manager


def build_client(ctx: typer.Context) -> ABBIClient:
    """Create a client whose callbacks run inline and campaigns print to the console."""
    return ABBIClient(
        config=load_config(ctx),
        dispatcher=ImmediateDispatcher(),
        presenter=ConsolePresenter(),
    )


def parse_properties(values: List[str]) -> dict:
    """Turn ``key=value`` options into a dictionary."""
    properties = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{item}'")
        properties[key] = value
    return properties


def report(client: ABBIClient) -> None:
    """Flush, print delivery counters and exit non-zero on failures."""
    client.flush()
    stats = client.delivery_stats()
    client.shutdown()

    table = Table(title="Delivery")
    table.add_column("Counter", style="cyan")
    table.add_column("Value", style="magenta")
    for counter, value in stats.items():
        table.add_row(counter, str(value))
    console.print(table)

    if stats["failed"] or stats["dropped"]:
        raise typer.Exit(1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """ABBI SDK CLI."""
    ctx.obj = {
        "config_file": config_file,
        "verbose": verbose,
    }
    if verbose:
        setup_logging(level="DEBUG")


@app.command()
def goal(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Goal name"),
    app_id: str = typer.Option(..., "--app-id", envvar="ABBI_APP_ID", help="Application id"),
    secret_key: str = typer.Option(..., "--secret-key", envvar="ABBI_SECRET_KEY", help="Application secret key"),
    prop: List[str] = typer.Option([], "--prop", "-p", help="Goal property as key=value (repeatable)"),
):
    """Send a goal to the backend."""
    properties = parse_properties(prop)

    client = build_client(ctx)
    client.start(app_id, secret_key)
    if not client.is_started:
        console.print("[red]Could not start a session with the given credentials[/red]")
        raise typer.Exit(1)

    client.send_goal(name, properties)
    report(client)


@app.command()
def trigger(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Trigger key"),
    app_id: str = typer.Option(..., "--app-id", envvar="ABBI_APP_ID", help="Application id"),
    secret_key: str = typer.Option(..., "--secret-key", envvar="ABBI_SECRET_KEY", help="Application secret key"),
    deep_link: Optional[str] = typer.Option(None, "--deep-link", help="Deep link to navigate to first"),
):
    """Fetch and print the campaign behind a trigger key."""
    client = build_client(ctx)
    client.set_deep_link_handler(lambda link: console.print(f"[cyan]Navigate to {link}[/cyan]"))
    client.start(app_id, secret_key)
    if not client.is_started:
        console.print("[red]Could not start a session with the given credentials[/red]")
        raise typer.Exit(1)

    client.trigger(name, deep_link)
    report(client)


@app.command("open-url")
def open_url(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to hand to the SDK"),
    app_id: Optional[str] = typer.Option(
        None,
        "--app-id",
        envvar="ABBI_APP_ID",
        help="Application id, enables the per-app scheme",
    ),
):
    """Report whether the SDK would consume a URL, without contacting the backend."""
    config_manager = load_config(ctx)

    try:
        action = parse_sdk_url(url, scheme=config_manager.settings.links.scheme, app_id=app_id)
    except Exception as e:
        console.print(f"[red]Unparsable URL: {e}[/red]")
        raise typer.Exit(1)

    if action is None:
        console.print("[yellow]Not handled by the SDK[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]Handled by the SDK:[/green] {action.action}")
    console.print_json(data={
        "action": action.action,
        "name": action.name,
        "deep_link": action.deep_link,
        "flag": action.flag,
        "properties": action.properties,
    })


@app.command()
def config(
    ctx: typer.Context,
    action: str = typer.Argument(
        ...,
        help="Action to perform: show, validate, create-default",
    ),
    file_path: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Path to configuration file",
    ),
):
    """Manage configuration."""
    try:
        config_manager = ConfigManager()

        if action == "show":
            config_path = file_path or ctx.obj.get("config_file")
            if config_path:
                config_manager.load_from_file(config_path)

            console.print(Panel.fit(
                json.dumps(config_manager.get_all(), indent=2, default=str),
                title="Configuration",
            ))

        elif action == "validate":
            config_path = file_path or ctx.obj.get("config_file")
            if config_path:
                config_manager.load_from_file(config_path)

            errors = config_manager.validate_config()

            if errors:
                console.print("[red]Configuration validation failed:[/red]")
                for error in errors:
                    console.print(f"  • {error}")
                raise typer.Exit(1)
            console.print("[green]Configuration is valid[/green]")

        elif action == "create-default":
            if not file_path:
                console.print("[red]Error: --file is required for create-default action[/red]")
                raise typer.Exit(1)

            config_manager.create_default_config(file_path)
            console.print(f"[green]Created default configuration file: {file_path}[/green]")

        else:
            console.print(f"[red]Unknown action: {action}[/red]")
            console.print("[cyan]Available actions: show, validate, create-default[/cyan]")
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from .. import __version__
    console.print(f"[bold cyan]ABBI SDK[/bold cyan] v{__version__}")
    console.print(f"[dim]Application types: {', '.join(t.name for t in AppType if t is not AppType.MAX)}[/dim]")


if __name__ == "__main__":
    app()
