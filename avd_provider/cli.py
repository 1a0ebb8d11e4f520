"""Command line interface for the Azure Virtual Desktop provider.

Commands:
- 'types': List supported resource types
- 'schema': Show the configuration schema of a resource type
- 'parse-id': Validate and decompose a resource ID
- 'plan' / 'apply': Converge resources on a YAML configuration
- 'refresh': Re-read every tracked resource
- 'destroy': Delete one or all tracked resources
- 'import': Adopt an existing resource into the state file
"""

import sys
from typing import Any, Dict, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config_manager import ProviderConfig
from .exceptions import AvdProviderError, SchemaValidationError
from .logging_config import configure_logging
from .parse import build_resource_group_id
from .provider import PlanAction, Provider
from .state_store import DEFAULT_STATE_FILE, StateStore, split_address

console = Console()

_ACTION_STYLES = {
    PlanAction.CREATE: "green",
    PlanAction.UPDATE: "yellow",
    PlanAction.REPLACE: "red",
    PlanAction.NOOP: "dim",
}


def exit_with_error(message: str, code: int = 1) -> None:
    """Exit with error message."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _report_error(e: AvdProviderError) -> None:
    if isinstance(e, SchemaValidationError) and e.validation_errors:
        for line in e.validation_errors:
            click.echo(f"  - {line}", err=True)
    exit_with_error(str(e))


def get_provider(ctx: click.Context, needs_credentials: bool = True) -> Provider:
    """Build the provider from environment configuration, once per invocation."""
    provider = ctx.obj.get("provider")
    if provider is not None:
        return provider

    config = ProviderConfig.from_environment(log_level=ctx.obj.get("log_level"))
    configure_logging(config.logging)
    if needs_credentials:
        config.validate_all()
        if ctx.obj.get("debug"):
            config.log_configuration_summary()

    provider = Provider(config)
    ctx.obj["provider"] = provider
    return provider


def load_resource_file(path: str) -> Dict[str, Tuple[str, Dict[str, Any]]]:
    """Load a YAML configuration file.

    Expected layout::

        resources:
          azurerm_virtual_desktop_workspace.example:
            type: azurerm_virtual_desktop_workspace   # optional
            config:
              name: example
              ...

    Returns:
        Mapping of address -> (resource type, configuration)
    """
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict) or not isinstance(raw.get("resources", {}), dict):
        raise click.BadParameter("'resources' must be a mapping", param_hint="CONFIG")

    resources: Dict[str, Tuple[str, Dict[str, Any]]] = {}
    for address, entry in (raw.get("resources") or {}).items():
        try:
            address_type, _ = split_address(address)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="CONFIG") from e
        entry = entry or {}
        resource_type = entry.get("type", address_type)
        if resource_type.lower() != address_type.lower():
            raise click.BadParameter(
                f"{address}: type {resource_type!r} does not match the address",
                param_hint="CONFIG",
            )
        resources[address] = (resource_type, dict(entry.get("config") or {}))
    return resources


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to LOG_LEVEL",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug output including the configuration summary",
)
@click.version_option(__version__, prog_name="avd")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], debug: bool) -> None:
    """Azure Virtual Desktop provider - manage workspaces and application groups."""
    ctx.ensure_object(dict)
    if debug:
        log_level = "DEBUG"
    ctx.obj["log_level"] = log_level.upper() if log_level else None
    ctx.obj["debug"] = debug


@cli.command("types")
def list_types() -> None:
    """List supported resource types."""
    for resource_type in Provider.supported_types():
        console.print(resource_type)


@cli.command("schema")
@click.argument("resource_type")
@click.pass_context
def show_schema(ctx: click.Context, resource_type: str) -> None:
    """Show the configuration schema of RESOURCE_TYPE.

    Examples:
        avd schema azurerm_virtual_desktop_workspace
    """
    from .schema import describe_schema

    try:
        handler = get_provider(ctx, needs_credentials=False).handler_for(resource_type)
    except AvdProviderError as e:
        _report_error(e)
        return

    table = Table(title=f"{handler.TERRAFORM_TYPE}", show_header=True)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type", style="green")
    table.add_column("Required")
    table.add_column("Force New")
    table.add_column("Description", style="dim")

    for field in describe_schema(handler.CONFIG_MODEL):
        table.add_row(
            field["name"],
            field["type"],
            "yes" if field["required"] else "no",
            "[red]yes[/red]" if field["force_new"] else "no",
            field["description"],
        )
    console.print(table)


@cli.command("parse-id")
@click.argument("resource_type")
@click.argument("resource_id")
@click.pass_context
def parse_id(ctx: click.Context, resource_type: str, resource_id: str) -> None:
    """Validate RESOURCE_ID as an ID of RESOURCE_TYPE and show its parts."""
    try:
        handler = get_provider(ctx, needs_credentials=False).handler_for(resource_type)
        parsed = handler.ID_TYPE.parse(resource_id)
    except AvdProviderError as e:
        _report_error(e)
        return

    table = Table(show_header=False)
    table.add_column("Part", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Subscription", parsed.subscription_id)
    table.add_row("Resource Group", parsed.resource_group)
    table.add_row(
        "Resource Group ID",
        build_resource_group_id(parsed.subscription_id, parsed.resource_group),
    )
    table.add_row("Name", parsed.name)
    table.add_row("Canonical ID", parsed.format())
    console.print(table)


@cli.command("plan")
@click.argument("config_file", metavar="CONFIG", type=click.Path(exists=True))
@click.option("--state", "state_file", default=DEFAULT_STATE_FILE, show_default=True)
@click.pass_context
def plan(ctx: click.Context, config_file: str, state_file: str) -> None:
    """Show what 'apply' would change, without calling the API."""
    try:
        provider = get_provider(ctx, needs_credentials=False)
        store = StateStore(state_file)
        resources = load_resource_file(config_file)

        table = Table(title="Planned Changes", show_header=True)
        table.add_column("Address", style="cyan", no_wrap=True)
        table.add_column("Action")
        table.add_column("Fields", style="dim")

        for address, (resource_type, config) in resources.items():
            change = provider.plan(resource_type, config, store.get(address))
            style = _ACTION_STYLES[change.action]
            fields = change.replace_fields or change.changed_fields
            table.add_row(
                address,
                f"[{style}]{change.action.value}[/{style}]",
                ", ".join(fields),
            )
        for address in store.addresses():
            if address not in resources:
                table.add_row(address, "[red]destroy[/red]", "")
    except AvdProviderError as e:
        _report_error(e)
        return
    console.print(table)


@cli.command("apply")
@click.argument("config_file", metavar="CONFIG", type=click.Path(exists=True))
@click.option("--state", "state_file", default=DEFAULT_STATE_FILE, show_default=True)
@click.pass_context
def apply(ctx: click.Context, config_file: str, state_file: str) -> None:
    """Create, update or replace resources to match CONFIG.

    Tracked resources that are no longer in CONFIG are destroyed.

    Examples:
        avd apply avd.yaml --state avd.state.json
    """
    try:
        provider = get_provider(ctx)
        store = StateStore(state_file)
        resources = load_resource_file(config_file)

        for address in store.addresses():
            if address not in resources:
                console.print(f"[red]- {address}[/red]")
                store.put(address, provider.destroy(store.get(address)))
                store.save()

        for address, (resource_type, config) in resources.items():
            state = store.get(address)
            change = provider.plan(resource_type, config, state)
            style = _ACTION_STYLES[change.action]
            console.print(f"[{style}]{change.action.value}[/{style}] {address}")
            try:
                state = provider.apply(resource_type, config, state)
            finally:
                if state is not None:
                    store.put(address, state)
                    store.save()
    except AvdProviderError as e:
        _report_error(e)
        return

    console.print(
        Panel(f"[green]Apply complete: {len(store)} resource(s) tracked[/green]")
    )


@cli.command("refresh")
@click.option("--state", "state_file", default=DEFAULT_STATE_FILE, show_default=True)
@click.pass_context
def refresh(ctx: click.Context, state_file: str) -> None:
    """Re-read every tracked resource; vanished ones are dropped from state."""
    try:
        provider = get_provider(ctx)
        store = StateStore(state_file)

        table = Table(title="Refreshed Resources", show_header=True)
        table.add_column("Address", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("ID", style="dim")

        for address, state in list(store.items()):
            resource_id = state.id
            provider.refresh(state)
            store.put(address, state)
            table.add_row(address, state.status.value, state.id or resource_id)
        store.save()
    except AvdProviderError as e:
        _report_error(e)
        return
    console.print(table)


@cli.command("destroy")
@click.argument("address", required=False)
@click.option("--state", "state_file", default=DEFAULT_STATE_FILE, show_default=True)
@click.pass_context
def destroy(ctx: click.Context, address: Optional[str], state_file: str) -> None:
    """Delete ADDRESS, or every tracked resource when ADDRESS is omitted."""
    try:
        provider = get_provider(ctx)
        store = StateStore(state_file)

        if address is not None and address not in store:
            exit_with_error(f"{address} is not tracked in {state_file}")
            return
        addresses = [address] if address else list(reversed(store.addresses()))

        for target in addresses:
            console.print(f"[red]- {target}[/red]")
            store.put(target, provider.destroy(store.get(target)))
            store.save()
    except AvdProviderError as e:
        _report_error(e)
        return
    console.print(Panel(f"[green]Destroyed {len(addresses)} resource(s)[/green]"))


@cli.command("import")
@click.argument("address")
@click.argument("resource_id")
@click.option("--state", "state_file", default=DEFAULT_STATE_FILE, show_default=True)
@click.pass_context
def import_resource(
    ctx: click.Context, address: str, resource_id: str, state_file: str
) -> None:
    """Adopt the existing resource RESOURCE_ID as ADDRESS.

    Examples:
        avd import azurerm_virtual_desktop_workspace.example \\
            /subscriptions/.../resourceGroups/rg/providers/Microsoft.DesktopVirtualization/workspaces/ws
    """
    try:
        resource_type, _ = split_address(address)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="ADDRESS") from e

    try:
        provider = get_provider(ctx)
        store = StateStore(state_file)
        if address in store:
            exit_with_error(f"{address} is already tracked in {state_file}")
            return
        state = provider.import_resource(resource_type, resource_id)
        store.put(address, state)
        store.save()
    except AvdProviderError as e:
        _report_error(e)
        return
    console.print(f"[green]Imported {address}[/green] ({state.id})")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
