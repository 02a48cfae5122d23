"""Command-line interface for homegate."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.console import Console
from rich.table import Table

from homegate.config import Config, find_config_file, load_config, merge_cli_options
from homegate.errors import HomegateError
from homegate.loop import MonitorLoop
from homegate.monitor import Monitor, RunState, build_user_index, resolve_user_uid
from homegate.router import FritzboxClient, FritzboxConfig, normalize_mac
from homegate.storage import StateStore

console = Console()


def make_client(cfg: Config) -> FritzboxClient:
    return FritzboxClient(
        FritzboxConfig(
            username=cfg.username,
            password=cfg.password,
            base_url=cfg.router_url,
            timeout=cfg.router_timeout,
            verify_tls=cfg.verify_tls,
        )
    )


ROUTER_OPTIONS = [
    click.option("--url", type=str, default=None, help="Router base URL (default: http://192.168.2.1)"),
    click.option("--username", type=str, default=None, envvar="FRITZBOX_USERNAME", help="Fritz!Box username"),
    click.option("--password", type=str, default=None, envvar="FRITZBOX_PASSWORD", help="Fritz!Box password"),
]

MONITOR_OPTIONS = [
    click.option("--mac", type=str, default=None, help="MAC address to query usage for (optional)"),
    click.option("--period", type=click.Choice(["hour", "day"]), default=None, help="Period to query (default: day)"),
    click.option("--activity-threshold", type=float, default=None, help="Minimum Byte/s to consider interval active"),
    click.option("--policy", type=str, default=None, help="Allowed minutes per day, e.g. MO-TH90FR120SA-SU180"),
    click.option("--enforce", is_flag=True, default=None, help="Block devices that exceed the policy"),
    click.option("--timezone", type=str, default=None, help="IANA timezone for the daily window, e.g. Europe/Berlin"),
]


def router_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that talks to the router."""
    for option in reversed(ROUTER_OPTIONS):
        func = option(func)
    return func


def monitor_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by `monitor` and `watch`."""
    for option in reversed(MONITOR_OPTIONS):
        func = option(func)
    return func


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to config file (default: searches standard locations)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output (debug logging)")
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """homegate - Fritz!Box device usage monitor and policy enforcer."""
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ctx.obj["config"] = load_config(config)

    config_path = config or find_config_file()
    if config_path:
        ctx.obj["config_path"] = config_path


@main.command()
@router_options
@monitor_options
@click.pass_context
def monitor(ctx: click.Context, **options: Any) -> None:
    """Run one monitoring pass and print a usage report."""
    cfg = merge_cli_options(ctx.obj["config"], **options)

    mon = Monitor(cfg.monitor_options(), out=sys.stdout)
    summary = mon.run()

    if mon.state is RunState.FAILED:
        console.print(f"[red]Monitoring error: {mon.failure}[/red]")
        sys.exit(1)

    console.print(
        f"[green]Monitoring done: checked {summary.devices_checked} devices, "
        f"fetched {summary.users_fetched} users, "
        f"duration {summary.duration.total_seconds():.2f}s[/green]"
    )
    for error in summary.errors:
        console.print(f"[yellow]  {error}[/yellow]")


@main.command()
@router_options
@monitor_options
@click.option("--interval", type=float, default=None, help="Seconds between monitoring runs (default: 300)")
@click.pass_context
def watch(ctx: click.Context, **options: Any) -> None:
    """Monitor continuously in the background.

    Example:
        homegate watch --policy MO-FR60SA-SU120 --enforce --interval 300
    """
    cfg = merge_cli_options(ctx.obj["config"], **options)

    if cfg.interval <= 0:
        console.print(f"[red]Interval must be positive, got {cfg.interval}[/red]")
        sys.exit(1)

    if "config_path" in ctx.obj:
        console.print(f"[dim]Config: {ctx.obj['config_path']}[/dim]")

    store = StateStore()
    loop = MonitorLoop(
        lambda: Monitor(cfg.monitor_options()),
        store,
        interval=cfg.interval,
    )

    console.print(f"[green]Monitoring {cfg.router_url} every {cfg.interval:g}s[/green]")
    if cfg.policy:
        mode = "enforcing" if cfg.enforce else "reporting only"
        console.print(f"[cyan]Policy: {cfg.policy} ({mode})[/cyan]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    try:
        asyncio.run(loop.run_forever())
    except KeyboardInterrupt:
        pass

    latest = store.get()
    console.print()
    console.print("[green]Monitor stopped[/green]")
    console.print(f"  Runs: {loop.runs:,}")
    if latest.start_time:
        console.print(f"  Last run: {latest.start_time.strftime('%Y-%m-%d %H:%M:%S')}")


@main.command()
@router_options
@click.pass_context
def datasets(ctx: click.Context, **options: Any) -> None:
    """List the router's online monitor datasets."""
    cfg = merge_cli_options(ctx.obj["config"], **options)
    client = make_client(cfg)

    try:
        client.connect()
        dataset_list = client.get_monitor_datasets()
    except Exception as e:
        console.print(f"[red]Router error: {e}[/red]")
        sys.exit(1)
    finally:
        client.close()

    table = Table(title="Monitor Datasets")
    table.add_column("Dataset")
    table.add_column("Type")
    table.add_column("Subset")
    table.add_column("Duration", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Sources", justify="right")

    for ds in dataset_list:
        for subset in ds.subsets:
            table.add_row(
                ds.uid,
                ds.type,
                subset.uid,
                f"{subset.duration:g}s",
                f"{subset.sample_interval:g}s",
                str(len(ds.data_sources)),
            )

    console.print(table)


def _set_blocked(cfg: Config, mac: str, block: bool) -> None:
    """Block or unblock the user profile owning a MAC address."""
    action = "block" if block else "unblock"
    client = make_client(cfg)
    try:
        client.connect()
        devices = client.get_landevices()
        normalized = normalize_mac(mac)
        device = next((d for d in devices if d.normalized_mac == normalized), None)
        if device is None:
            console.print(f"[red]Device {mac} not known to the router[/red]")
            sys.exit(1)

        uid = resolve_user_uid(device, build_user_index(devices), normalized, fallback_to_device_uid=block)
        if not uid:
            console.print(f"[red]No user UID found for {device.friendly_name}, cannot {action}[/red]")
            sys.exit(1)

        client.block_device(uid, block)
    except HomegateError as e:
        console.print(f"[red]Failed to {action} {mac}: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Router error: {e}[/red]")
        sys.exit(1)
    finally:
        client.close()

    console.print(f"[green]{'Blocked' if block else 'Unblocked'} {device.friendly_name} ({uid})[/green]")


@main.command()
@router_options
@click.argument("mac")
@click.pass_context
def block(ctx: click.Context, mac: str, **options: Any) -> None:
    """Block internet access for the device with MAC."""
    _set_blocked(merge_cli_options(ctx.obj["config"], **options), mac, True)


@main.command()
@router_options
@click.argument("mac")
@click.pass_context
def unblock(ctx: click.Context, mac: str, **options: Any) -> None:
    """Unblock internet access for the device with MAC."""
    _set_blocked(merge_cli_options(ctx.obj["config"], **options), mac, False)


if __name__ == "__main__":
    main()
