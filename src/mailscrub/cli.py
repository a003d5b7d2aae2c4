"""Click CLI with commands: strip, unwrap, decide, enable, disable, status, clean-tabs."""

from __future__ import annotations

import asyncio
import json

import click

from mailscrub.bulk import Tab
from mailscrub.config import load_config
from mailscrub.flags import JsonFileFlagStore, read_enabled
from mailscrub.gate import NavigationEvent, Redirect
from mailscrub.logging import setup_logging
from mailscrub.runtime import Runtime
from mailscrub.statuses import MessageType, ResourceType
from mailscrub.unwrap import unwrap
from mailscrub.urls import strip_query


class FileTabHost:
    """Tab host over an in-memory list of documents loaded from JSON."""

    def __init__(self, tabs: list[Tab]) -> None:
        self.tabs = tabs

    async def query(self, window_id: int | None = None) -> list[Tab]:
        return list(self.tabs)

    async def update(self, tab_id: int, url: str) -> None:
        for tab in self.tabs:
            if tab.id == tab_id:
                tab.url = url
                return
        raise LookupError(f"no tab with id {tab_id}")


class EchoNotifier:
    async def notify(self, title: str, message: str) -> None:
        click.echo(f"{title}: {message}", err=True)


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config YAML file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """Mailscrub — strip tracking from links opened from webmail."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["config"] = cfg
    ctx.obj["log"] = setup_logging(cfg.settings.log_dir)
    ctx.obj["flag_store"] = JsonFileFlagStore(cfg.settings.flag_path)


@cli.command()
@click.argument("url")
def strip(url: str) -> None:
    """Print URL without its query string."""
    click.echo(strip_query(url) or url)


@cli.command("unwrap")
@click.argument("url")
@click.pass_context
def unwrap_cmd(ctx: click.Context, url: str) -> None:
    """Print the destination behind a tracking/redirector URL."""
    cfg = ctx.obj["config"]
    click.echo(unwrap(url, max_hops=cfg.settings.max_unwrap_hops))


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--initiator", default=None, help="Initiator URL of the first navigation.")
@click.option("--tab", "tab_id", default=1, type=int, help="Tab id the navigations happen in.")
@click.option(
    "--type",
    "resource_type",
    default=ResourceType.MAIN_FRAME.value,
    type=click.Choice([t.value for t in ResourceType]),
    help="Request resource type.",
)
@click.pass_context
def decide(ctx: click.Context, urls: tuple[str, ...], initiator: str | None, tab_id: int, resource_type: str) -> None:
    """Run the request gate over a chain of navigations in one tab.

    The initiator applies to the first URL only; later URLs model the
    follow-up redirect hops.
    """
    cfg = ctx.obj["config"]
    runtime = Runtime(cfg, ctx.obj["flag_store"], FileTabHost([]), EchoNotifier(), log=ctx.obj["log"])

    async def _run() -> None:
        for i, url in enumerate(urls):
            event = NavigationEvent(
                url=url,
                resource_type=resource_type,
                tab_id=tab_id,
                initiator=initiator if i == 0 else None,
            )
            decision = await runtime.gate.decide(event)
            if isinstance(decision, Redirect):
                click.echo(f"redirect {url} -> {decision.target_url}")
            else:
                click.echo(f"no-action {url}")

    asyncio.run(_run())


@cli.command()
@click.pass_context
def enable(ctx: click.Context) -> None:
    """Turn link cleaning on."""
    asyncio.run(ctx.obj["flag_store"].set(True))
    click.echo("enabled")


@cli.command()
@click.pass_context
def disable(ctx: click.Context) -> None:
    """Turn link cleaning off."""
    asyncio.run(ctx.obj["flag_store"].set(False))
    click.echo("disabled")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show whether link cleaning is on."""
    enabled = asyncio.run(read_enabled(ctx.obj["flag_store"]))
    click.echo("enabled" if enabled else "disabled")


@cli.command("clean-tabs")
@click.argument("tabs_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def clean_tabs(ctx: click.Context, tabs_file: str) -> None:
    """Strip query strings from a JSON list of {id, url} documents."""
    cfg = ctx.obj["config"]

    with open(tabs_file) as f:
        tabs = [Tab.model_validate(item) for item in json.load(f)]

    host = FileTabHost(tabs)
    runtime = Runtime(cfg, ctx.obj["flag_store"], host, EchoNotifier(), log=ctx.obj["log"])
    report = asyncio.run(runtime.on_message({"type": MessageType.CLEAN_ALL_TABS.value}))

    click.echo(json.dumps([tab.model_dump() for tab in host.tabs], indent=2))
    if report is not None:
        click.echo(f"Cleaned: {report.cleaned}  |  Failed: {report.failed}")
