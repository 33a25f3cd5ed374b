"""
tfimport CLI entry point.
"""
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tfimport import __version__
from tfimport.actions import (
    ACTION_GET_TERRAFORM,
    ACTION_GET_TERRAFORM_RECURSIVE,
    TerraformImportActions,
)
from tfimport.arm import ArmClient
from tfimport.config import Settings, load_settings
from tfimport.crawl import CrawlResult
from tfimport.deadline import Deadline
from tfimport.errors import TfImportError
from tfimport.models.node import ResourceNode
from tfimport.provider import TerraformCliProvider
from tfimport.reporters import json_reporter, markdown
from tfimport.tree import ArmTreeModel

console = Console(stderr=True)


def arm_client(settings: Settings) -> ArmClient:
    return ArmClient(settings.arm_endpoint, token=settings.access_token)


def build_actions(settings: Settings, client: ArmClient) -> TerraformImportActions:
    provider = TerraformCliProvider(settings.terraform_bin, verbose=settings.verbose)
    return TerraformImportActions.from_settings(settings, client, provider, ArmTreeModel(client))


def _fail(exc: TfImportError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    sys.exit(exc.exit_code)


def _load(config_path: Optional[str], verbose: bool) -> Settings:
    try:
        settings = load_settings(config_path)
    except TfImportError as exc:
        _fail(exc)
    settings.verbose = verbose
    return settings


def _render(result: CrawlResult, content: str, output_format: str, source: str) -> str:
    if output_format == "markdown":
        return markdown.build_report(result, source)
    if output_format == "json":
        return json_reporter.build_report(result, source)
    return content


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """tfimport — generate Terraform configuration from live Azure resources."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.argument("resource_id")
@click.option("--recursive", "-r", is_flag=True, default=False, help="Include the resource's descendants.")
@click.option("--depth", type=click.IntRange(min=0), default=None, help="Maximum depth for --recursive.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["hcl", "markdown", "json"], case_sensitive=False),
    default="hcl",
    show_default=True,
    help="Output format.",
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Write output to this file (default: stdout).")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Settings file (default: ./tfimport.yaml when present).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Deadline in seconds for the whole action.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show provider and crawl details.")
def get(
    resource_id: str,
    recursive: bool,
    depth: Optional[int],
    output_format: str,
    output: Optional[str],
    config_path: Optional[str],
    timeout: Optional[float],
    verbose: bool,
) -> None:
    """
    Print Terraform configuration for RESOURCE_ID.
    """
    settings = _load(config_path, verbose)
    if depth is not None:
        settings.recursive_depth = depth
    node = ResourceNode(id=resource_id)

    try:
        with arm_client(settings) as client:
            actions = build_actions(settings, client)
            with console.status("[bold]Resolving resource type…"):
                eligible = actions.has_actions(node)
            if not eligible:
                console.print(f"[yellow]No Terraform resource type is mapped for[/yellow] {resource_id}")
                sys.exit(1)

            wanted = ACTION_GET_TERRAFORM_RECURSIVE if recursive else ACTION_GET_TERRAFORM
            action = next(a for a in actions.list_actions(node) if a.action_id == wanted)
            deadline = Deadline(timeout) if timeout is not None else None
            with console.status(f"[bold]{action.display}…"):
                result = actions.execute_action(action, deadline)
    except TfImportError as exc:
        _fail(exc)

    crawl = result.crawl or CrawlResult()
    content = _render(crawl, result.content, output_format.lower(), resource_id)
    if crawl.errors:
        console.print(f"[yellow]{len(crawl.errors)} error(s)[/yellow] annotated in the output.")

    if output:
        with open(output, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
        console.print(f"Output written to [bold]{output}[/bold]")
    else:
        click.echo(content, nl=False)
    sys.exit(0)


@cli.command()
@click.argument("resource_id")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
def resolve(resource_id: str, config_path: Optional[str]) -> None:
    """
    Show the resource type and import ID for RESOURCE_ID.
    """
    settings = _load(config_path, False)
    node = ResourceNode(id=resource_id)
    try:
        with arm_client(settings) as client:
            actions = build_actions(settings, client)
            resource_type = actions.crawler.resolver.resolve_node(node, Deadline(settings.timeout))
            if not resource_type:
                console.print(f"[yellow]Unmodeled:[/yellow] {resource_id}")
                sys.exit(1)
            import_id = actions.crawler.remapper.import_id_for(resource_type, resource_id)
    except TfImportError as exc:
        _fail(exc)

    click.echo(f"type:      {resource_type}")
    click.echo(f"import id: {import_id}")


@cli.command()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
def types(config_path: Optional[str]) -> None:
    """
    List the supported resource types.
    """
    config = _load(config_path, False).import_config()
    tbl = Table(title="Supported resource types", show_header=True, header_style="bold")
    tbl.add_column("Type", style="cyan")
    tbl.add_column("Resource ID template")
    for name in config.supported_types:
        tbl.add_row(name, config.template_for(name).template)
    Console().print(tbl)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
