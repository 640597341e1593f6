"""
Command-line interface for Portfolio CMS.

Offline helpers for content authors and maintainers: preview stored content
as HTML, run the AI cleanup on an HTML file, and migrate stored records.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .ai_fix import ContentFixer
from .config import CMSConfig, ConfigError
from .llm_client import LLMClientError, create_llm_client
from .models import detect_content_kind
from .pages import render_content_field
from .storage import ContentStore, StoreError

console = Console()


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
def main(verbose: bool) -> None:
    """
    Portfolio CMS - content tools.

    Examples:

        portfolio-cms render post.json -o post.html

        portfolio-cms fix draft.html -o fixed.html

        portfolio-cms add-kind --data-dir data
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the HTML here instead of printing it.",
)
def render(source: Path, output: Optional[Path]) -> None:
    """Render a stored content field (or a record holding one) to HTML."""
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {source}:[/red] {e}")
        sys.exit(1)

    if isinstance(data, dict) and "content" in data and detect_content_kind(data) == "empty":
        data = data["content"]

    kind = detect_content_kind(data)
    html = render_content_field(data)

    if output is None:
        click.echo(html)
        return

    output.write_text(html, encoding="utf-8")
    console.print(f"[bold green]Rendered[/bold green] {kind} content to: {output}")


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the fixed HTML here instead of printing it.",
)
@click.option(
    "--enrich",
    is_flag=True,
    default=False,
    help="Use the portfolio enrichment prompt instead of blog cleanup.",
)
@click.option("--title", type=str, help="Work title for --enrich.")
@click.option(
    "--api-key",
    type=str,
    envvar="ANTHROPIC_API_KEY",
    help="Anthropic API key. Can also be set via ANTHROPIC_API_KEY env var.",
)
def fix(source: Path, output: Optional[Path], enrich: bool, title: Optional[str], api_key: Optional[str]) -> None:
    """Run the AI cleanup on an HTML file."""
    html = source.read_text(encoding="utf-8")
    if not html.strip():
        console.print("[red]Error:[/red] HTML content is required")
        sys.exit(1)

    console.print(Panel.fit(
        "[bold blue]Portfolio CMS[/bold blue]\n"
        + ("Enriching work description" if enrich else "Cleaning up blog HTML"),
        border_style="blue",
    ))

    try:
        overrides = {"anthropic_api_key": api_key} if api_key else {}
        config = CMSConfig.from_env(**overrides)
        fixer = ContentFixer(create_llm_client(config))
        with console.status("[bold green]Waiting for the model..."):
            result = fixer.enrich_work(html, title) if enrich else fixer.fix_blog(html)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except LLMClientError as e:
        console.print(f"[red]LLM error:[/red] {e}")
        sys.exit(1)

    if result.missing_images:
        table = Table(title="Images dropped by the model", show_header=True)
        table.add_column("src", style="yellow")
        for src in result.missing_images:
            table.add_row(src)
        console.print(table)

    if output is None:
        click.echo(result.fixed_html)
        return

    output.write_text(result.fixed_html, encoding="utf-8")
    console.print(f"\n[bold green]Success![/bold green] Output saved to: {output}")


@main.command("add-kind")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="CMS_DATA_DIR",
    default="data",
    show_default=True,
    help="Content store directory.",
)
def add_kind(data_dir: Path) -> None:
    """Write an explicit content kind into every stored record."""
    try:
        changed = ContentStore(data_dir).add_content_kinds()
    except StoreError as e:
        console.print(f"[red]Store error:[/red] {e}")
        sys.exit(1)
    console.print(f"[bold green]Done.[/bold green] Updated {changed} record(s) in {data_dir}")


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
