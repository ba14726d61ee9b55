#!/usr/bin/env python3
"""
List the Gemini models that can serve the describe stage.

Only models supporting ``generateContent`` are shown; use one of them as
``vision.gemini.model`` in config/providers.yml.

Usage examples:
    GEMINI_API_KEY=... python scripts/list_models.py
    python scripts/list_models.py --api-key AIza...
"""

from typing import Any, Optional

import typer
from google import genai
from google.genai import errors as genai_errors
from rich.console import Console
from rich.table import Table

console = Console()

GENERATE_ACTION = "generateContent"


def list_generate_models(client: Any) -> list[dict]:
    """Models that support generateContent, with the ``models/`` prefix removed."""
    models = []
    for model in client.models.list():
        if GENERATE_ACTION not in (model.supported_actions or []):
            continue
        name = model.name or ""
        if name.startswith("models/"):
            name = name[len("models/"):]
        models.append({
            "name": name,
            "display_name": model.display_name or "",
            "input_token_limit": model.input_token_limit,
        })
    return models


def display_models(models: list[dict]) -> None:
    table = Table(title="[bold green]Available Gemini Models[/bold green]")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Display Name", style="magenta")
    table.add_column("Input Tokens", justify="right")

    for model in models:
        limit = model["input_token_limit"]
        table.add_row(model["name"], model["display_name"], str(limit) if limit else "N/A")

    console.print(table)


def cli_main(
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        envvar="GEMINI_API_KEY",
        help="Gemini API key"
    )
) -> None:
    """List Gemini models that support generateContent."""
    if not api_key:
        console.print("[red]Error: GEMINI_API_KEY is not set[/red]")
        raise typer.Exit(1)

    console.print("[yellow]Fetching available models...[/yellow]")

    try:
        models = list_generate_models(genai.Client(api_key=api_key))
    except genai_errors.APIError as e:
        console.print(f"[red]✗ Error listing models: {e.message or e.status}[/red]")
        raise typer.Exit(1)

    if not models:
        console.print("[yellow]No models support generateContent for this key[/yellow]")
        return

    display_models(models)


if __name__ == "__main__":
    typer.run(cli_main)
