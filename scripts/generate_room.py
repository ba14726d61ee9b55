#!/usr/bin/env python3
"""
Command-line client for the Room Visualizer /generate-room endpoint.

Usage examples:
    python scripts/generate_room.py living_room.jpg
    python scripts/generate_room.py kitchen.png --material "Oak Wood" --output oak.png
    python scripts/generate_room.py bedroom.jpg --endpoint http://localhost:3000 --history
"""

import asyncio
import base64
import mimetypes
import time
from pathlib import Path
from typing import Optional

import aiohttp
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


async def make_generate_request(
    endpoint: str, image_path: Path, material: str
) -> tuple[Optional[dict], Optional[str]]:
    """Upload the image and return the JSON envelope or an error."""
    generate_url = f"{endpoint}/generate-room"
    content_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"

    form = aiohttp.FormData()
    form.add_field(
        "image", image_path.read_bytes(), filename=image_path.name, content_type=content_type
    )
    form.add_field("material", material)

    try:
        # Three provider calls in a row can take a while
        timeout = aiohttp.ClientTimeout(total=300)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            console.print(f"[yellow]Uploading {image_path.name} to: {generate_url}[/yellow]")
            console.print(f"[yellow]Material: {material}[/yellow]")

            start_time = time.time()

            async with session.post(generate_url, data=form) as response:
                response_time = time.time() - start_time

                if response.status == 200:
                    result = await response.json()
                    console.print(f"[green]✓ Success! Response time: {response_time:.2f}s[/green]")
                    return result, None
                else:
                    error_text = await response.text()
                    error = f"HTTP {response.status}: {error_text}"
                    console.print(f"[red]✗ Request failed: {error}[/red]")
                    return None, error

    except asyncio.TimeoutError:
        error = "Request timed out after 300 seconds"
        console.print(f"[red]✗ {error}[/red]")
        return None, error
    except aiohttp.ClientError as e:
        error = f"Request error: {str(e)}"
        console.print(f"[red]✗ {error}[/red]")
        return None, error


async def fetch_history(endpoint: str) -> list[dict]:
    """Fetch the recent generations from /history."""
    async with aiohttp.ClientSession() as session:
        async with session.get(f"{endpoint}/history") as response:
            if response.status != 200:
                console.print(f"[red]History unavailable: HTTP {response.status}[/red]")
                return []
            return await response.json()


def save_data_uri(data_uri: str, output: Path) -> int:
    """Decode a data URI and write it to disk, returning the byte count."""
    _, _, encoded = data_uri.partition(",")
    image_bytes = base64.b64decode(encoded)
    output.write_bytes(image_bytes)
    return len(image_bytes)


def display_history(records: list[dict]) -> None:
    table = Table(title="[bold green]Recent Generations[/bold green]")
    table.add_column("Created", style="cyan", no_wrap=True)
    table.add_column("Material", style="magenta")
    table.add_column("Prompt")

    for record in records:
        prompt = record.get("optimizedPrompt", "")
        if len(prompt) > 80:
            prompt = prompt[:77] + "..."
        table.add_row(record.get("createdAt", "N/A"), record.get("material", "N/A"), prompt)

    console.print(table)


async def main(
    image_path: Path,
    material: str,
    endpoint: str,
    output: Path,
    show_history: bool,
) -> None:
    """Generate a room with a new floor and save the result."""
    if not image_path.exists():
        console.print(f"[red]Error: File {image_path} does not exist[/red]")
        raise typer.Exit(1)

    response, error = await make_generate_request(endpoint, image_path, material)

    if error or not response:
        console.print(f"\n[red]Failed to get response: {error or 'empty response'}[/red]")
        raise typer.Exit(1)

    size = save_data_uri(response["data"], output)

    console.print(Panel(
        f"[bold]Material:[/bold] {material}\n"
        f"[bold]Message:[/bold] {response.get('message', 'N/A')}\n"
        f"[bold]Saved:[/bold] {output} ({size} bytes)\n\n"
        f"[bold]Prompt used:[/bold]\n{response.get('promptUsed', 'N/A')}",
        title="[bold blue]Generation Result[/bold blue]",
        expand=False
    ))

    if show_history:
        display_history(await fetch_history(endpoint))


def cli_main(
    image_path: Path = typer.Argument(
        ...,
        help="Room photo to upload (JPEG, PNG, WebP)"
    ),
    material: str = typer.Option(
        "Marble",
        "--material",
        help="Flooring material to render"
    ),
    endpoint: str = typer.Option(
        "http://localhost:3000",
        "--endpoint",
        help="Room Visualizer API endpoint"
    ),
    output: Path = typer.Option(
        Path("generated_room.png"),
        "--output",
        help="Where to save the generated PNG"
    ),
    show_history: bool = typer.Option(
        False,
        "--history",
        help="Show recent generations afterwards"
    )
) -> None:
    """Replace the floor in a room photo using the Room Visualizer API."""

    try:
        asyncio.run(main(
            image_path=image_path,
            material=material,
            endpoint=endpoint,
            output=output,
            show_history=show_history,
        ))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(1)


if __name__ == "__main__":
    typer.run(cli_main)
