"""romup CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="romup",
    help="Upload ROM files to a ROM library server",
    add_completion=False
)
console = Console()

DEFAULT_API_URL = "http://localhost:5000/api"

STATUS_STYLES = {
    'succeeded': 'green',
    'failed': 'red',
    'rejected': 'red',
    'duplicate': 'yellow',
    'needs-platform-selection': 'yellow',
    'discarded': 'dim',
}


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def make_client(api_url: str, insecure: bool):
    from romup import RomUploadClient

    config = RomUploadClient.create_config(base_url=api_url, verify_ssl=not insecure)
    return RomUploadClient(config=config)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Upload ROM files to a ROM library server."""
    from romup import setup_logging

    setup_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command()
def platforms(
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", envvar="ROMUP_API_URL", help="API base URL"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip SSL verification"),
):
    """List active platforms and their extensions."""
    from romup.core.exceptions import RomUploadException

    async def list_platforms():
        async with make_client(api_url, insecure) as client:
            try:
                items = await client.list_platforms()
            except RomUploadException as e:
                console.print(f"[red]Failed to load platforms: {e}[/red]")
                raise typer.Exit(1)

        table = Table()
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Extensions", style="dim")
        for platform in items:
            table.add_row(
                str(platform.id),
                platform.name,
                ", ".join(f".{ext}" for ext in platform.resolve_extensions()) or "-"
            )
        console.print(table)

    run_async(list_platforms())


@app.command()
def detect(
    files: List[Path] = typer.Argument(..., help="ROM files (only names are inspected)"),
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", envvar="ROMUP_API_URL", help="API base URL"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip SSL verification"),
):
    """Show which platforms each file would be uploaded to."""
    from romup.core.exceptions import RomUploadException

    async def do_detect():
        async with make_client(api_url, insecure) as client:
            try:
                results = await client.detect(files)
            except RomUploadException as e:
                console.print(f"[red]Failed to load platforms: {e}[/red]")
                raise typer.Exit(1)

        table = Table()
        table.add_column("File")
        table.add_column("Ext", style="dim")
        table.add_column("Platform")
        for result in results:
            if result.recommended_platform:
                platform = f"[green]{result.recommended_platform}[/green]"
            elif result.is_ambiguous:
                names = ", ".join(p.name for p in result.possible_platforms)
                platform = f"[yellow]ambiguous: {names}[/yellow]"
            else:
                platform = "[red]unknown[/red]"
            table.add_row(result.file_name, result.extension or "-", platform)
        console.print(table)

    run_async(do_detect())


@app.command(name="hash")
def hash_files(
    files: List[Path] = typer.Argument(..., help="Files to fingerprint", exists=True, dir_okay=False),
):
    """Print content fingerprints used for duplicate detection."""
    from romup.core.upload import RomFile
    from romup.core.upload.services import ContentHasher
    from romup.core.exceptions import HashUnavailable

    async def do_hash():
        hasher = ContentHasher()
        failed = False
        for path in files:
            try:
                fingerprint = await hasher.hash(RomFile.from_path(path))
            except HashUnavailable as e:
                console.print(f"[red]{e}[/red]")
                failed = True
                continue
            note = " [yellow](fallback)[/yellow]" if fingerprint.is_fallback else ""
            console.print(f"{fingerprint.value}  {path.name}  [dim]{fingerprint.algorithm}[/dim]{note}")
        if failed:
            raise typer.Exit(1)

    run_async(do_hash())


@app.command()
def upload(
    files: List[Path] = typer.Argument(..., help="ROM files to upload"),
    platform_id: Optional[int] = typer.Option(None, "--platform", "-p", help="Platform ID for files that cannot be detected"),
    include_duplicates: bool = typer.Option(False, "--include-duplicates", help="Upload files already in the collection"),
    no_input: bool = typer.Option(False, "--no-input", help="Never prompt; skip what cannot be decided"),
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", envvar="ROMUP_API_URL", help="API base URL"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip SSL verification"),
):
    """Upload ROM files, grouped by detected platform."""
    from romup.core.exceptions import PlatformUnknown
    from romup.core.upload import RunState

    async def do_upload():
        async with make_client(api_url, insecure) as client:
            run = client.start_upload(files)
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            )
            task = progress.add_task(f"Uploading {len(files)} file(s)", total=100, start=False)

            # Prompts block the event loop. Both events fire while no file work is in flight.
            def on_duplicates(candidates):
                console.print(f"[yellow]{len(candidates)} file(s) already in your collection:[/yellow]")
                for candidate in candidates:
                    existing = (candidate.existing_record or {}).get('title') or ''
                    console.print(f"  {candidate.name} [dim]{existing}[/dim]")
                for candidate in candidates:
                    include = include_duplicates or (
                        not no_input and typer.confirm(f"Upload {candidate.name} anyway?", default=False)
                    )
                    if include:
                        run.include_duplicate(candidate.id)

            def on_selection(detections):
                for candidate in run.pending_candidates:
                    choice = platform_id
                    detection = candidate.detection
                    if choice is None and not no_input:
                        choice = ask_platform(candidate.name, detection, run.index)
                    if choice is None:
                        continue
                    try:
                        run.assign_platform(candidate.id, choice)
                    except PlatformUnknown as e:
                        console.print(f"[red]{e}[/red]")
                run.skip_unresolved()

            def on_state(state):
                if state == RunState.UPLOADING:
                    progress.start()
                    progress.start_task(task)

            run.on('duplicates', on_duplicates)
            run.on('selection-required', on_selection)
            run.on('state', on_state)
            run.on('progress', lambda pct: progress.update(task, completed=pct))

            try:
                result = await run.wait()
            finally:
                progress.stop()

        print_result(result)
        if result.failed:
            raise typer.Exit(1)

    run_async(do_upload())


def ask_platform(file_name, detection, index) -> Optional[int]:
    """Prompt for a platform; an empty answer skips the file."""
    options = detection.possible_platforms if detection and detection.possible_platforms else index.platforms
    if not options:
        console.print(f"[red]No platforms available for {file_name}[/red]")
        return None

    reason = "matches several platforms" if detection and detection.is_ambiguous else "has no known platform"
    console.print(f"[yellow]{file_name} {reason}:[/yellow]")
    for platform in options:
        console.print(f"  [cyan]{platform.id}[/cyan] {platform.name}")

    answer = typer.prompt("Platform ID (empty to skip)", default="", show_default=False)
    if not answer.strip():
        return None
    try:
        return int(answer)
    except ValueError:
        console.print(f"[red]Not a platform ID: {answer}[/red]")
        return None


def print_result(result) -> None:
    table = Table()
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for candidate in result.per_file_results:
        status = candidate.status.value
        style = STATUS_STYLES.get(status, 'white')
        details = candidate.error or ''
        if candidate.result and candidate.result.platform_name:
            details = details or candidate.result.platform_name
        table.add_row(candidate.name, candidate.file.display_size, f"[{style}]{status}[/{style}]", details)
    console.print(table)

    title, message = result.summary()
    color = {'all-succeeded': 'green', 'partial': 'yellow', 'all-failed': 'red'}.get(result.outcome.value, 'cyan')
    console.print(f"[bold {color}]{title}[/bold {color}]")
    console.print(message)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
