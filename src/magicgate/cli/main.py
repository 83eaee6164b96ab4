# Copyright 2026 Veritensor Security Apache 2.0
# The Main CLI Entry Point.
# Orchestrates: Config -> Registry -> Verify (Parallel) -> Report.

import json
import typer
import logging
import concurrent.futures
from functools import partial
from pathlib import Path
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from magicgate import __version__
from magicgate.core.config import CONFIG_FILE_NAME, DEFAULT_CONFIG_TEMPLATE, ConfigLoader, MagicGateConfig
from magicgate.core.errors import InvalidArgument, MagicGateError, UnknownFormat
from magicgate.core.streaming import read_prefix
from magicgate.core.types import VerificationResult
from magicgate.engines.detector import normalize_format_ids, verify_file_type
from magicgate.engines.signatures import SignatureRegistry, load_registry
from magicgate.reporting.manifest import generate_manifest

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger("magicgate")
app = typer.Typer(help="MagicGate: verify file types by their magic numbers")
console = Console()

REMOTE_PREFIXES = ("http://", "https://", "s3://")


def collect_targets(path: str) -> List[str]:
    """A remote URL, a single file, or every file under a directory."""
    if path.startswith(REMOTE_PREFIXES):
        return [path]
    local_path = Path(path)
    if local_path.is_file():
        return [str(local_path)]
    if local_path.is_dir():
        return [str(p) for p in sorted(local_path.rglob("*")) if p.is_file()]
    raise FileNotFoundError(f"Path {path} not found.")


def verify_worker(target: str, formats: List[str], registry: SignatureRegistry, timeout: float) -> VerificationResult:
    res = VerificationResult(file_path=target, allowed_formats=formats)
    try:
        match = verify_file_type(target, formats, registry=registry, reader=partial(read_prefix, timeout=timeout))
    except MagicGateError as e:
        res.fail(str(e))
        return res

    if match:
        res.detected_format = match.format_id
    else:
        res.reject()
    return res


def _run_verification(
    path: str, formats: List[str], registry: SignatureRegistry, config: MagicGateConfig,
    jobs: Optional[int], show_progress: bool = True,
) -> List[VerificationResult]:
    """
    Collects files and verifies them in parallel.
    Used by both 'verify' and 'manifest' commands.
    """
    targets = collect_targets(path)
    if not targets:
        return []

    results = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        transient=True,
        disable=not show_progress
    ) as progress:
        main_task = progress.add_task("Verifying...", total=len(targets))
        # Reads are small and I/O bound
        with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [
                executor.submit(verify_worker, t, formats, registry, config.http_timeout)
                for t in targets
            ]
            for future in futures:
                results.append(future.result())
                progress.advance(main_task)
    return results


def _prepare(formats: Optional[List[str]], signatures: Optional[str], verbose: bool = False):
    if verbose:
        logger.setLevel(logging.DEBUG)
    try:
        config = ConfigLoader.load()
        registry = load_registry(signatures or config.signatures_file)
        allowed = normalize_format_ids(formats or config.allowed_formats)
        registry.max_signature_length(allowed)
    except UnknownFormat as e:
        known = ", ".join(registry.formats())
        console.print(f"[bold red]Error:[/bold red] {e}. Known formats: {known}")
        raise typer.Exit(code=2)
    except InvalidArgument as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=2)
    return config, registry, allowed


@app.command()
def verify(
    path: str = typer.Argument(..., help="File, directory, http(s):// or s3:// URL"),
    formats: Optional[List[str]] = typer.Option(None, "--format", "-f", help="Allowed format id (repeatable)"),
    signatures: Optional[str] = typer.Option(None, "--signatures", "-s", help="Extra signatures YAML"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Number of parallel reads."),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed logs"),
):
    """
    Verifies that files really are one of the allowed formats.
    """
    config, registry, allowed = _prepare(formats, signatures, verbose)

    if not json_output:
        console.print(Panel.fit(f"🔎 [bold cyan]MagicGate File Verifier[/bold cyan] v{__version__}", border_style="cyan"))

    try:
        results = _run_verification(path, allowed, registry, config, jobs, show_progress=not json_output)
    except FileNotFoundError:
        console.print(f"[bold red]Error:[/bold red] Path {path} not found.")
        raise typer.Exit(code=1)

    if not results:
        console.print("[yellow]No files found to verify.[/yellow]")
        raise typer.Exit(code=0)

    if json_output:
        print(json.dumps([r.__dict__ for r in results], indent=2, default=list))
    else:
        _print_table(results)

    failed = [r for r in results if r.status != "PASS"]
    if failed:
        if not json_output:
            console.print(f"\n[bold red]❌ {len(failed)} file(s) rejected.[/bold red]")
        raise typer.Exit(code=1)
    if not json_output:
        console.print("\n[bold green]✅ All files verified.[/bold green]")


@app.command()
def manifest(
    path: str = typer.Argument(..., help="Path to verify"),
    output: str = typer.Option("magicgate-manifest.json", "--output", "-o", help="Output file path"),
    formats: Optional[List[str]] = typer.Option(None, "--format", "-f", help="Allowed format id (repeatable)"),
    signatures: Optional[str] = typer.Option(None, "--signatures", "-s", help="Extra signatures YAML"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Number of parallel reads."),
):
    """
    Generates a JSON manifest of verification results.
    Does NOT fail on rejected files, just records them.
    """
    config, registry, allowed = _prepare(formats, signatures)
    console.print(f"📜 Generating Manifest for [cyan]{path}[/cyan]...")

    try:
        results = _run_verification(path, allowed, registry, config, jobs)
    except FileNotFoundError:
        console.print(f"[bold red]Error:[/bold red] Path {path} not found.")
        raise typer.Exit(code=1)

    saved_path = generate_manifest(results, output)
    console.print(f"[green]✅ Manifest saved to: {saved_path}[/green]")


@app.command()
def formats(
    signatures: Optional[str] = typer.Option(None, "--signatures", "-s", help="Extra signatures YAML"),
):
    """Lists registered formats and their signatures."""
    try:
        config = ConfigLoader.load()
        registry = load_registry(signatures or config.signatures_file)
    except InvalidArgument as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=2)

    table = Table(title="Registered Signatures", header_style="bold magenta")
    table.add_column("Format", style="cyan", no_wrap=True)
    table.add_column("Signatures", style="white")
    for format_id, sigs in registry.items():
        table.add_row(format_id, "\n".join(str(s) for s in sigs))
    console.print(table)


def _print_table(results: List[VerificationResult]):
    table = Table(title="🔎 MagicGate Report", header_style="bold magenta")
    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Detected", style="white")
    for res in results:
        status_style = "green" if res.status == "PASS" else "bold red"
        detail = res.detected_format or (f"[red]{res.error}[/red]" if res.error else "[dim]None[/dim]")
        table.add_row(res.file_path.split("/")[-1], f"[{status_style}]{res.status}[/{status_style}]", detail)
    console.print(table)


@app.command()
def version():
    console.print(f"MagicGate v{__version__}")


@app.command()
def init():
    target_path = Path(CONFIG_FILE_NAME)
    if target_path.exists():
        console.print(f"[yellow]{CONFIG_FILE_NAME} already exists.[/yellow]")
    else:
        with open(target_path, "w", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG_TEMPLATE)
        console.print(f"[green]✔ Created default {CONFIG_FILE_NAME}[/green]")


if __name__ == "__main__":
    app()
