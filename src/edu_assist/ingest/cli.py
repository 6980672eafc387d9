"""
Batch ingestion of a documents folder.

Reads every .txt, .md and .pdf file directly inside the folder, ingests
them one by one with per-file progress, and prints a summary.

Usage:
    edu-assist-ingest [DIRECTORY] [--log-level DEBUG]
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from edu_assist.config import get_settings
from edu_assist.gateways.context import Gateways, build_gateways
from edu_assist.ingest.chunker import WordWindowChunker
from edu_assist.ingest.parser import ParserRegistry
from edu_assist.ingest.pipeline import IngestPipeline, IngestResult
from edu_assist.log import configure_logging

console = Console()


def _report(index: int, total: int, path: Path, result: IngestResult) -> None:
    console.print(f"[{index}/{total}] Processing: [bold]{escape(path.name)}[/bold]")
    if result.success:
        console.print(f"  [green]✓[/green] Success: {result.chunks_created} chunks created")
    else:
        console.print(f"  [red]✗[/red] Failed: {escape(result.error or result.message)}")


def print_summary(results: list[IngestResult]) -> None:
    succeeded = [result for result in results if result.success]
    failed = [result for result in results if not result.success]

    table = Table(title="Ingestion Summary", show_header=False)
    table.add_row("Successful", f"{len(succeeded)}/{len(results)}")
    table.add_row("Failed", f"{len(failed)}/{len(results)}")
    table.add_row("Total chunks created", str(sum(result.chunks_created for result in succeeded)))
    console.print(table)

    if failed:
        console.print("[red]Failed documents:[/red]")
        for result in failed:
            console.print(f"  - {escape(result.source_file)}: {escape(result.error or result.message)}")


async def run(directory: Path, gateways: Gateways) -> list[IngestResult]:
    pipeline = IngestPipeline(ParserRegistry(), WordWindowChunker(), gateways.embedder, gateways.store)
    try:
        files = pipeline.list_directory(directory)
        if not files:
            console.print(f"[yellow]No documents found in {escape(str(directory))}.[/yellow]")
            console.print("Place .txt, .md or .pdf files there, or set DOCS_PATH.")
            return []
        console.print(f"Found {len(files)} documents in {escape(str(directory))}\n")
        return await pipeline.ingest_directory(directory, on_result=_report)
    finally:
        await gateways.aclose()


def main(argv: list[str] | None = None, *, gateways: Gateways | None = None) -> int:
    """Entry point for `edu-assist-ingest`; returns the process exit code."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="edu-assist-ingest",
        description="Ingest a folder of .txt, .md and .pdf documents into the knowledge base",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=settings.docs_path,
        help=f"Folder to ingest (default: DOCS_PATH or {settings.docs_path!r})",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    directory = Path(args.directory)
    if not directory.is_dir():
        console.print(f"[red]Directory not found: {escape(str(directory.resolve()))}[/red]")
        return 1

    results = asyncio.run(run(directory, gateways or build_gateways(settings)))
    if results:
        print_summary(results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
