#!/usr/bin/env python3
"""
MountMap Express Route Mapper

Main scanner script for discovering Express.js routes and resolving their
fully-qualified paths through app.use()/router.use() mounts across files.
"""

import os
import sys

# Ensure local modules can be imported
script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
    sys.path.insert(0, script_dir)

import time
import json
import logging
import asyncio
from pathlib import Path
from typing import List, Optional, Tuple
from concurrent.futures import ThreadPoolExecutor, as_completed

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from models import FileAnalysis, ScanConfig, ScanResult
from detectors.express_detector import ExpressDetector
from analyzers.source_corpus import SourceCorpus, FileSystemCorpus, CorpusAccessError, UnreadableFileError
from analyzers.mount_graph import MountGraphBuilder
from analyzers.prefix_resolver import PrefixResolver
from analyzers.route_assembler import RouteAssembler
from analyzers.base_url_detector import BaseUrlDetector
from config.settings import ConfigurationManager, get_config_manager

console = Console()

class RouteScanner:
    """Discovers Express routes across a source corpus and resolves their mount prefixes."""

    def __init__(self, config: ScanConfig, corpus: Optional[SourceCorpus] = None):
        self.config = config
        self.console = console
        self.logger = self._setup_logging()
        self.corpus = corpus or FileSystemCorpus(
            config.repo_path, config.include_extensions, config.exclude_dirs
        )

        self.detector = ExpressDetector(chain_window=config.chain_window)
        self.prefix_resolver = PrefixResolver(
            max_prefix_segments=config.max_prefix_segments,
            max_fixpoint_passes=config.max_fixpoint_passes,
            max_prefixes_per_file=config.max_prefixes_per_file
        )
        self.route_assembler = RouteAssembler()
        self.base_url_detector = BaseUrlDetector(config.base_url_keys, config.env_file_limit)

    def _setup_logging(self) -> logging.Logger:
        """Setup logging configuration."""
        logger = logging.getLogger('mountmap')
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    async def scan(self) -> ScanResult:
        """
        Scan the corpus for routes.

        Every call is a full recomputation; nothing is cached between scans.

        Returns:
            ScanResult with routes sorted by full path and method

        Raises:
            CorpusAccessError: the corpus could not be enumerated
        """
        start_time = time.time()
        files = self.corpus.list_files()
        files = [f for f in files if self.detector.can_handle_file(f)]
        self.logger.debug(f"Discovered {len(files)} files to scan")

        analyses, errors = await self._analyze_files(files)

        graph = MountGraphBuilder(analyses)
        edges = graph.build()
        prefixes = self.prefix_resolver.resolve([a.file_id for a in analyses], edges)
        routes = self.route_assembler.assemble(analyses, prefixes, graph.app_prefixes())

        base_url = None
        if self.config.detect_base_url and isinstance(self.corpus, FileSystemCorpus):
            base_url = self.base_url_detector.detect(self.corpus.root)

        return ScanResult(
            routes=routes,
            base_url=base_url,
            files_analyzed=len(analyses),
            total_files=len(files),
            errors=errors,
            scan_duration_seconds=time.time() - start_time,
        )

    async def _analyze_files(self, files: List[str]) -> Tuple[List[FileAnalysis], List[str]]:
        """Read and analyze files in parallel; unreadable files are skipped"""
        analyses: List[FileAnalysis] = []
        errors: List[str] = []

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_file = {
                executor.submit(self._analyze_single_file, file_id): file_id
                for file_id in files
            }

            for future in as_completed(future_to_file):
                file_id = future_to_file[future]
                try:
                    analyses.append(future.result())
                except UnreadableFileError as e:
                    self.logger.warning(f"Skipping {file_id}: {e}")
                    errors.append(str(e))

        analyses.sort(key=lambda a: a.file_id)
        return analyses, errors

    def _analyze_single_file(self, file_id: str) -> FileAnalysis:
        content = self.corpus.read_text(file_id)
        return self.detector.analyze(file_id, content)

    def display_terminal_output(self, scan_result: ScanResult):
        """Summary line, base URL hint and a Method / Full Path / Location table"""
        self.console.print(f"\n[bold green]MountMap Results[/bold green]")
        self.console.print(
            f"[cyan]{scan_result.total_routes} routes in {scan_result.files_analyzed} files "
            f"({scan_result.scan_duration_seconds:.2f}s)[/cyan]"
        )
        if scan_result.base_url:
            self.console.print(f"[cyan]Base URL:[/cyan] {scan_result.base_url}")

        if not scan_result.routes:
            self.console.print("[yellow]No Express routes found.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Method", style="cyan", min_width=8)
        table.add_column("Full Path", style="green", min_width=40)
        table.add_column("Location", style="yellow", min_width=30)

        for route in scan_result.routes:
            table.add_row(route.method, route.full_path, f"{self._display_file(route.file_id)}:{route.line + 1}")

        self.console.print(table)

        if scan_result.errors:
            self.console.print(f"[yellow]{len(scan_result.errors)} files could not be read; run with -v for details.[/yellow]")

    def export_json(self, scan_result: ScanResult, output_file: Optional[str] = None):
        """Write ScanResult.to_dict() to a file, or stdout when no file is given"""
        payload = json.dumps(scan_result.to_dict(), indent=2)
        if output_file:
            Path(output_file).write_text(payload + "\n", encoding='utf-8')
            self.console.print(f"[green]✓[/green] Exported JSON report: {output_file}")
        else:
            click.echo(payload)

    def _display_file(self, file_id: str) -> str:
        """File path relative to the repository when possible"""
        try:
            return os.path.relpath(file_id, self.config.repo_path)
        except ValueError:
            return file_id

async def _run_async_scan(config: ScanConfig, output_file: Optional[str]):
    scanner = RouteScanner(config)

    if config.output_format == 'terminal':
        with console.status("[bold blue]Scanning repository..."):
            scan_result = await scanner.scan()
        scanner.display_terminal_output(scan_result)
    else:
        scan_result = await scanner.scan()
        scanner.export_json(scan_result, output_file)

    return scan_result

@click.command()
@click.option('--repo-path', help='Path to repository to scan')
@click.option('--config', 'config_file', help='Path to configuration file (YAML or JSON)')
@click.option('--output-format', type=click.Choice(['terminal', 'json']),
              help='Output format for results (default: terminal)')
@click.option('--output-file', help='Write JSON output to this file instead of stdout')
@click.option('--base-url/--no-base-url', default=None,
              help='Look for a base URL hint in .env files')
@click.option('--max-workers', type=int,
              help='Maximum parallel workers (executor default if not specified)')
@click.option('--max-prefix-segments', type=int,
              help='Drop mount prefixes with more segments than this (default: 32)')
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
@click.option('--config-generate',
              help='Generate example configuration file at specified path')
def main(repo_path, config_file, output_format, output_file, base_url, max_workers,
         max_prefix_segments, verbose, config_generate):
    """
    MountMap Express Route Mapper

    List the Express routes of a repository with their fully-qualified paths.
    """

    # Setup logging level
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger('mountmap').setLevel(logging.DEBUG)

    if config_generate:
        ConfigurationManager([]).create_example_config(config_generate)
        console.print(f"[green]✅ Configuration file created: {config_generate}[/green]")
        return

    if not repo_path:
        console.print("[red]Error: --repo-path is required[/red]")
        sys.exit(2)

    config_manager = get_config_manager([config_file] if config_file else None)
    config = config_manager.build_scan_config(
        os.path.abspath(repo_path),
        output_format=output_format,
        detect_base_url=base_url,
        max_workers=max_workers,
        max_prefix_segments=max_prefix_segments,
    )

    if config.output_format == 'terminal':
        console.print(Panel(
            f"[bold blue]MountMap Express Route Mapper[/bold blue]\n"
            f"[cyan]Scanning:[/cyan] {config.repo_path}"
        ))

    try:
        asyncio.run(_run_async_scan(config, output_file))
    except CorpusAccessError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]Error during scan: {e}[/bold red]")
        if verbose:
            console.print_exception()
        sys.exit(1)

if __name__ == "__main__":
    main()
