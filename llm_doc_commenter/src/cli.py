"""
Command-line interface for llm-doc-commenter.

Provides commands for finding undocumented functions and classes and for
inserting technical and simple explanation comments above them.
"""

import sys
from pathlib import Path
from typing import List, Optional

import click

from .config import Config, ConfigManager
from .constants import CATEGORY_LABELS, DOCUMENTATION_SOURCES, SOURCE_RESPONSE
from .gaps import FileGapReport
from .mutation import MutationEngine
from .pipeline import BatchResult, CommentPipeline, FileStatus
from .scanner import Scanner
from .sources import build_documentation_request, create_source
from .watcher import Watcher
from .. import __version__
from ..utils.logger_setup import LoggerManager

# Exit code when a file could not be restored from its backup
EXIT_RESTORE_FAILED = 2


def _load_config(paths, window: Optional[int] = None) -> Config:
    config_manager = ConfigManager()
    config = config_manager.load()
    if paths:
        config.scanning.paths = list(paths)
    if window is not None:
        config.analysis.window_lines = window
    return config


def _collect(config: Config) -> List[Path]:
    scan_result = Scanner(config).scan()
    for missing in scan_result.missing_paths:
        click.echo(f"⚠️  Path not found: {missing}")
    return scan_result.files


def _print_report(report: FileGapReport):
    if not report.gaps:
        return
    click.echo(f"\n📁 {report.file_path} ({len(report.gaps)}/{report.total_elements} need docs)")
    for gap in report.gaps:
        element = gap.element
        missing = []
        if gap.missing_technical:
            missing.append("technical")
        if gap.missing_simple:
            missing.append("simple")
        label = CATEGORY_LABELS.get(element.category.value, element.category.value)
        click.echo(f"  {label} {element.name} (line {element.line_number}): missing {', '.join(missing)}")


def _print_batch_errors(batch: BatchResult):
    for result in batch.errors:
        if result.status == FileStatus.RESTORE_FAILED:
            backup = result.attempt.backup_path if result.attempt else "?"
            click.echo(f"🚨 {result.file_path}: RESTORE FAILED, recover manually from {backup}", err=True)
        else:
            click.echo(f"  ❌ {result.file_path} [{result.status.value}]: {result.error}", err=True)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Print log messages to the console')
def cli(verbose):
    """LLM Doc Commenter - Insert technical and simple explanations above your code."""
    LoggerManager.setup_logging(level="DEBUG" if verbose else "INFO", console=verbose)


@cli.command()
@click.option('--overwrite', is_flag=True, help='Overwrite existing configuration')
def init(overwrite):
    """Initialize configuration in current directory."""
    config_manager = ConfigManager()

    if config_manager.init_config(overwrite=overwrite):
        click.echo("✓ Configuration initialized successfully")
        click.echo(f"  Config file: {config_manager.config_file}")
        click.echo("\nNext steps:")
        click.echo("  1. Run 'llm-doc-commenter scan' to find undocumented code")
        click.echo("  2. Run 'llm-doc-commenter comment --dry-run' to preview the comments")
    else:
        click.echo("Configuration already exists. Use --overwrite to replace it.")


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path())
@click.option('--window', type=click.IntRange(min=1), help='Lines above an element searched for docs')
@click.option('--request', 'request_file', type=click.Path(dir_okay=False),
              help="Write a documentation request for an assistant to FILE ('-' for stdout)")
def scan(paths, window, request_file):
    """Report functions and classes that lack documentation."""
    try:
        config = _load_config(paths, window)
        files = _collect(config)
        pipeline = CommentPipeline(window_lines=config.analysis.window_lines)
        batch = pipeline.analyze(files)

        reports = [r.report for r in batch.files if r.report is not None]
        for report in reports:
            _print_report(report)

        total = sum(r.total_elements for r in reports)
        gaps = sum(len(r.gaps) for r in reports)
        click.echo(f"\n📊 {len(files)} file(s), {total} element(s), {gaps} need documentation")
        _print_batch_errors(batch)

        if request_file and gaps:
            request = build_documentation_request(reports)
            if request_file == '-':
                click.echo(request)
            else:
                Path(request_file).write_text(request, encoding='utf-8')
                click.echo(f"📝 Documentation request written to {request_file}")
                click.echo("   Save the answer and run: llm-doc-commenter comment --source response --response <answer.json>")
        elif gaps == 0:
            click.echo("✅ All code properly documented!")

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path())
@click.option('--dry-run', is_flag=True, help='Preview the comments without writing')
@click.option('--only-functions', is_flag=True, help='Do not document classes')
@click.option('--source', type=click.Choice(DOCUMENTATION_SOURCES),
              help='Where the explanation text comes from')
@click.option('--response', 'response_file', type=click.Path(exists=True, dir_okay=False),
              help='Assistant answer (JSON) for --source response')
@click.option('--window', type=click.IntRange(min=1), help='Lines above an element searched for docs')
def comment(paths, dry_run, only_functions, source, response_file, window):
    """Insert documentation comments above undocumented code."""
    try:
        config_manager = ConfigManager()
        config = _load_config(paths, window)
        if source:
            config.analysis.source = source
        elif response_file:
            config.analysis.source = SOURCE_RESPONSE
        if response_file:
            config.analysis.response_file = response_file
        if only_functions:
            config.analysis.only_functions = True
        if dry_run:
            config.output.dry_run = True

        errors = config_manager.validate(config)
        if errors:
            click.echo("❌ Configuration errors:")
            for error in errors:
                click.echo(f"  - {error}")
            sys.exit(1)

        batch = _run_comment(config)
    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    if batch.critical:
        sys.exit(EXIT_RESTORE_FAILED)
    if batch.errors:
        sys.exit(1)


def _run_comment(config: Config) -> BatchResult:
    files = _collect(config)
    documentation_source = create_source(
        config.analysis.source,
        llm_config=config.llm,
        response_path=config.analysis.response_file,
    )
    engine = MutationEngine(
        window_lines=config.analysis.window_lines,
        backup_suffix=config.output.backup_suffix,
    )
    pipeline = CommentPipeline(
        source=documentation_source,
        window_lines=config.analysis.window_lines,
        only_functions=config.analysis.only_functions,
        dry_run=config.output.dry_run,
        engine=engine,
    )
    batch = pipeline.run(files)

    updated = batch.by_status(FileStatus.UPDATED)
    previewed = batch.by_status(FileStatus.PREVIEWED)
    if config.output.dry_run:
        click.echo(f"\n👀 Dry run: {len(previewed)} file(s) would change")
    else:
        click.echo(f"\n✓ {batch.comments_added} comment(s) added to {len(updated)} file(s)")
    _print_batch_errors(batch)
    return batch


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path())
@click.option('--interval', type=float, help='Minutes between checks')
@click.option('--iterations', type=click.IntRange(min=1), help='Stop after N checks')
@click.option('--apply', 'apply_changes', is_flag=True, help='Insert comments instead of only reporting')
def watch(paths, interval, iterations, apply_changes):
    """Re-check the project periodically until interrupted."""
    try:
        config = _load_config(paths)
        if interval is not None:
            config.watch.interval_minutes = interval
        if apply_changes:
            config.watch.apply = True
        if config.watch.interval_minutes <= 0:
            click.echo("❌ Error: --interval must be positive", err=True)
            sys.exit(1)

        watcher = None

        def check():
            click.echo("\n🔍 Checking documentation...")
            if config.watch.apply:
                batch = _run_comment(config)
                if batch.critical:
                    # Leave the backup alone until somebody looks at it
                    watcher.stop()
            else:
                files = _collect(config)
                batch = CommentPipeline(window_lines=config.analysis.window_lines).analyze(files)
                gaps = 0
                for result in batch.files:
                    if result.report is not None:
                        _print_report(result.report)
                        gaps += len(result.report.gaps)
                if gaps:
                    click.echo(f"⚠️  {gaps} element(s) need documentation")
                else:
                    click.echo("✅ All code properly documented!")

        watcher = Watcher(check, interval_seconds=config.watch.interval_minutes * 60)
        click.echo(f"👀 Watching {', '.join(config.scanning.paths)} "
                   f"every {config.watch.interval_minutes:g} minute(s). Press Ctrl+C to stop.")
        try:
            watcher.run(max_iterations=iterations)
        except KeyboardInterrupt:
            watcher.stop()
            click.echo("\n⏹️  Watch mode stopped")

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
def cleanup():
    """Remove configuration directory (.llm-doc-commenter)."""
    try:
        config_manager = ConfigManager()

        if click.confirm("⚠️  This will delete the entire .llm-doc-commenter directory. Continue?"):
            if config_manager.cleanup():
                click.echo("✓ Cleanup complete")
            else:
                click.echo("✗ Cleanup failed - configuration directory not found or could not be deleted")
                click.echo(f"  Directory: {config_manager.config_dir}")
                sys.exit(1)

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
