"""Command line front end."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .approval import PromptApprovalOracle
from .config import load_config, build_job, setup_logging
from .errors import JournalError, SetupError
from .models import ProcessResult
from .pipeline import run
from .providers import create_client
from .revert import process_revert

console = Console()

EXAMPLES = """
Examples:
  smart-renamer -d ~/Documents/files              # Preview rename operations
  smart-renamer -d ~/Documents/files --apply      # Execute rename operations
  smart-renamer -d ~/Documents/files -p research  # Use research prompt
  smart-renamer -r ~/Documents/files/.smart_renamer/logs/changes_123.json  # Revert changes
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-renamer",
        description="Bulk rename files from their content using AI suggestions.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--dir", help="Source directory containing files to rename")
    parser.add_argument("-c", "--config", help="Path to config file (default: ~/.smart_renamer/config.json)")
    parser.add_argument("-y", "--auto-approve", action="store_true", default=None,
                        help="Automatically approve changes without confirmation")
    parser.add_argument("-n", "--dry-run", dest="dry_run", action="store_true", default=True,
                        help="Preview changes without renaming files (default)")
    parser.add_argument("--apply", dest="dry_run", action="store_false",
                        help="Copy and rename files for real")
    parser.add_argument("-l", "--log", dest="log", action="store_true", default=None,
                        help="Write a change journal (default from config)")
    parser.add_argument("--no-log", dest="log", action="store_false", help="Do not write a change journal")
    parser.add_argument("-o", "--organize", action="store_true", default=False,
                        help="Organize output into category folders")
    parser.add_argument("-p", "--prompt", help="Custom AI prompt ('research' or 'images' for built-in prompts)")
    parser.add_argument("-r", "--revert", help="Path to a change journal to revert")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_results(results: List[ProcessResult], dry_run: bool) -> None:
    table = Table(title="Predicted Renames" if dry_run else "Summary of Operations")
    table.add_column("Status", style="cyan")
    table.add_column("Original", style="blue")
    table.add_column("New", style="green")

    for result in results:
        if not result.success:
            table.add_row("[red]✗ failed[/]", result.original_path.name, f"[red]{result.error}[/]")
        elif result.changed:
            status = "🔍 would rename" if dry_run else "✓ renamed"
            table.add_row(status, result.original_path.name, result.new_path.name)
        else:
            table.add_row("[dim]unchanged[/]", result.original_path.name, result.new_path.name)
    console.print(table)


def run_revert(args) -> int:
    try:
        report = process_revert(
            args.revert,
            oracle=PromptApprovalOracle(console, label="revert"),
            auto_approve=bool(args.auto_approve),
            logging_enabled=args.log is not False,
        )
    except JournalError as e:
        console.print(Panel(f"[red]{e}[/]", title="Revert Error"))
        return 1

    reverted = sum(1 for result in report.results if result.success and result.changed)
    failed = sum(1 for result in report.results if not result.success)
    console.print(f"[green]Reverted {reverted} files[/], [red]{failed} failed[/]")
    console.print(f"[blue]Files have been placed in:[/] {report.revert_dir}")
    return 0 if failed == 0 else 1


def run_rename(args) -> int:
    config = load_config(args.config)
    setup_logging(config["logging"].get("log_path") or None)

    job = build_job(
        config,
        args.dir,
        prompt=args.prompt,
        dry_run=args.dry_run,
        auto_approve=args.auto_approve,
        organize=args.organize,
        logging_enabled=args.log,
    )

    try:
        client = create_client(config["ai"])
        title = "Output directory would be set up at" if job.dry_run else "Output directory set up at"
        console.print(f"[bold blue]{title}:[/] {job.output_root}")
        console.print("[cyan]Processing files with AI to generate new names...[/]")
        report = run(job, client, oracle=PromptApprovalOracle(console))
    except SetupError as e:
        console.print(Panel(f"[red]{e}[/]", title="Setup Error"))
        return 1
    except JournalError as e:
        console.print(Panel(f"[yellow]{e}[/]\nRenames already performed were kept.", title="Journal Error"))
        return 1

    print_results(report.results, job.dry_run)
    summary = report.summary
    if job.dry_run:
        console.print(f"\n[green]✅ {summary['renamed']} files would be renamed.[/] "
                      f"{summary['unchanged']} unchanged, {summary['failed']} failed.")
        console.print(f"[yellow]To apply these changes, run: smart-renamer -d \"{args.dir}\" --apply[/]")
    else:
        console.print(f"\n[green]{summary['renamed']} renamed[/], [red]{summary['failed']} failed[/], "
                      f"{summary['unchanged']} unchanged.")
        if report.journal_path:
            console.print(f"[blue]Change journal:[/] {report.journal_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the Smart Renamer tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.revert:
        return run_revert(args)
    if not args.dir:
        parser.error("--dir is required when not using --revert")
    if not Path(args.dir).expanduser().is_dir():
        console.print(f"[red]Error: '{args.dir}' is not a directory[/]")
        return 1
    return run_rename(args)


if __name__ == "__main__":
    sys.exit(main())
