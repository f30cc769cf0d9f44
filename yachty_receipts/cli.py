"""
Receipt Gate CLI

Command-line interface for scoring receipt-analysis output.

Examples:

    # Score a file of analysis payloads
    yachty-receipts score receipts.json

    # Stricter policy, write a CSV report and queue the rest for review
    yachty-receipts score receipts.json --max-amount 500 \\
        --json-report verdicts.csv --format csv --queue review_queue.json

    # Check a raw score against the threshold
    yachty-receipts check 0.93
"""

import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_config
from .decision.confidence import AUTO_APPROVE_THRESHOLD, ConfidenceSignal, should_auto_approve
from .decision.gate import BatchResult, ReceiptGate
from .errors import ConfigError, InvalidInputError
from .review.export import ExportFormat, VerdictExporter
from .review.review_queue import ReviewQueue


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure loguru logging."""
    logger.remove()

    log_level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=True
    )

    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="10 MB"
        )


def _load_records(path: Path) -> List[Any]:
    """
    Read analysis payloads from JSON.

    Accepts a list of records, a single record with a ``signals`` key, or
    a bare signals mapping.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if 'signals' in data:
            return [data]
        return [{'signals': data}]
    raise click.ClickException(f"Expected a JSON object or list in {path}")


def _print_summary(result: BatchResult, console: Console):
    """Print a table of verdicts."""
    table = Table(title="Receipt Verdicts")

    table.add_column("Receipt", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Status", style="bold")
    table.add_column("Reason")
    table.add_column("Amount", justify="right")

    for verdict in result.verdicts:
        status = "[green]✓ VERIFIED" if not verdict.needs_review else "[yellow]⚠ REVIEW"
        amount = "" if verdict.amount is None else f"{verdict.amount:,.2f}"
        table.add_row(
            escape(verdict.receipt_id or '-'),
            f"{verdict.score:.2f}",
            status,
            verdict.reason.name,
            amount,
        )

    console.print()
    console.print(table)

    console.print()
    console.print(f"[bold]Evaluated:[/] {len(result.verdicts)}")
    console.print(f"[bold green]Verified:[/] {result.approved_count}")
    console.print(f"[bold yellow]Pending review:[/] {result.review_count}")

    if result.errors:
        console.print(f"[bold red]Failed:[/] {len(result.errors)}")
        for err in result.errors:
            console.print(f"  [red]✗[/] #{err.index} {escape(err.receipt_id or '-')}: {escape(str(err.error))}")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Write logs to file'
)
def main(verbose: bool, log_file: Optional[Path]):
    """
    Yachty receipts - confidence scoring and auto-approval for expense receipts.
    """
    setup_logging(verbose=verbose, log_file=log_file)


@main.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to gate.yaml policy file'
)
@click.option('--threshold', type=float, default=None, help='Override auto-approve threshold')
@click.option('--max-amount', type=float, default=None, help='Override auto-approve dollar cap')
@click.option(
    '--require-job-ref/--no-require-job-ref',
    default=None,
    help='Require a PO number or boat name for auto-approval'
)
@click.option(
    '--json-report',
    type=click.Path(path_type=Path),
    default=None,
    help='Write verdicts to file'
)
@click.option(
    '--format', '-f',
    'report_format',
    type=click.Choice([f.value for f in ExportFormat]),
    default=ExportFormat.JSON.value,
    help='Report format'
)
@click.option(
    '--queue',
    'queue_path',
    type=click.Path(path_type=Path),
    default=None,
    help='Save receipts needing review to a queue file'
)
def score(
    input_path: Path,
    config_path: Optional[Path],
    threshold: Optional[float],
    max_amount: Optional[float],
    require_job_ref: Optional[bool],
    json_report: Optional[Path],
    report_format: str,
    queue_path: Optional[Path],
):
    """Score receipt-analysis payloads and decide approval."""
    console = Console()

    try:
        config = load_config(config_path)
        overrides = {}
        if threshold is not None:
            overrides['auto_approve_threshold'] = threshold
        if max_amount is not None:
            overrides['max_auto_approve_amount'] = max_amount
        if require_job_ref is not None:
            overrides['require_po_or_boat_name'] = require_job_ref
        if overrides:
            config = dataclasses.replace(config, **overrides)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {escape(str(e))}[/]")
        raise SystemExit(2)

    try:
        records = _load_records(input_path)
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Invalid JSON in {escape(str(input_path))}: {escape(str(e))}[/]")
        raise SystemExit(2)

    queue = None
    if queue_path:
        try:
            queue = ReviewQueue.load(queue_path) if queue_path.exists() else ReviewQueue()
        except InvalidInputError as e:
            console.print(f"[bold red]{escape(str(e))}[/]")
            raise SystemExit(2)

    gate = ReceiptGate(config)
    result = gate.evaluate_batch(records)

    _print_summary(result, console)

    if json_report:
        exporter = VerdictExporter()
        exporter.export_batch(result, str(json_report), ExportFormat(report_format))
        console.print(f"Report written to: {escape(str(json_report))}")

    if queue is not None:
        for verdict in result.verdicts:
            queue.submit(verdict)
        queue.save(queue_path)
        console.print(f"Review queue written to: {escape(str(queue_path))}")

    raise SystemExit(0 if result.ok else 1)


@main.command()
@click.argument('score_value', metavar='SCORE', type=float)
@click.option(
    '--threshold',
    type=float,
    default=AUTO_APPROVE_THRESHOLD,
    show_default=True,
    help='Auto-approve threshold'
)
def check(score_value: float, threshold: float):
    """Check a raw confidence score against the threshold."""
    console = Console()
    try:
        approved = should_auto_approve(score_value, threshold)
    except InvalidInputError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise SystemExit(2)

    if approved:
        console.print(f"[green]AUTO-APPROVE[/] ({score_value} >= {threshold})")
    else:
        console.print(f"[yellow]REVIEW[/] ({score_value} < {threshold})")


@main.command()
def weights():
    """Show the signal weights used for scoring."""
    console = Console()
    table = Table(title="Confidence Weights")
    table.add_column("Signal", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Meaning")

    for signal in ConfidenceSignal:
        style = "green" if signal.is_positive else "red"
        table.add_row(signal.name, f"[{style}]{float(signal.weight):+.2f}[/]", signal.display_message)

    console.print(table)
    console.print(f"Auto-approve threshold: {AUTO_APPROVE_THRESHOLD:.2f}")


if __name__ == "__main__":
    main()
