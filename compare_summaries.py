#!/usr/bin/env python3
"""
Compare two snapshots of a dataset through per-column summaries.

This script:
- Summarizes each selected column (counts, numeric stats or top categories)
- Diffs the two summaries cell by cell
- Writes both summaries and the difference table as CSV
- Prints a report of every changed summary cell
"""

from __future__ import annotations

import sys
import typer
from loguru import logger
from pathlib import Path
from typing import Any, Callable, List, Optional

from summarydiff.core.config import SummaryConfig, load_variable_list
from summarydiff.core.errors import ConfigurationError, SchemaMismatchError
from summarydiff.report import print_comparison_report
from summarydiff.snapshots import (
    difference_path,
    latest_snapshot_pair,
    read_snapshot,
    read_summary_csv,
    select_comparable_columns,
    summary_path,
    write_difference_csv,
    write_summary_csv,
)
from summarydiff.steps.column_profiler import ColumnProfiler
from summarydiff.steps.summary_differ import DifferenceTable, SummaryDiffer
from summarydiff.steps.table_summarizer import TableSummarizer

app = typer.Typer()

EXIT_DIFFERENCES = 2

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to YAML configuration file (command line args override config values)")
VARIABLES_OPTION = typer.Option(None, "--variables", "-V", help="Text file with one column name per line (the columns to compare)")
OUTPUT_DIR_OPTION = typer.Option(None, "--output-dir", "-o", help="Directory for summary and difference CSVs (default: current directory)")
PRECISION_OPTION = typer.Option(None, "--precision", "-p", help="Decimal places for numeric statistics (default: 3)")
MARKER_OPTION = typer.Option(None, "--marker", help="Token written into differing cells (default: FALSE)")
MISSING_OPTION = typer.Option(None, "--missing-value", "-m", help="Cell value treated as missing; repeat for several (default: NA, empty, single space)")
FAIL_ON_DIFF_OPTION = typer.Option(False, "--fail-on-diff", help=f"Exit with code {EXIT_DIFFERENCES} when any summary cell differs")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose output")


def _configure_logging(verbose: bool) -> None:
    # Configure loguru to show only the message
    logger.remove()
    logger.add(sys.stdout, format="{message}", level="DEBUG" if verbose else "INFO")


def _require_file(path: Path, what: str) -> None:
    if not path.exists():
        typer.echo(f"[ERROR] {what} does not exist: {path}", err=True)
        raise typer.Exit(1)
    if not path.is_file():
        typer.echo(f"[ERROR] {what} is not a file: {path}", err=True)
        raise typer.Exit(1)


def _build_config(
    config_file: Optional[str],
    variables_file: Optional[str],
    output_dir: Optional[str],
    precision: Optional[int],
    marker: Optional[str],
    missing_values: Optional[List[str]],
) -> SummaryConfig:
    """Merge the YAML config (if any) with command line values; the command line wins."""
    variables = None
    if variables_file:
        variables_path = Path(variables_file)
        _require_file(variables_path, "Variables file")
        variables = load_variable_list(variables_path)

    overrides = {
        'output_dir': output_dir,
        'precision': precision,
        'diff_marker': marker,
        'missing_values': list(missing_values) if missing_values else None,
        'variables': variables,
    }

    if config_file:
        config_path = Path(config_file)
        _require_file(config_path, "Config file")
        return SummaryConfig.from_config_file(config_path, **overrides)

    return SummaryConfig(**{k: v for k, v in overrides.items() if v is not None})


def run_comparison(new_path: Path, old_path: Path, config: SummaryConfig) -> DifferenceTable:
    """
    Summarize both snapshots, persist both summaries, then diff and persist the result.
    Summaries are written before diffing so they survive a schema mismatch.
    """
    new_df = read_snapshot(new_path)
    old_df = read_snapshot(old_path)

    columns = select_comparable_columns(new_df, old_df, config.variables)
    summarizer = TableSummarizer(ColumnProfiler.from_config(config))

    new_summary = summarizer.summarize(new_df, columns, label=str(new_path))
    old_summary = summarizer.summarize(old_df, columns, label=str(old_path))
    write_summary_csv(new_summary, summary_path(config.output_dir, new_path))
    write_summary_csv(old_summary, summary_path(config.output_dir, old_path))

    difference = SummaryDiffer(marker=config.diff_marker).diff(
        new_summary, old_summary, (str(new_path), str(old_path))
    )
    write_difference_csv(difference, difference_path(config.output_dir, new_path, old_path))

    print_comparison_report(new_summary, old_summary, difference)
    return difference


def _finish(difference: DifferenceTable, fail_on_diff: bool) -> None:
    if difference.has_differences:
        changed = sorted({name for name, _ in difference.flagged_cells()})
        typer.echo(f"[WARNING] Summaries differ in {len(changed)} columns: {', '.join(changed)}")
        if fail_on_diff:
            raise typer.Exit(EXIT_DIFFERENCES)
    else:
        typer.echo("[OK] Summaries are identical!")


def _run_guarded(action: Callable[[], Any], verbose: bool) -> Any:
    """Run an action, turning domain errors into exit code 1."""
    try:
        return action()
    except (ConfigurationError, SchemaMismatchError) as e:
        typer.echo(f"[ERROR] {e}", err=True)
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"[ERROR] Error during comparison: {e}", err=True)
        if verbose:
            import traceback
            typer.echo(f"Traceback:\n{traceback.format_exc()}", err=True)
        raise typer.Exit(1)


@app.command()
def summarize(
    file: str = typer.Argument(..., help="Path to snapshot CSV file"),
    config_file: Optional[str] = CONFIG_OPTION,
    variables_file: Optional[str] = VARIABLES_OPTION,
    output_dir: Optional[str] = OUTPUT_DIR_OPTION,
    precision: Optional[int] = PRECISION_OPTION,
    missing_values: Optional[List[str]] = MISSING_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Summarize one snapshot CSV and write <name>_summary.csv.

    Examples:
        compare_summaries.py summarize survey_2024.csv --variables vars.txt
    """
    _configure_logging(verbose)
    file_path = Path(file)
    _require_file(file_path, "Snapshot file")

    def action() -> None:
        config = _build_config(config_file, variables_file, output_dir, precision, None, missing_values)
        df = read_snapshot(file_path)
        columns = config.variables if config.variables is not None else df.columns
        summary = TableSummarizer(ColumnProfiler.from_config(config)).summarize(df, columns, label=str(file_path))
        written = write_summary_csv(summary, summary_path(config.output_dir, file_path))
        typer.echo(f"[OK] Summarized {len(summary)} columns -> {written}")

    _run_guarded(action, verbose)


@app.command()
def compare(
    new_file: str = typer.Argument(..., help="Path to the new snapshot CSV"),
    old_file: str = typer.Argument(..., help="Path to the old snapshot CSV"),
    config_file: Optional[str] = CONFIG_OPTION,
    variables_file: Optional[str] = VARIABLES_OPTION,
    output_dir: Optional[str] = OUTPUT_DIR_OPTION,
    precision: Optional[int] = PRECISION_OPTION,
    marker: Optional[str] = MARKER_OPTION,
    missing_values: Optional[List[str]] = MISSING_OPTION,
    fail_on_diff: bool = FAIL_ON_DIFF_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Compare the column summaries of two snapshot CSV files.

    Examples:
        compare_summaries.py compare delivery_new.csv delivery_old.csv
        compare_summaries.py compare new.csv old.csv --variables vars.txt -o reports/
    """
    _configure_logging(verbose)
    new_path = Path(new_file)
    old_path = Path(old_file)
    _require_file(new_path, "New snapshot")
    _require_file(old_path, "Old snapshot")

    typer.echo("Loading files...")
    typer.echo(f"   New: {new_path}")
    typer.echo(f"   Old: {old_path}")

    def action() -> DifferenceTable:
        config = _build_config(config_file, variables_file, output_dir, precision, marker, missing_values)
        return run_comparison(new_path, old_path, config)

    difference = _run_guarded(action, verbose)
    _finish(difference, fail_on_diff)


@app.command()
def compare_latest(
    directory: str = typer.Argument(..., help="Folder holding dated snapshot files"),
    pattern: Optional[str] = typer.Option(None, "--pattern", help="Glob selecting snapshot files (default: *.csv)"),
    config_file: Optional[str] = CONFIG_OPTION,
    variables_file: Optional[str] = VARIABLES_OPTION,
    output_dir: Optional[str] = OUTPUT_DIR_OPTION,
    precision: Optional[int] = PRECISION_OPTION,
    marker: Optional[str] = MARKER_OPTION,
    missing_values: Optional[List[str]] = MISSING_OPTION,
    fail_on_diff: bool = FAIL_ON_DIFF_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Compare the newest snapshot in a folder with the one listed before it (sorted by file name).

    Examples:
        compare_summaries.py compare-latest ./deliveries --pattern "wave3_*.csv"
    """
    _configure_logging(verbose)
    directory_path = Path(directory)
    if not directory_path.is_dir():
        typer.echo(f"[ERROR] Snapshot folder does not exist: {directory}", err=True)
        raise typer.Exit(1)

    def action() -> DifferenceTable:
        config = _build_config(config_file, variables_file, output_dir, precision, marker, missing_values)
        try:
            new_path, old_path = latest_snapshot_pair(directory_path, pattern or config.snapshot_pattern)
        except ValueError as e:
            typer.echo(f"[ERROR] {e}", err=True)
            raise typer.Exit(1)
        typer.echo(f"   New: {new_path}")
        typer.echo(f"   Old: {old_path}")
        return run_comparison(new_path, old_path, config)

    difference = _run_guarded(action, verbose)
    _finish(difference, fail_on_diff)


@app.command()
def diff_summaries(
    new_summary_file: str = typer.Argument(..., help="Summary CSV of the new snapshot"),
    old_summary_file: str = typer.Argument(..., help="Summary CSV of the old snapshot"),
    output: Optional[str] = typer.Option(None, "--output", help="Difference CSV path (default: next to the new summary)"),
    marker: Optional[str] = MARKER_OPTION,
    fail_on_diff: bool = FAIL_ON_DIFF_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Diff two previously written summary CSVs.

    Examples:
        compare_summaries.py diff-summaries new_summary.csv old_summary.csv
    """
    _configure_logging(verbose)
    new_path = Path(new_summary_file)
    old_path = Path(old_summary_file)
    _require_file(new_path, "New summary")
    _require_file(old_path, "Old summary")

    def action() -> DifferenceTable:
        new_summary = read_summary_csv(new_path)
        old_summary = read_summary_csv(old_path)
        differ = SummaryDiffer(marker=marker) if marker is not None else SummaryDiffer()
        difference = differ.diff(new_summary, old_summary, (str(new_path), str(old_path)))
        output_path = Path(output) if output else difference_path(new_path.parent, new_path, old_path)
        write_difference_csv(difference, output_path)
        print_comparison_report(new_summary, old_summary, difference)
        return difference

    difference = _run_guarded(action, verbose)
    _finish(difference, fail_on_diff)


if __name__ == "__main__":
    app()
