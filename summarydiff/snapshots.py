"""
Snapshot and summary file handling.

- Reading raw snapshot CSVs as text so missing-value sentinels survive
- Choosing the columns two snapshots have in common
- Locating the previous snapshot in a directory listing
- Writing and reading summary / difference CSVs
"""

import polars as pl
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
from loguru import logger
from summarydiff.core.fields import ROW_INDEX_COLUMN
from summarydiff.steps.table_summarizer import SummaryTable, summary_schema
from summarydiff.steps.summary_differ import DifferenceTable

SUMMARY_SUFFIX = '_summary'
DIFF_PREFIX = 'summary_diff_'


def read_snapshot(path: Union[str, Path]) -> pl.DataFrame:
    """
    Read a snapshot CSV with every column as text.
    Empty cells stay empty strings; sentinel matching and type detection
    happen in the profiler.
    """
    df = pl.read_csv(path, infer_schema_length=0, missing_utf8_is_empty_string=True)
    logger.info(f"Loaded {path}: {df.height:,} rows, {df.width} columns")
    return df


def select_comparable_columns(
    new_table: pl.DataFrame,
    old_table: pl.DataFrame,
    variables: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Columns to summarize in both snapshots.

    An explicit variable list is returned unchanged (the summarizer validates it).
    Otherwise the new snapshot's columns that also exist in the old one, in the
    new snapshot's order.
    """
    if variables is not None:
        return list(variables)

    old_columns = set(old_table.columns)
    new_columns = set(new_table.columns)
    only_in_new = [c for c in new_table.columns if c not in old_columns]
    only_in_old = [c for c in old_table.columns if c not in new_columns]
    if only_in_new:
        logger.warning(f"Columns only in new snapshot (not compared): {only_in_new}")
    if only_in_old:
        logger.warning(f"Columns only in old snapshot (not compared): {only_in_old}")

    return [c for c in new_table.columns if c in old_columns]


def _is_generated_output(path: Path) -> bool:
    return path.stem.endswith(SUMMARY_SUFFIX) or path.stem.startswith(DIFF_PREFIX)


def list_snapshots(directory: Union[str, Path], pattern: str = '*.csv') -> List[Path]:
    """
    List snapshot files in a directory, sorted by file name.
    Summary and difference CSVs written by this tool are skipped.
    """
    snapshots = [
        p for p in Path(directory).glob(pattern)
        if p.is_file() and not _is_generated_output(p)
    ]
    return sorted(snapshots, key=lambda p: p.name)


def find_previous_snapshot(path: Union[str, Path], pattern: Optional[str] = None) -> Optional[Path]:
    """
    Return the snapshot listed immediately before ``path`` in its directory,
    or None if ``path`` sorts first.
    """
    path = Path(path)
    siblings = list_snapshots(path.parent, pattern or f"*{path.suffix}")
    earlier = [p for p in siblings if p.name < path.name]
    return earlier[-1] if earlier else None


def latest_snapshot_pair(directory: Union[str, Path], pattern: str = '*.csv') -> Tuple[Path, Path]:
    """
    Newest snapshot and the one before it.

    Raises:
        FileNotFoundError: if the directory does not exist
        ValueError: if fewer than two snapshots match the pattern
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Snapshot directory not found: {directory}")

    snapshots = list_snapshots(directory, pattern)
    if len(snapshots) < 2:
        raise ValueError(f"Need at least two snapshots matching '{pattern}' in {directory}, found {len(snapshots)}")
    return snapshots[-1], snapshots[-2]


def summary_path(output_dir: Union[str, Path], snapshot: Union[str, Path]) -> Path:
    return Path(output_dir) / f"{Path(snapshot).stem}{SUMMARY_SUFFIX}.csv"


def difference_path(output_dir: Union[str, Path], new_snapshot: Union[str, Path], old_snapshot: Union[str, Path]) -> Path:
    return Path(output_dir) / f"{DIFF_PREFIX}{Path(new_snapshot).stem}_vs_{Path(old_snapshot).stem}.csv"


def _write_indexed_csv(df: pl.DataFrame, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.with_row_index(ROW_INDEX_COLUMN, offset=1).write_csv(path)
    return path


def write_summary_csv(summary: SummaryTable, path: Union[str, Path]) -> Path:
    """Write a summary table with a leading 1-based row index column."""
    written = _write_indexed_csv(summary.to_frame(), path)
    logger.info(f"Saved summary of {len(summary)} columns to {written}")
    return written


def write_difference_csv(difference: DifferenceTable, path: Union[str, Path]) -> Path:
    written = _write_indexed_csv(difference.to_frame(), path)
    logger.info(f"Saved difference table to {written}")
    return written


def read_summary_csv(path: Union[str, Path], label: Optional[str] = None) -> SummaryTable:
    """Read a summary CSV written by write_summary_csv back into a SummaryTable."""
    df = pl.read_csv(path, schema_overrides=summary_schema())
    return SummaryTable.from_frame(df, label=label or str(path))
