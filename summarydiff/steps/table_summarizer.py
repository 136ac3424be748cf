"""Builds a summary table by profiling every selected column of a snapshot."""

import polars as pl
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
from loguru import logger
from summarydiff.core.errors import ConfigurationError
from summarydiff.core.fields import SummaryFields, ROW_INDEX_COLUMN, MAX_CATEGORY_LEVELS
from summarydiff.steps.column_profiler import ColumnProfiler, ColumnProfile, VariableKind


def summary_schema() -> Dict[str, pl.DataType]:
    """Polars dtypes of the exported summary layout."""
    schema: Dict[str, pl.DataType] = {SummaryFields.NAME: pl.Utf8}
    for field in SummaryFields.COUNT_FIELDS:
        schema[field] = pl.Int64
    for field in SummaryFields.NUMERIC_FIELDS:
        schema[field] = pl.Float64
    for slot in range(1, MAX_CATEGORY_LEVELS + 1):
        schema[SummaryFields.level_label(slot)] = pl.Utf8
        schema[SummaryFields.level_count(slot)] = pl.Int64
    schema[SummaryFields.DECLARED_TYPE] = pl.Utf8
    return schema


@dataclass(frozen=True)
class SummaryTable:
    """
    Ordered column profiles of one snapshot, in column selection order.
    """

    profiles: Tuple[ColumnProfile, ...]
    label: Optional[str] = None

    def __post_init__(self) -> None:
        names = [p.name for p in self.profiles]
        if len(names) != len(set(names)):
            raise ValueError(f"Summary table {self.label or ''} has repeated column names: {names}")

    def __len__(self) -> int:
        return len(self.profiles)

    def __iter__(self) -> Iterator[ColumnProfile]:
        return iter(self.profiles)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.profiles]

    def get(self, name: str) -> ColumnProfile:
        for profile in self.profiles:
            if profile.name == name:
                return profile
        raise KeyError(name)

    def to_rows(self) -> List[Dict[str, Any]]:
        return [p.to_row() for p in self.profiles]

    def to_frame(self) -> pl.DataFrame:
        """Export as a row-per-column DataFrame in the fixed summary layout."""
        rows = self.to_rows()
        if not rows:
            return pl.DataFrame(schema=summary_schema())
        return pl.from_dicts(rows, schema=summary_schema())

    @classmethod
    def from_frame(cls, frame: pl.DataFrame, label: Optional[str] = None) -> "SummaryTable":
        """Rebuild a summary table from an exported frame (row index column is ignored)."""
        if ROW_INDEX_COLUMN in frame.columns:
            frame = frame.drop(ROW_INDEX_COLUMN)
        missing_fields = [f for f in SummaryFields.all_fields() if f not in frame.columns]
        if missing_fields:
            raise ConfigurationError(
                f"Summary {label or ''} is missing layout fields: {missing_fields}", missing_fields
            )
        profiles = tuple(ColumnProfile.from_row(row) for row in frame.iter_rows(named=True))
        return cls(profiles=profiles, label=label)


class TableSummarizer:
    """
    Applies a ColumnProfiler to the analyst's selected columns of a table.
    """

    def __init__(self, profiler: Optional[ColumnProfiler] = None) -> None:
        self.profiler = profiler if profiler is not None else ColumnProfiler()

    def summarize(
        self,
        table: pl.DataFrame,
        columns: Sequence[str],
        label: Optional[str] = None,
    ) -> SummaryTable:
        """
        Profile each selected column, in selection order.

        Args:
            table: Snapshot data
            columns: Ordered column names to summarize
            label: Snapshot identifier used in messages and kept on the result

        Returns:
            SummaryTable with one profile per selected column

        Raises:
            ConfigurationError: if the selection repeats a name or names a column absent from the table
        """
        self.validate_selection(table, columns, label)

        logger.info(f"Summarizing {len(columns)} columns of {label or 'table'} ({table.height:,} rows)...")
        profiles = tuple(self.profiler.profile(table.get_column(name)) for name in columns)

        numeric_count = sum(1 for p in profiles if p.kind is VariableKind.NUMERIC)
        logger.info(f"Numeric columns: {numeric_count}, categorical columns: {len(profiles) - numeric_count}")

        return SummaryTable(profiles=profiles, label=label)

    @staticmethod
    def validate_selection(table: pl.DataFrame, columns: Sequence[str], label: Optional[str] = None) -> None:
        seen: set = set()
        repeated: List[str] = []
        for name in columns:
            if name in seen and name not in repeated:
                repeated.append(name)
            seen.add(name)
        if repeated:
            raise ConfigurationError(f"Column selection repeats names: {repeated}", repeated)

        unknown = [name for name in columns if name not in table.columns]
        if unknown:
            raise ConfigurationError(f"Columns not found in {label or 'table'}: {unknown}", unknown)
