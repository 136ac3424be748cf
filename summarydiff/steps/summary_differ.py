"""Cell-by-cell comparison of two summary tables."""

import polars as pl
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
from loguru import logger
from summarydiff.core.errors import SchemaMismatchError
from summarydiff.core.fields import SummaryFields, DEFAULT_DIFF_MARKER
from summarydiff.steps.table_summarizer import SummaryTable


def audit_description(new_label: str, old_label: str) -> str:
    return f"Comparison of new snapshot {new_label} against old snapshot {old_label}"


@dataclass(frozen=True)
class DifferenceTable:
    """
    Summary-shaped table whose cells are empty (equal) or hold the marker (different).
    The last row is an audit row naming both compared snapshots.
    """

    frame: pl.DataFrame
    new_label: str
    old_label: str
    marker: str = DEFAULT_DIFF_MARKER

    @property
    def column_rows(self) -> pl.DataFrame:
        """Per-column rows without the trailing audit row."""
        return self.frame.head(self.frame.height - 1)

    @property
    def audit_row(self) -> Dict[str, Any]:
        return self.frame.row(self.frame.height - 1, named=True)

    def flagged_cells(self) -> List[Tuple[str, str]]:
        """(column name, field) of every differing cell, in table order."""
        cells: List[Tuple[str, str]] = []
        fields = SummaryFields.all_fields()[1:]
        for row in self.column_rows.iter_rows(named=True):
            for field in fields:
                if row[field] is not None:
                    cells.append((row[SummaryFields.NAME], field))
        return cells

    @property
    def has_differences(self) -> bool:
        return len(self.flagged_cells()) > 0

    def to_frame(self) -> pl.DataFrame:
        return self.frame.clone()


class SummaryDiffer:
    """
    Compares two summary tables row by row (keyed by column name) and field by field.
    Values are compared exactly as the profiler rounded them.
    """

    def __init__(self, marker: str = DEFAULT_DIFF_MARKER) -> None:
        self.marker = marker

    def diff(
        self,
        new_summary: SummaryTable,
        old_summary: SummaryTable,
        labels: Tuple[str, str],
    ) -> DifferenceTable:
        """
        Build the difference table of two summaries.

        Args:
            new_summary: Summary of the newer snapshot; its names are copied into the result
            old_summary: Summary of the older snapshot
            labels: (new snapshot id, old snapshot id) for the audit row

        Raises:
            SchemaMismatchError: if the summaries do not list the same columns in the same order
        """
        new_label, old_label = labels
        self.check_schema(new_summary, old_summary, labels)

        fields = SummaryFields.all_fields()
        rows: List[Dict[str, Any]] = []
        for new_row, old_row in zip(new_summary.to_rows(), old_summary.to_rows()):
            row: Dict[str, Any] = {SummaryFields.NAME: new_row[SummaryFields.NAME]}
            for field in fields[1:]:
                row[field] = self.marker if new_row[field] != old_row[field] else None
            rows.append(row)

        audit: Dict[str, Any] = {field: None for field in fields}
        audit[SummaryFields.NAME] = audit_description(new_label, old_label)
        rows.append(audit)

        frame = pl.from_dicts(rows, schema={field: pl.Utf8 for field in fields})
        difference = DifferenceTable(frame=frame, new_label=new_label, old_label=old_label, marker=self.marker)

        flagged = difference.flagged_cells()
        changed_columns = sorted({name for name, _ in flagged})
        logger.info(f"Compared {len(new_summary)} columns: {len(flagged)} differing cells in {len(changed_columns)} columns")
        return difference

    @staticmethod
    def check_schema(new_summary: SummaryTable, old_summary: SummaryTable, labels: Tuple[str, str]) -> None:
        new_names = new_summary.names
        old_names = old_summary.names
        if new_names == old_names:
            return

        only_in_new = [c for c in new_names if c not in old_names]
        only_in_old = [c for c in old_names if c not in new_names]
        if not only_in_new and not only_in_old:
            message = f"Column order differs between {labels[0]} and {labels[1]}"
        else:
            message = (
                f"Column sets differ between {labels[0]} and {labels[1]}: "
                f"only in new {only_in_new}, only in old {only_in_old}"
            )
        raise SchemaMismatchError(message, only_in_new=only_in_new, only_in_old=only_in_old)
