"""Human-readable report of a summary comparison."""

from collections import defaultdict
from typing import Dict, List
from loguru import logger
from summarydiff.core.utils import format_cell
from summarydiff.steps.table_summarizer import SummaryTable
from summarydiff.steps.summary_differ import DifferenceTable


def print_comparison_report(
    new_summary: SummaryTable,
    old_summary: SummaryTable,
    difference: DifferenceTable,
) -> None:
    """
    Log every flagged cell with its old and new value.
    """
    logger.info("\n" + "="*80)
    logger.info("SNAPSHOT SUMMARY COMPARISON REPORT")
    logger.info("="*80)
    logger.info(f"\nNew snapshot: {difference.new_label}")
    logger.info(f"Old snapshot: {difference.old_label}")
    logger.info(f"Columns compared: {len(new_summary)}")

    by_column: Dict[str, List[str]] = defaultdict(list)
    for name, field in difference.flagged_cells():
        by_column[name].append(field)

    if not by_column:
        logger.info(f"\n[OK] No summary differences found in {len(new_summary)} columns.")
        logger.info("\n" + "="*80)
        return

    logger.info(f"\n[WARNING] Columns with differences: {len(by_column)}")
    for name in new_summary.names:
        fields = by_column.get(name)
        if not fields:
            continue
        new_row = new_summary.get(name).to_row()
        old_row = old_summary.get(name).to_row()
        logger.info(f"\n  {name}:")
        for field in fields:
            logger.info(f"    {field}: {format_cell(old_row[field])} -> {format_cell(new_row[field])}")

    logger.info("\n" + "="*80)
