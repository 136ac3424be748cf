#!/usr/bin/env python3
"""
Snapshot summary comparison package.

Profiles the columns of two successive snapshots of a tabular dataset and
diffs the per-column summaries to surface likely pipeline regressions.

Usage:
    from summarydiff import ColumnProfiler, TableSummarizer, SummaryDiffer

    summarizer = TableSummarizer(ColumnProfiler(missing_values=["NA", ""]))
    new_summary = summarizer.summarize(new_df, columns, label="new.csv")
    old_summary = summarizer.summarize(old_df, columns, label="old.csv")
    difference = SummaryDiffer().diff(new_summary, old_summary, ("new.csv", "old.csv"))
"""

from summarydiff.core.config import SummaryConfig
from summarydiff.core.errors import ConfigurationError, SchemaMismatchError
from summarydiff.steps.column_profiler import (
    CategoryCount,
    ColumnProfile,
    ColumnProfiler,
    NumericStats,
    StorageType,
    VariableKind,
)
from summarydiff.steps.table_summarizer import SummaryTable, TableSummarizer
from summarydiff.steps.summary_differ import DifferenceTable, SummaryDiffer

__all__ = [
    'CategoryCount',
    'ColumnProfile',
    'ColumnProfiler',
    'ConfigurationError',
    'DifferenceTable',
    'NumericStats',
    'SchemaMismatchError',
    'StorageType',
    'SummaryConfig',
    'SummaryDiffer',
    'SummaryTable',
    'TableSummarizer',
    'VariableKind',
]
