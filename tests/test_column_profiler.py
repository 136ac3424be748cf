import pytest
import polars as pl
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from summarydiff.core.errors import ConfigurationError
from summarydiff.core.fields import SummaryFields, MAX_CATEGORY_LEVELS
from summarydiff.core.utils import round_statistic
from summarydiff.steps.column_profiler import (
    CategoryCount,
    ColumnProfile,
    ColumnProfiler,
    NumericStats,
    StorageType,
    VariableKind,
    detect_storage_type,
)


def text_column(name, values):
    return pl.Series(name, values, dtype=pl.Utf8)


class TestColumnProfiler:
    """
    Tests for ColumnProfiler:
    1. Missing-value partitioning and counts
    2. Storage type detection and low-cardinality reclassification
    3. Numeric statistics
    4. Category frequency tables
    5. Degenerate columns
    """

    @pytest.fixture
    def profiler(self):
        return ColumnProfiler(missing_values=["NA", "", " "], precision=3)

    def test_score_counts(self, profiler):
        """score = [2, 4, 4, NA, 6] -> 4 present, 1 missing, 3 distinct."""
        prof = profiler.profile(text_column("score", ["2", "4", "4", "NA", "6"]))

        assert prof.name == "score"
        assert prof.count_non_missing == 4
        assert prof.count_missing == 1
        assert prof.count_distinct == 3
        assert prof.declared_type is StorageType.INTEGER
        # Only 3 distinct values: low-cardinality integer column
        assert prof.kind is VariableKind.CATEGORICAL

    def test_score_numeric_stats(self):
        """With the ceiling lowered, score is numeric: mean 4, min 2, max 6."""
        profiler = ColumnProfiler(missing_values=["NA"], categorical_max_distinct=2)
        prof = profiler.profile(text_column("score", ["2", "4", "4", "NA", "6"]))

        assert prof.kind is VariableKind.NUMERIC
        assert prof.categories is None
        stats = prof.numeric
        assert stats.mean == 4.0
        assert stats.min == 2.0
        assert stats.max == 6.0
        assert stats.median == 4.0
        assert stats.q25 == 3.5
        assert stats.q75 == 4.5
        assert stats.sd == 1.633, f"Expected sample sd 1.633, got {stats.sd}"

    def test_site_categories(self, profiler):
        """site = [A, A, B, NA] -> [(A, 2), (B, 1)], one missing."""
        prof = profiler.profile(text_column("site", ["A", "A", "B", "NA"]))

        assert prof.kind is VariableKind.CATEGORICAL
        assert prof.declared_type is StorageType.CATEGORICAL
        assert prof.count_missing == 1
        assert prof.numeric is None
        assert prof.categories == (CategoryCount("A", 2), CategoryCount("B", 1))

    def test_ten_distinct_values_is_categorical(self, profiler):
        prof = profiler.profile(text_column("x", [str(i) for i in range(10)]))
        assert prof.count_distinct == 10
        assert prof.kind is VariableKind.CATEGORICAL

    def test_eleven_distinct_values_is_numeric(self, profiler):
        prof = profiler.profile(text_column("x", [str(i) for i in range(11)]))
        assert prof.count_distinct == 11
        assert prof.kind is VariableKind.NUMERIC

    def test_numeric_summary_of_one_to_twenty(self, profiler):
        prof = profiler.profile(text_column("x", [str(i) for i in range(1, 21)]))

        assert prof.declared_type is StorageType.INTEGER
        assert prof.numeric == NumericStats(
            mean=10.5, sd=5.916, min=1.0, q25=5.75, median=10.5, q75=15.25, max=20.0
        )

    def test_binary_flag_gets_frequency_table(self, profiler):
        """0/1 coded flags are reclassified but keep their declared integer type."""
        prof = profiler.profile(text_column("flag", ["0", "1", "1", "0", "NA", "1"]))

        assert prof.kind is VariableKind.CATEGORICAL
        assert prof.declared_type is StorageType.INTEGER
        assert prof.categories == (CategoryCount("1", 3), CategoryCount("0", 2))

    def test_ties_keep_first_seen_order(self, profiler):
        prof = profiler.profile(text_column("x", ["b", "a", "a", "b", "c"]))
        assert [c.label for c in prof.categories] == ["b", "a", "c"]
        assert [c.count for c in prof.categories] == [2, 2, 1]

    def test_at_most_ten_categories(self, profiler):
        values = [f"label_{i:02d}" for i in range(15)] + ["label_14"] * 3
        prof = profiler.profile(text_column("x", values))

        assert prof.count_distinct == 15
        assert len(prof.categories) == MAX_CATEGORY_LEVELS
        assert prof.categories[0] == CategoryCount("label_14", 4)

    def test_all_missing_column(self, profiler):
        """A fully missing column yields an empty but well-formed profile."""
        prof = profiler.profile(text_column("empty", ["NA", "", " ", None]))

        assert prof.count_non_missing == 0
        assert prof.count_missing == 4
        assert prof.count_distinct == 0
        assert prof.kind is VariableKind.CATEGORICAL
        assert prof.categories == ()

        row = prof.to_row()
        for field in SummaryFields.NUMERIC_FIELDS + SummaryFields.category_fields():
            assert row[field] is None, f"{field} should be empty, got {row[field]}"

    def test_single_repeated_value(self, profiler):
        prof = profiler.profile(text_column("const", ["x", "x", "x"]))
        assert prof.categories == (CategoryCount("x", 3),)
        assert prof.count_distinct == 1

    def test_sentinels_are_exact_matches(self, profiler):
        """' NA' and 'na' are real values; only exact sentinels are missing."""
        prof = profiler.profile(text_column("x", ["NA", " NA", "na", "ok"]))
        assert prof.count_missing == 1
        assert prof.count_non_missing == 3

    def test_custom_sentinels(self):
        profiler = ColumnProfiler(missing_values=["-99", "   ."])
        prof = profiler.profile(text_column("x", ["1", "-99", "   .", "2", "NA"]))

        assert prof.count_missing == 2
        # "NA" is an ordinary value here, so the column is not numeric
        assert prof.declared_type is StorageType.CATEGORICAL

    def test_typed_float_column(self, profiler):
        """Typed input: nulls and NaN are missing, sentinels do not apply."""
        prof = profiler.profile(pl.Series("x", [1.5, None, float("nan"), 2.5]))

        assert prof.declared_type is StorageType.NUMERIC
        assert prof.count_non_missing == 2
        assert prof.count_missing == 2

    def test_categorical_dtype_uses_sentinels(self):
        """Categorical-typed text is matched against the sentinels like plain text."""
        profiler = ColumnProfiler(missing_values=["NA"])
        prof = profiler.profile(pl.Series("x", ["A", "NA", "B", "A", None], dtype=pl.Categorical))

        assert prof.count_missing == 2
        assert prof.declared_type is StorageType.CATEGORICAL
        assert prof.categories == (CategoryCount("A", 2), CategoryCount("B", 1))

    def test_counts_add_up(self, profiler):
        columns = [
            text_column("a", ["1", "2", "NA", "", "3"]),
            text_column("b", ["x", None, "y", "x"]),
            text_column("c", [str(i) for i in range(30)] + ["NA"]),
        ]
        for column in columns:
            prof = profiler.profile(column)
            assert prof.count_non_missing + prof.count_missing == len(column)
            assert prof.count_distinct <= prof.count_non_missing

    def test_profiling_is_idempotent(self, profiler):
        column = text_column("x", [str(i % 13) for i in range(40)] + ["NA"])
        assert profiler.profile(column) == profiler.profile(column)


class TestNumericStats:

    @pytest.fixture
    def profiler(self):
        return ColumnProfiler(precision=3)

    def test_no_values_gives_empty_stats(self, profiler):
        stats = profiler.numeric_stats(pl.Series("x", [], dtype=pl.Float64))
        assert stats == NumericStats()
        assert all(v is None for v in stats.as_fields().values())

    def test_zero_variance(self, profiler):
        stats = profiler.numeric_stats(pl.Series("x", [5.0, 5.0, 5.0]))
        assert stats.sd == 0.0
        assert stats.min == stats.max == 5.0

    def test_single_value_has_no_sd(self, profiler):
        stats = profiler.numeric_stats(pl.Series("x", [7.0]))
        assert stats.sd is None
        assert stats.mean == 7.0

    def test_rounding_precision(self):
        stats = ColumnProfiler(precision=1).numeric_stats(pl.Series("x", [1.0, 2.0, 2.0]))
        assert stats.mean == 1.7


class TestStorageTypeDetection:

    def test_detection(self):
        assert detect_storage_type(pl.Series(["1", "2", "-3"])) is StorageType.INTEGER
        assert detect_storage_type(pl.Series(["1", "2.5"])) is StorageType.NUMERIC
        assert detect_storage_type(pl.Series(["1", "two"])) is StorageType.CATEGORICAL
        assert detect_storage_type(pl.Series([], dtype=pl.Utf8)) is StorageType.CATEGORICAL

    def test_round_statistic(self):
        assert round_statistic(3.14159, 3) == 3.142
        assert round_statistic(None, 3) is None
        assert round_statistic(float("nan"), 3) is None
        assert round_statistic(float("inf"), 3) is None


class TestColumnProfile:

    def test_numeric_profile_requires_numeric_block(self):
        with pytest.raises(ValueError):
            ColumnProfile(
                name="x", count_non_missing=1, count_missing=0, count_distinct=1,
                kind=VariableKind.NUMERIC, declared_type=StorageType.INTEGER,
                categories=(CategoryCount("1", 1),),
            )

    def test_categorical_profile_rejects_both_blocks(self):
        with pytest.raises(ValueError):
            ColumnProfile(
                name="x", count_non_missing=1, count_missing=0, count_distinct=1,
                kind=VariableKind.CATEGORICAL, declared_type=StorageType.CATEGORICAL,
                numeric=NumericStats(), categories=(),
            )

    def test_row_layout(self):
        prof = ColumnProfiler().profile(text_column("site", ["A", "A", "B", "NA"]))
        row = prof.to_row()

        assert list(row.keys()) == SummaryFields.all_fields()
        assert len(row) == 32
        assert row["name"] == "site"
        assert (row["n"], row["missing"], row["unique"]) == (3, 1, 2)
        assert (row["lv1"], row["lv1n"], row["lv2"], row["lv2n"]) == ("A", 2, "B", 1)
        assert row["lv3"] is None and row["lv3n"] is None
        assert row["declaredType"] == "categorical"

    def test_from_row_rebuilds_profile(self):
        prof = ColumnProfiler().profile(text_column("x", [str(i) for i in range(15)]))
        assert ColumnProfile.from_row(prof.to_row()) == prof

    def test_from_row_rejects_label_without_count(self):
        row = ColumnProfiler().profile(text_column("site", ["A", "A", "B"])).to_row()
        row["lv2n"] = None

        with pytest.raises(ConfigurationError) as exc_info:
            ColumnProfile.from_row(row)

        assert exc_info.value.columns == ["site"]


if __name__ == "__main__":
    pytest.main([__file__])
