"""Column profiling: storage type detection, kind inference and per-column statistics."""

import polars as pl
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from loguru import logger
from summarydiff.core.config import SummaryConfig, DEFAULT_PRECISION, DEFAULT_CATEGORICAL_MAX_DISTINCT
from summarydiff.core.errors import ConfigurationError
from summarydiff.core.fields import SummaryFields, MAX_CATEGORY_LEVELS, DEFAULT_MISSING_VALUES
from summarydiff.core.utils import round_statistic


class StorageType(str, Enum):
    """Storage type of a column as read, before low-cardinality reclassification."""

    INTEGER = 'integer'
    NUMERIC = 'numeric'
    CATEGORICAL = 'categorical'


class VariableKind(str, Enum):
    """Which summary representation a column gets."""

    NUMERIC = 'numeric'
    CATEGORICAL = 'categorical'


@dataclass(frozen=True)
class NumericStats:
    """
    Rounded descriptive statistics of a numeric column.
    Every field is None when the column has no usable values.
    """

    mean: Optional[float] = None
    sd: Optional[float] = None
    min: Optional[float] = None
    q25: Optional[float] = None
    median: Optional[float] = None
    q75: Optional[float] = None
    max: Optional[float] = None

    def as_fields(self) -> Dict[str, Optional[float]]:
        return {
            SummaryFields.MEAN: self.mean,
            SummaryFields.SD: self.sd,
            SummaryFields.MIN: self.min,
            SummaryFields.Q25: self.q25,
            SummaryFields.MEDIAN: self.median,
            SummaryFields.Q75: self.q75,
            SummaryFields.MAX: self.max,
        }


@dataclass(frozen=True)
class CategoryCount:
    label: str
    count: int


@dataclass(frozen=True)
class ColumnProfile:
    """
    Summary of one column.

    Exactly one of ``numeric`` and ``categories`` is set, matching ``kind``.
    An empty ``categories`` tuple is a categorical block with every slot empty.
    """

    name: str
    count_non_missing: int
    count_missing: int
    count_distinct: int
    kind: VariableKind
    declared_type: StorageType
    numeric: Optional[NumericStats] = None
    categories: Optional[Tuple[CategoryCount, ...]] = None

    def __post_init__(self) -> None:
        if self.kind is VariableKind.NUMERIC:
            if self.numeric is None or self.categories is not None:
                raise ValueError(f"Numeric profile for '{self.name}' must carry numeric stats only")
        else:
            if self.categories is None or self.numeric is not None:
                raise ValueError(f"Categorical profile for '{self.name}' must carry categories only")
            if len(self.categories) > MAX_CATEGORY_LEVELS:
                raise ValueError(
                    f"Categorical profile for '{self.name}' has {len(self.categories)} categories "
                    f"(max {MAX_CATEGORY_LEVELS})"
                )

    @property
    def total_count(self) -> int:
        return self.count_non_missing + self.count_missing

    def to_row(self) -> Dict[str, Any]:
        """Flatten into the exported 32-field layout; unused fields are None."""
        row: Dict[str, Any] = {field: None for field in SummaryFields.all_fields()}
        row[SummaryFields.NAME] = self.name
        row[SummaryFields.N] = self.count_non_missing
        row[SummaryFields.MISSING] = self.count_missing
        row[SummaryFields.UNIQUE] = self.count_distinct
        row[SummaryFields.DECLARED_TYPE] = self.declared_type.value
        if self.numeric is not None:
            row.update(self.numeric.as_fields())
        if self.categories is not None:
            for slot, category in enumerate(self.categories, start=1):
                row[SummaryFields.level_label(slot)] = category.label
                row[SummaryFields.level_count(slot)] = category.count
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ColumnProfile":
        """
        Rebuild a profile from an exported row (e.g. a persisted summary CSV).
        The kind is numeric when any numeric field holds a value.
        """
        numeric_values = {field: row.get(field) for field in SummaryFields.NUMERIC_FIELDS}
        is_numeric = any(v is not None for v in numeric_values.values())

        numeric: Optional[NumericStats] = None
        categories: Optional[Tuple[CategoryCount, ...]] = None
        if is_numeric:
            numeric = NumericStats(
                mean=_optional_float(numeric_values[SummaryFields.MEAN]),
                sd=_optional_float(numeric_values[SummaryFields.SD]),
                min=_optional_float(numeric_values[SummaryFields.MIN]),
                q25=_optional_float(numeric_values[SummaryFields.Q25]),
                median=_optional_float(numeric_values[SummaryFields.MEDIAN]),
                q75=_optional_float(numeric_values[SummaryFields.Q75]),
                max=_optional_float(numeric_values[SummaryFields.MAX]),
            )
        else:
            slots: List[CategoryCount] = []
            for slot in range(1, MAX_CATEGORY_LEVELS + 1):
                label = row.get(SummaryFields.level_label(slot))
                count = row.get(SummaryFields.level_count(slot))
                if label is None and count is None:
                    continue
                if count is None:
                    raise ConfigurationError(
                        f"Summary row for '{row[SummaryFields.NAME]}' has category '{label}' without a count",
                        [str(row[SummaryFields.NAME])],
                    )
                slots.append(CategoryCount(label='' if label is None else str(label), count=int(count)))
            categories = tuple(slots)

        return cls(
            name=str(row[SummaryFields.NAME]),
            count_non_missing=int(row[SummaryFields.N]),
            count_missing=int(row[SummaryFields.MISSING]),
            count_distinct=int(row[SummaryFields.UNIQUE]),
            kind=VariableKind.NUMERIC if is_numeric else VariableKind.CATEGORICAL,
            declared_type=StorageType(row[SummaryFields.DECLARED_TYPE]),
            numeric=numeric,
            categories=categories,
        )


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def detect_storage_type(values: pl.Series) -> StorageType:
    """
    Detect the storage type of non-missing text cells.
    Integer if every cell parses as an integer, numeric if every cell parses
    as a float, categorical otherwise (including when there are no cells).
    """
    if len(values) == 0:
        return StorageType.CATEGORICAL
    if values.cast(pl.Int64, strict=False).null_count() == 0:
        return StorageType.INTEGER
    if values.cast(pl.Float64, strict=False).null_count() == 0:
        return StorageType.NUMERIC
    return StorageType.CATEGORICAL


class ColumnProfiler:
    """
    Computes a fixed-shape ColumnProfile from one column of raw values.
    """

    @classmethod
    def from_config(cls, config: SummaryConfig) -> "ColumnProfiler":
        return cls(
            missing_values=config.missing_values,
            precision=config.precision,
            categorical_max_distinct=config.categorical_max_distinct,
        )

    def __init__(
        self,
        missing_values: Optional[List[str]] = None,
        precision: int = DEFAULT_PRECISION,
        categorical_max_distinct: int = DEFAULT_CATEGORICAL_MAX_DISTINCT,
    ) -> None:
        self.missing_values = list(DEFAULT_MISSING_VALUES) if missing_values is None else list(missing_values)
        self.precision = precision
        self.categorical_max_distinct = categorical_max_distinct

    def profile(self, column: pl.Series) -> ColumnProfile:
        """
        Profile a single column.

        Args:
            column: Raw cell values; text columns are matched against the
                missing-value sentinels, typed columns use nulls (and NaN for floats)

        Returns:
            ColumnProfile keyed by the series name
        """
        present, storage_type = self.partition(column)
        count_non_missing = len(present)
        count_missing = len(column) - count_non_missing
        count_distinct = present.n_unique() if count_non_missing > 0 else 0
        kind = self.infer_kind(storage_type, count_distinct)

        logger.debug(
            f"Column '{column.name}': {storage_type.value} storage, {count_distinct} distinct -> {kind.value}"
        )

        if kind is VariableKind.NUMERIC:
            return ColumnProfile(
                name=column.name,
                count_non_missing=count_non_missing,
                count_missing=count_missing,
                count_distinct=count_distinct,
                kind=kind,
                declared_type=storage_type,
                numeric=self.numeric_stats(present),
            )
        return ColumnProfile(
            name=column.name,
            count_non_missing=count_non_missing,
            count_missing=count_missing,
            count_distinct=count_distinct,
            kind=kind,
            declared_type=storage_type,
            categories=self.top_categories(present),
        )

    def partition(self, column: pl.Series) -> Tuple[pl.Series, StorageType]:
        """
        Drop missing cells and detect the storage type of what remains.
        Returned values are Int64 / Float64 for integer / numeric storage and
        String for categorical storage.
        """
        dtype = column.dtype

        if dtype.is_integer():
            return column.drop_nulls(), StorageType.INTEGER
        if dtype.is_float():
            values = column.drop_nulls()
            return values.filter(~values.is_nan()), StorageType.NUMERIC

        # Categorical, Enum and other non-numeric dtypes are matched as text
        text = column if dtype == pl.Utf8 else column.cast(pl.Utf8)
        is_missing = text.is_null()
        if self.missing_values:
            is_missing = is_missing | text.is_in(self.missing_values)
        raw = text.filter(~is_missing)
        storage_type = detect_storage_type(raw)
        if storage_type is StorageType.INTEGER:
            return raw.cast(pl.Int64), storage_type
        if storage_type is StorageType.NUMERIC:
            values = raw.cast(pl.Float64)
            return values.filter(~values.is_nan()), storage_type
        return raw, storage_type

    def infer_kind(self, storage_type: StorageType, count_distinct: int) -> VariableKind:
        """Numeric storage with more distinct values than the ceiling is Numeric; everything else is Categorical."""
        if storage_type is StorageType.CATEGORICAL:
            return VariableKind.CATEGORICAL
        if count_distinct > self.categorical_max_distinct:
            return VariableKind.NUMERIC
        return VariableKind.CATEGORICAL

    def numeric_stats(self, values: pl.Series) -> NumericStats:
        """
        Mean, sample standard deviation and the five-number summary
        (linear interpolation quantiles), each rounded to ``precision``.
        """
        if len(values) == 0:
            return NumericStats()

        values = values.cast(pl.Float64)
        p = self.precision
        return NumericStats(
            mean=round_statistic(values.mean(), p),
            sd=round_statistic(values.std(ddof=1), p) if len(values) > 1 else None,
            min=round_statistic(values.min(), p),
            q25=round_statistic(values.quantile(0.25, interpolation='linear'), p),
            median=round_statistic(values.quantile(0.5, interpolation='linear'), p),
            q75=round_statistic(values.quantile(0.75, interpolation='linear'), p),
            max=round_statistic(values.max(), p),
        )

    def top_categories(self, values: pl.Series) -> Tuple[CategoryCount, ...]:
        """
        Frequency table sorted by descending count; ties keep first-seen order.
        At most MAX_CATEGORY_LEVELS entries.
        """
        if len(values) == 0:
            return ()

        counts = (
            values.cast(pl.Utf8)
            .to_frame('label')
            .group_by('label', maintain_order=True)
            .len()
            .sort('len', descending=True, maintain_order=True)
            .head(MAX_CATEGORY_LEVELS)
        )
        return tuple(
            CategoryCount(label=label, count=int(count))
            for label, count in counts.iter_rows()
        )
