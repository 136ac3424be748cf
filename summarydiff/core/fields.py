"""Summary table layout and shared constants for snapshot comparison."""

from typing import List

# Number of (label, count) slots kept for a categorical column
MAX_CATEGORY_LEVELS = 10

# Default literal values treated as missing when reading raw snapshots
DEFAULT_MISSING_VALUES: List[str] = ['NA', '', ' ']

# Default token written into a difference table cell whose values differ
DEFAULT_DIFF_MARKER = 'FALSE'

# Leading numeric index column written with every persisted table
ROW_INDEX_COLUMN = 'row'


class SummaryFields:
    """
    Column names of an exported summary table.
    A summary row has 32 fields: identity and counts, the numeric block,
    ten category slots and the declared storage type.
    """

    NAME = 'name'
    N = 'n'
    MISSING = 'missing'
    UNIQUE = 'unique'
    MEAN = 'avg'
    SD = 'sd'
    MIN = 'q1'
    Q25 = 'q2'
    MEDIAN = 'q3'
    Q75 = 'q4'
    MAX = 'q5'
    DECLARED_TYPE = 'declaredType'

    COUNT_FIELDS: List[str] = [N, MISSING, UNIQUE]
    NUMERIC_FIELDS: List[str] = [MEAN, SD, MIN, Q25, MEDIAN, Q75, MAX]

    @staticmethod
    def level_label(slot: int) -> str:
        """Label field for a 1-based category slot."""
        return f"lv{slot}"

    @staticmethod
    def level_count(slot: int) -> str:
        """Frequency field for a 1-based category slot."""
        return f"lv{slot}n"

    @classmethod
    def category_fields(cls) -> List[str]:
        fields: List[str] = []
        for slot in range(1, MAX_CATEGORY_LEVELS + 1):
            fields.append(cls.level_label(slot))
            fields.append(cls.level_count(slot))
        return fields

    @classmethod
    def all_fields(cls) -> List[str]:
        """All exported fields in layout order."""
        return [cls.NAME] + cls.COUNT_FIELDS + cls.NUMERIC_FIELDS + cls.category_fields() + [cls.DECLARED_TYPE]
