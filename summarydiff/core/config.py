"""Configuration utilities for snapshot summary comparison."""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from loguru import logger
from summarydiff.core.errors import ConfigurationError
from summarydiff.core.fields import DEFAULT_MISSING_VALUES, DEFAULT_DIFF_MARKER

DEFAULT_PRECISION = 3
DEFAULT_CATEGORICAL_MAX_DISTINCT = 10
DEFAULT_SNAPSHOT_PATTERN = '*.csv'


class SummaryConfig:
    """
    Settings shared by the profiler, the summarizer, the differ and the driver.
    """

    @classmethod
    def from_config_file(cls, config_path: Union[str, Path], **cli_overrides: Any) -> "SummaryConfig":
        """
        Create a SummaryConfig from a YAML configuration file.

        Args:
            config_path: Path to the YAML file
            **cli_overrides: Values given on the command line; None means "not given"

        Returns:
            SummaryConfig with command line values taking precedence over the file
        """
        with open(config_path, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file)

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")

        # A key left empty in YAML (e.g. `output_dir:`) falls back to the default
        file_settings = {k: v for k, v in config.items() if v is not None}
        overrides = {k: v for k, v in cli_overrides.items() if v is not None}
        settings = {**file_settings, **overrides}
        logger.debug(f"Loaded configuration from {config_path}: {sorted(config.keys())}")

        return cls(
            missing_values=settings.get('missing_values'),
            precision=settings.get('precision', DEFAULT_PRECISION),
            categorical_max_distinct=settings.get('categorical_max_distinct', DEFAULT_CATEGORICAL_MAX_DISTINCT),
            diff_marker=settings.get('diff_marker', DEFAULT_DIFF_MARKER),
            variables=settings.get('variables'),
            output_dir=settings.get('output_dir', '.'),
            snapshot_pattern=settings.get('snapshot_pattern', DEFAULT_SNAPSHOT_PATTERN),
        )

    def __init__(
        self,
        missing_values: Optional[List[str]] = None,
        precision: int = DEFAULT_PRECISION,
        categorical_max_distinct: int = DEFAULT_CATEGORICAL_MAX_DISTINCT,
        diff_marker: str = DEFAULT_DIFF_MARKER,
        variables: Optional[List[str]] = None,
        output_dir: Union[str, Path] = '.',
        snapshot_pattern: str = DEFAULT_SNAPSHOT_PATTERN,
    ) -> None:
        if missing_values is None:
            missing_values = list(DEFAULT_MISSING_VALUES)
        if not isinstance(missing_values, list):
            raise ConfigurationError("missing_values must be a list of strings")
        if variables is not None and not isinstance(variables, list):
            raise ConfigurationError("variables must be a list of column names")
        if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
            raise ConfigurationError(f"precision must be a non-negative integer, got {precision!r}")
        if isinstance(categorical_max_distinct, bool) or not isinstance(categorical_max_distinct, int) or categorical_max_distinct < 0:
            raise ConfigurationError(
                f"categorical_max_distinct must be a non-negative integer, got {categorical_max_distinct!r}"
            )

        # YAML reads a bare NA as a string but a bare 1 as an int
        self.missing_values = [str(v) for v in missing_values]
        self.precision = precision
        self.categorical_max_distinct = categorical_max_distinct
        self.diff_marker = str(diff_marker)
        self.variables = [str(v) for v in variables] if variables is not None else None
        self.output_dir = Path(output_dir)
        self.snapshot_pattern = snapshot_pattern

    def to_dict(self) -> Dict[str, Any]:
        return {
            'missing_values': self.missing_values,
            'precision': self.precision,
            'categorical_max_distinct': self.categorical_max_distinct,
            'diff_marker': self.diff_marker,
            'variables': self.variables,
            'output_dir': str(self.output_dir),
            'snapshot_pattern': self.snapshot_pattern,
        }


def load_variable_list(path: Union[str, Path]) -> List[str]:
    """
    Read an analyst's variable list: one column name per line.
    Blank lines and lines starting with '#' are skipped. Order is preserved
    and duplicates are kept so the summarizer can reject them.
    """
    variables: List[str] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            name = line.strip()
            if not name or name.startswith('#'):
                continue
            variables.append(name)
    return variables
