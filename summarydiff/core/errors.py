"""Errors raised while summarizing or comparing snapshots."""

from typing import Iterable, Optional


class ConfigurationError(ValueError):
    """
    Invalid column selection or settings.
    Raised for duplicate or unknown column names and malformed config files.
    """

    def __init__(self, message: str, columns: Optional[Iterable[str]] = None) -> None:
        self.columns = list(columns) if columns is not None else []
        super().__init__(message)


class SchemaMismatchError(ValueError):
    """The two summaries being diffed do not list the same columns in the same order."""

    def __init__(
        self,
        message: str,
        only_in_new: Optional[Iterable[str]] = None,
        only_in_old: Optional[Iterable[str]] = None,
    ) -> None:
        self.only_in_new = list(only_in_new) if only_in_new is not None else []
        self.only_in_old = list(only_in_old) if only_in_old is not None else []
        super().__init__(message)
