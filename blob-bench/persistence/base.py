"""
Result table and sink interface for the blob sweep.
"""

import logging
from typing import Iterator, List

import pandas as pd

from configuration import (
    BLOCK_SIZE_COLUMN,
    DOWNLOAD_DURATION_COLUMN,
    UPLOAD_DURATION_COLUMN,
)
from persistence.record import ConfigurationResult

logger = logging.getLogger(__name__)


class ResultTable:
    """Header plus result rows in the order the sweep produced them.

    A table belongs to exactly one sweep run. Rows are only appended; the
    table is handed to a sink once, after the sweep has finished.
    """

    def __init__(self, include_download: bool = True):
        self.include_download = include_download
        self.results: List[ConfigurationResult] = []

    @property
    def header(self) -> List[str]:
        header = [BLOCK_SIZE_COLUMN, UPLOAD_DURATION_COLUMN]
        if self.include_download:
            header.append(DOWNLOAD_DURATION_COLUMN)
        return header

    def add_result(self, result: ConfigurationResult) -> None:
        """Append a result row."""
        self.results.append(result)

    def rows(self) -> List[List[str]]:
        """Data rows as strings, without the header."""
        return [result.to_row(self.include_download) for result in self.results]

    def to_rows(self) -> List[List[str]]:
        """Header followed by the data rows."""
        return [self.header] + self.rows()

    def to_dataframe(self) -> pd.DataFrame:
        """Data rows as a string-typed DataFrame with the header as columns."""
        return pd.DataFrame(self.rows(), columns=self.header, dtype=str)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[ConfigurationResult]:
        return iter(self.results)


class ResultSink:
    """Destination for a finished result table."""

    def write(self, table: ResultTable) -> None:
        """Write the complete table.

        Raises:
            OutputFailure: If the table cannot be written
        """
        raise NotImplementedError
