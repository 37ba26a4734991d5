"""
CSV persistence for sweep results.
"""

import logging
import os
import tempfile

from common.errors import OutputFailure
from persistence.base import ResultSink, ResultTable

logger = logging.getLogger(__name__)


class CsvResultSink(ResultSink):
    """Writes the result table as comma-separated text.

    The file is written next to its destination and renamed into place, so
    the destination either holds the complete table or does not exist.

    Attributes:
        file_path: Destination of the CSV file
    """

    def __init__(self, file_path: str):
        """Initialize CSV persistence.

        Args:
            file_path: Destination of the CSV file
        """
        self.file_path: str = file_path

    def write(self, table: ResultTable) -> None:
        output_dir = os.path.dirname(os.path.abspath(self.file_path))
        temp_path = None
        try:
            os.makedirs(output_dir, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=output_dir, suffix=".tmp", delete=False, newline=""
            ) as temp_file:
                temp_path = temp_file.name
                table.to_dataframe().to_csv(temp_file, index=False, lineterminator="\n")
            os.replace(temp_path, self.file_path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
            raise OutputFailure(
                f"Failed to write results to {self.file_path}: {e}",
                details={"path": self.file_path},
            ) from e

        logger.info(f"Saved {len(table)} result rows to {self.file_path}")
