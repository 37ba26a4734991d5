"""
Console output for sweep results when no CSV file is requested.
"""

import logging

from persistence.base import ResultSink, ResultTable

logger = logging.getLogger(__name__)


class ConsoleResultSink(ResultSink):
    """Logs the result table as aligned text."""

    def write(self, table: ResultTable) -> None:
        logger.info("=== Sweep Results ===")
        if not len(table):
            logger.info(f"{', '.join(table.header)}: no rows")
            return
        for line in table.to_dataframe().to_string(index=False).splitlines():
            logger.info(line)
