import os
import sys
import logging
import argparse

import uvloop

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CONTAINER_PREFIX,
    DEFAULT_END_BLOCK_BYTES,
    DEFAULT_FILE_SIZE_BYTES,
    DEFAULT_FILES_PER_CONFIGURATION,
    DEFAULT_INCREMENT_BLOCK_BYTES,
    DEFAULT_LOG_LEVEL,
    DEFAULT_START_BLOCK_BYTES,
    DEFAULT_STORAGE_TYPE,
    DEFAULT_TRANSPORT_RETRIES,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    LOG_FORMAT,
    REQUEST_TIMEOUT_SECONDS,
    STORAGE_TYPES,
)
from common.errors import BenchmarkError, InvalidConfiguration
from common.sweep_config import SweepConfiguration

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class BlobSweepCLI:
    """CLI interface for the blob block-size sweep."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            description='Blob storage block-size sweep benchmark',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Sweep 2 MiB .. 32 MiB blocks on Azure and write averages to CSV
  python cli.py --connection-string "$AZURE_STORAGE_CONNECTION_STRING" --csv-file-path results/azure.csv

  # Same grid applied from the largest block size down
  python cli.py --connection-string "$AZURE_STORAGE_CONNECTION_STRING" --reverse --csv-file-path results/azure_rev.csv

  # R2 bucket, 64 MiB files, one row per file, table logged to the console
  python cli.py --storage r2 --file-size 67108864 --per-file-rows \\
      --connection-string "EndpointUrl=https://<account>.r2.cloudflarestorage.com;AccessKeyId=...;SecretAccessKey=..."
            """
        )

        parser.add_argument('--connection-string', type=str, default=None,
                            help='Storage connection string (default: $BLOB_BENCH_CONNECTION_STRING)')
        parser.add_argument('--storage', choices=list(STORAGE_TYPES), default=DEFAULT_STORAGE_TYPE,
                            help=f'Storage type to use (default: {DEFAULT_STORAGE_TYPE})')

        parser.add_argument('--reverse', action='store_true',
                            help='Apply block sizes from end to start')
        parser.add_argument('--start-block-bytes', type=int, default=DEFAULT_START_BLOCK_BYTES,
                            help=f'First block size in bytes (default: {DEFAULT_START_BLOCK_BYTES})')
        parser.add_argument('--end-block-bytes', type=int, default=DEFAULT_END_BLOCK_BYTES,
                            help=f'Last block size in bytes (default: {DEFAULT_END_BLOCK_BYTES})')
        parser.add_argument('--increment-block-bytes', type=int, default=DEFAULT_INCREMENT_BLOCK_BYTES,
                            help=f'Block size step in bytes (default: {DEFAULT_INCREMENT_BLOCK_BYTES})')

        parser.add_argument('--file-size', type=int, default=DEFAULT_FILE_SIZE_BYTES,
                            help=f'Size of every test file in bytes (default: {DEFAULT_FILE_SIZE_BYTES})')
        parser.add_argument('--files', type=int, default=DEFAULT_FILES_PER_CONFIGURATION,
                            help=f'Files per block size (default: {DEFAULT_FILES_PER_CONFIGURATION})')
        parser.add_argument('--concurrency', type=int, default=DEFAULT_CONCURRENCY,
                            help=f'Blocks transferred in parallel per file (default: {DEFAULT_CONCURRENCY})')
        parser.add_argument('--timeout-seconds', type=float, default=REQUEST_TIMEOUT_SECONDS,
                            help=f'Deadline of every upload and download (default: {REQUEST_TIMEOUT_SECONDS})')
        parser.add_argument('--transport-retries', type=int, default=DEFAULT_TRANSPORT_RETRIES,
                            help=f'Retries inside the storage client (default: {DEFAULT_TRANSPORT_RETRIES})')

        parser.add_argument('--csv-file-path', type=str, default=None,
                            help='Write results to this CSV file (default: log the table)')
        parser.add_argument('--per-file-rows', action='store_true',
                            help='One result row per file instead of per-block-size averages')
        parser.add_argument('--upload-only', action='store_true',
                            help='Measure uploads only')
        parser.add_argument('--container-prefix', type=str, default=DEFAULT_CONTAINER_PREFIX,
                            help=f'Prefix of the transient container name (default: {DEFAULT_CONTAINER_PREFIX})')
        parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                            default=DEFAULT_LOG_LEVEL,
                            help=f'Log level (default: {DEFAULT_LOG_LEVEL})')

        return parser

    def create_sink(self, config: SweepConfiguration):
        """Create the result sink: a CSV file, or the console when no path is given."""
        if config.result_sink_path:
            from persistence.csv_sink import CsvResultSink
            return CsvResultSink(config.result_sink_path)
        from persistence.console import ConsoleResultSink
        return ConsoleResultSink()

    async def run_sweep(self, config: SweepConfiguration):
        """Run the sweep phase."""
        from algorithms.sweep import BlockSizeSweep
        from common.storage_factory import create_storage_system

        logger.info("=== Block Size Sweep ===")

        storage_system = create_storage_system(config)
        sweep = BlockSizeSweep(storage_system, config, self.create_sink(config))
        return await sweep.execute()

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)
        logging.getLogger().setLevel(parsed_args.log_level)

        try:
            config = SweepConfiguration.from_args(parsed_args)
            uvloop.run(self.run_sweep(config))
            logger.info("Sweep completed successfully")
            return EXIT_SUCCESS

        except InvalidConfiguration as e:
            logger.error(f"Invalid configuration: {e}")
            return EXIT_FAILURE
        except BenchmarkError as e:
            logger.error(f"Sweep failed: {e}")
            return EXIT_FAILURE
        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return EXIT_INTERRUPTED
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            return EXIT_FAILURE


def main():
    """Main entry point."""
    cli = BlobSweepCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
