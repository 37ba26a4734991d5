"""
Block-size sweep: container lifecycle, trials per block size and result assembly.
"""

import logging
from typing import Optional

from algorithms.aggregator import average
from algorithms.sweep_planner import SweepPlanner
from algorithms.trial_runner import TrialDurations, TrialRunner
from common.errors import ProvisioningFailure
from common.metrics_utils import format_bytes
from persistence.base import ResultSink, ResultTable
from persistence.record import ConfigurationResult

logger = logging.getLogger(__name__)


class BlockSizeSweep:
    """Runs a complete sweep against one storage system.

    The planner is built (and validated) before the container is created.
    Block sizes and trials run strictly one after another; the result table
    reaches the sink only when every block size has been measured.
    """

    def __init__(self, storage_system, config, sink: Optional[ResultSink] = None):
        """Initialize the sweep.

        Args:
            storage_system: Unopened storage system owning the transient container
            config: Validated SweepConfiguration
            sink: Destination of the finished result table (optional)
        """
        self.storage_system = storage_system
        self.config = config
        self.sink = sink
        self.planner = SweepPlanner.from_config(config)

    async def execute(self) -> ResultTable:
        """Create the container, measure every block size, write the table, delete the container.

        The container is deleted on every path once it exists. When the sweep
        fails, a deletion failure is only logged so the sweep's own error is
        the one reported.

        Returns:
            The complete result table

        Raises:
            ProvisioningFailure: If the container cannot be created or deleted
            TransferFailure: If any upload or download fails
            OutputFailure: If the sink cannot write the table
        """
        async with self.storage_system:
            await self.storage_system.create_container()
            try:
                table = await self.measure()
                if self.sink is not None:
                    self.sink.write(table)
            except BaseException:
                await self._release_container(raise_errors=False)
                raise
            await self._release_container(raise_errors=True)
            return table

    async def measure(self) -> ResultTable:
        """Run the trials of every block size against the provisioned container."""
        runner = TrialRunner(self.storage_system, self.config)
        table = ResultTable(include_download=not self.config.upload_only)

        total = self.planner.step_count()
        for index, step in enumerate(self.planner.steps(), start=1):
            logger.info(
                f"=== Block size {index}/{total}: {format_bytes(step.effective_block_size)} ==="
            )
            durations = await runner.run(step)
            for result in self._results_for(durations):
                table.add_result(result)

        logger.info(f"Sweep completed: {len(table)} result rows")
        return table

    def _results_for(self, durations: TrialDurations):
        """Rows for one block size: one averaged row, or one row per trial."""
        label = format_bytes(durations.step.effective_block_size)
        include_download = not self.config.upload_only

        if self.config.per_file_rows:
            for i, upload_ms in enumerate(durations.upload_ms):
                download_ms = durations.download_ms[i] if include_download else None
                yield ConfigurationResult(label, upload_ms, download_ms)
            return

        download_ms = average(durations.download_ms) if include_download else None
        yield ConfigurationResult(label, average(durations.upload_ms), download_ms)

    async def _release_container(self, raise_errors: bool) -> None:
        try:
            await self.storage_system.delete_container()
        except ProvisioningFailure as e:
            logger.error(f"Container cleanup failed: {e}")
            if raise_errors:
                raise
