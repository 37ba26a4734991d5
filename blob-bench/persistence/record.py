"""
Result row data structure for the blob sweep.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ConfigurationResult:
    """One row of the result table.

    Attributes:
        block_size_label: Human-readable effective block size, e.g. '2MiB'
        upload_duration_ms: Upload duration (averaged or per trial)
        download_duration_ms: Download duration, None when downloads are skipped
    """

    block_size_label: str
    upload_duration_ms: int
    download_duration_ms: Optional[int] = None

    def to_row(self, include_download: bool = True) -> List[str]:
        row = [self.block_size_label, str(self.upload_duration_ms)]
        if include_download:
            row.append("" if self.download_duration_ms is None else str(self.download_duration_ms))
        return row
