"""Pre-parse screening of spreadsheet archives for decompression bombs.

An xlsx file is a ZIP archive. Before any entry is inflated, every member's
declared sizes are checked against two limits from ``Settings``:

- ``min_inflate_ratio``: compressed size divided by uncompressed size must
  not fall below this value (members smaller than
  ``guard_min_entry_size_bytes`` are exempt).
- ``max_entry_size_bytes``: no single member may declare a larger
  uncompressed size.

``zipfile`` never inflates a member past its declared size, so checking the
central directory bounds the real decompressed output as well.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.utils.exceptions import (
    ErrorCode,
    FormatError,
    SafetyGuardError,
)
from spreadsheet_diff.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ArchiveStats:
    """Totals gathered while screening an archive."""

    entry_count: int = 0
    compressed_bytes: int = 0
    uncompressed_bytes: int = 0

    @property
    def overall_ratio(self) -> float:
        if self.uncompressed_bytes <= 0:
            return 1.0
        return self.compressed_bytes / self.uncompressed_bytes


class InflateRatioGuard:
    """Rejects archives whose members inflate suspiciously.

    Stateless across calls; one instance may screen any number of inputs.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or default_settings
        self.min_inflate_ratio = cfg.min_inflate_ratio
        self.max_entry_size = cfg.max_entry_size_bytes
        self.min_entry_size = cfg.guard_min_entry_size_bytes

    def check(self, data: bytes, source: str | None = None) -> ArchiveStats:
        """Screen raw archive bytes.

        Args:
            data: The complete spreadsheet file contents.
            source: Optional file name used in errors and logs.

        Returns:
            ArchiveStats for the accepted archive.

        Raises:
            FormatError: If the bytes are not a readable ZIP archive.
            SafetyGuardError: If a member exceeds a limit.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                infos = archive.infolist()
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
            raise FormatError(
                f"Not a readable spreadsheet archive: {exc}",
                ErrorCode.INVALID_SPREADSHEET,
                source=source,
            ) from exc

        stats = ArchiveStats()
        for info in infos:
            self._check_entry(info, source)
            stats.entry_count += 1
            stats.compressed_bytes += info.compress_size
            stats.uncompressed_bytes += info.file_size

        logger.debug(
            "Archive passed inflate screening",
            source=source,
            entries=stats.entry_count,
            overall_ratio=f"{stats.overall_ratio:.6f}",
        )
        return stats

    def _check_entry(self, info: zipfile.ZipInfo, source: str | None) -> None:
        if info.file_size > self.max_entry_size:
            logger.warning(
                "Archive entry exceeds size limit",
                source=source,
                entry=info.filename,
                uncompressed_bytes=info.file_size,
                limit=self.max_entry_size,
            )
            raise SafetyGuardError(
                f"Archive entry {info.filename!r} declares {info.file_size} bytes, "
                f"above the {self.max_entry_size} byte limit",
                entry_name=info.filename,
                compressed_size=info.compress_size,
                uncompressed_size=info.file_size,
                error_code=ErrorCode.ENTRY_TOO_LARGE,
                threshold=self.max_entry_size,
            )

        if self.min_inflate_ratio <= 0.0 or info.file_size == 0:
            return
        if info.file_size < self.min_entry_size:
            return

        ratio = info.compress_size / info.file_size
        if ratio < self.min_inflate_ratio:
            logger.warning(
                "Archive entry inflate ratio below threshold",
                source=source,
                entry=info.filename,
                ratio=f"{ratio:.8f}",
                threshold=self.min_inflate_ratio,
            )
            raise SafetyGuardError(
                f"Archive entry {info.filename!r} has compression ratio "
                f"{ratio:.8f}, below the minimum {self.min_inflate_ratio}; "
                "refusing to inflate a possible zip bomb",
                entry_name=info.filename,
                compressed_size=info.compress_size,
                uncompressed_size=info.file_size,
                threshold=self.min_inflate_ratio,
            )
