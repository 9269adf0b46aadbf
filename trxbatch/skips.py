from collections import Counter
import logging
from pathlib import Path

from trxbatch.errors import ErrorKind, RecordFailure, SkipLimitExceededError


logger = logging.getLogger(__name__)

MARKER_FILENAME = "processing_error.flag"


class RunErrorMarker:
    """Sentinel file whose existence means a record was skipped in this run."""

    def __init__(self, input_dir: str | Path) -> None:
        self.path = Path(input_dir) / MARKER_FILENAME

    def exists(self) -> bool:
        return self.path.exists()

    def create(self) -> None:
        self.path.touch(exist_ok=True)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SkipTracker:
    def __init__(self, marker: RunErrorMarker, *, skip_limit: int | None = None) -> None:
        self.marker = marker
        self.skip_limit = skip_limit
        self.counts: Counter[ErrorKind] = Counter()
        self.skipped: list[RecordFailure] = []

    @property
    def skip_count(self) -> int:
        return sum(self.counts.values())

    def record(self, failure: RecordFailure) -> None:
        self.counts[failure.kind] += 1
        self.skipped.append(failure)
        logger.error(
            "record skipped",
            extra={
                "kind": failure.kind.value,
                "source_file": failure.source_file,
                "line_number": failure.line_number,
                "reason": failure.message,
            },
        )

        self._mark_run_failed()

        if self.skip_limit is not None and self.skip_count > self.skip_limit:
            raise SkipLimitExceededError(self.skip_count, self.skip_limit)

    def _mark_run_failed(self) -> None:
        if self.marker.exists():
            return
        try:
            self.marker.create()
        except OSError as exc:
            # Routing falls back to "completed" if the marker cannot be written.
            logger.error("failed to create error marker", extra={"marker": str(self.marker.path), "error": str(exc)})
            return
        logger.info("created error marker", extra={"marker": str(self.marker.path)})
