from collections.abc import Callable
from datetime import datetime
from enum import Enum
import logging
from pathlib import Path
import shutil

from trxbatch.errors import RelocationIOError
from trxbatch.schemas import RelocationResult
from trxbatch.skips import RunErrorMarker
from trxbatch.source import DirectorySource


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
ERROR_INFIX = "_ERROR_"


class RelocationState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    MOVING = "moving"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


def destination_name(path: Path, timestamp: str, *, has_errors: bool) -> str:
    infix = ERROR_INFIX if has_errors else "_"
    return f"{path.stem}{infix}{timestamp}{path.suffix}"


class FileRelocator:
    """Moves every input file to the completed or error directory after ingestion.

    The run marker is read once; when present every file goes to the error
    directory and the marker is removed once all moves succeed.
    """

    def __init__(
        self,
        source: DirectorySource,
        marker: RunErrorMarker,
        *,
        completed_dir: str | Path,
        error_dir: str | Path,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.source = source
        self.marker = marker
        self.completed_dir = Path(completed_dir)
        self.error_dir = Path(error_dir)
        self.clock = clock
        self.state = RelocationState.IDLE
        self.moved: list[tuple[Path, Path]] = []

    def relocate(self) -> RelocationResult:
        try:
            self.state = RelocationState.PREPARING
            self._ensure_directory(self.completed_dir)
            self._ensure_directory(self.error_dir)

            self.state = RelocationState.MOVING
            has_errors = self.marker.exists()
            self._move_all(has_errors)

            self.state = RelocationState.CLEANUP
            if has_errors:
                self._clear_marker()
        except RelocationIOError:
            self.state = RelocationState.FAILED
            raise

        self.state = RelocationState.DONE
        logger.info(
            "relocation finished",
            extra={"moved": len(self.moved), "routed_to_error": has_errors},
        )
        return RelocationResult(routed_to_error=has_errors, moved=list(self.moved))

    def _move_all(self, has_errors: bool) -> None:
        target_dir = self.error_dir if has_errors else self.completed_dir
        for path in self.source.list_files():
            timestamp = self.clock().strftime(TIMESTAMP_FORMAT)
            target = target_dir / destination_name(path, timestamp, has_errors=has_errors)
            if target.exists():
                raise RelocationIOError(f"destination already exists: {target}")
            try:
                shutil.move(str(path), str(target))
            except OSError as exc:
                logger.error("failed to move file", extra={"source": str(path), "target": str(target), "error": str(exc)})
                raise RelocationIOError(f"failed to move {path} to {target}: {exc}") from exc
            logger.info("moved file", extra={"source": path.name, "target": str(target), "routed_to_error": has_errors})
            self.moved.append((path, target))

    def _ensure_directory(self, path: Path) -> None:
        if path.is_dir():
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RelocationIOError(f"failed to create directory {path}: {exc}") from exc
        logger.info("created directory", extra={"path": str(path)})

    def _clear_marker(self) -> None:
        try:
            self.marker.clear()
        except OSError as exc:
            logger.warning("failed to delete error marker", extra={"marker": str(self.marker.path), "error": str(exc)})
            return
        logger.info("deleted error marker", extra={"marker": str(self.marker.path)})
