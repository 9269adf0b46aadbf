from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    PARSE = "parse"
    VALIDATION = "validation"
    WRITE = "write"


@dataclass(frozen=True)
class RecordFailure:
    """A record-level failure that is skipped instead of aborting the run."""

    kind: ErrorKind
    message: str
    source_file: str | None = None
    line_number: int | None = None
    payload: str | None = None


class BatchError(Exception):
    pass


class ConfigError(BatchError, ValueError):
    pass


class WriteError(BatchError):
    """Raised by a sink when a chunk could not be persisted."""


class SkipLimitExceededError(BatchError):
    def __init__(self, skip_count: int, skip_limit: int) -> None:
        super().__init__(f"skip limit exceeded: {skip_count} skips, limit {skip_limit}")
        self.skip_count = skip_count
        self.skip_limit = skip_limit


class RelocationIOError(BatchError):
    pass
