from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import Enum
from pathlib import Path

from trxbatch.errors import RecordFailure


class RunStatus(str, Enum):
    SUCCESS = "SUCCESS"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    FATAL = "FATAL"


@dataclass(frozen=True)
class ParsedRecord:
    """Fields of one delimited line, before validation."""

    account_number: str
    trx_amount: str
    description: str | None
    trx_date: date
    trx_time: time
    customer_id: str | None
    source_file: str
    line_number: int
    version: int | None = None


@dataclass(frozen=True)
class TransactionRecord:
    account_number: str
    trx_amount: Decimal
    description: str | None
    trx_date: date
    trx_time: time
    customer_id: str | None
    version: int = 0

    def as_row(self) -> dict[str, object]:
        return {
            "account_number": self.account_number,
            "trx_amount": self.trx_amount,
            "description": self.description,
            "trx_date": self.trx_date,
            "trx_time": self.trx_time,
            "customer_id": self.customer_id,
            "version": self.version,
        }


@dataclass(frozen=True)
class ReadResult:
    record: ParsedRecord | None = None
    failure: RecordFailure | None = None


@dataclass(frozen=True)
class ProcessResult:
    record: TransactionRecord | None = None
    failure: RecordFailure | None = None


@dataclass(frozen=True)
class RelocationResult:
    routed_to_error: bool
    moved: list[tuple[Path, Path]] = field(default_factory=list)


@dataclass(frozen=True)
class RunResult:
    run_id: int | None
    status: RunStatus
    files: list[str]
    read_count: int
    write_count: int
    read_skip_count: int
    process_skip_count: int
    write_skip_count: int
    relocated: list[str]
    error: str | None = None

    @property
    def skip_count(self) -> int:
        return self.read_skip_count + self.process_skip_count + self.write_skip_count
