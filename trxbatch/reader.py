from collections.abc import Iterable, Iterator
from datetime import date, datetime, time
import logging
from pathlib import Path

from trxbatch.errors import ErrorKind, RecordFailure
from trxbatch.schemas import ParsedRecord, ReadResult


logger = logging.getLogger(__name__)

DELIMITER = "|"
FIELD_NAMES = ("account_number", "trx_amount", "description", "trx_date", "trx_time", "customer_id")
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


def parse_line(line: str, *, source_file: str, line_number: int) -> ReadResult:
    fields = [value.strip() for value in line.split(DELIMITER)]
    if len(fields) != len(FIELD_NAMES):
        return _parse_failure(
            f"expected {len(FIELD_NAMES)} fields, got {len(fields)}",
            source_file=source_file,
            line_number=line_number,
            line=line,
        )

    values = dict(zip(FIELD_NAMES, fields))
    try:
        trx_date = _parse_date(values["trx_date"])
        trx_time = _parse_time(values["trx_time"])
    except ValueError as exc:
        return _parse_failure(str(exc), source_file=source_file, line_number=line_number, line=line)

    return ReadResult(
        record=ParsedRecord(
            account_number=values["account_number"],
            trx_amount=values["trx_amount"],
            description=values["description"] or None,
            trx_date=trx_date,
            trx_time=trx_time,
            customer_id=values["customer_id"] or None,
            source_file=source_file,
            line_number=line_number,
        )
    )


def read_file(path: Path) -> Iterator[ReadResult]:
    """Yield one result per data line; the first line is always a header."""
    source_file = path.name
    logger.info("reading input file", extra={"source_file": source_file})
    with path.open("rb") as infile:
        for line_number, raw_line in enumerate(infile, start=1):
            if line_number == 1:
                continue
            try:
                line = raw_line.decode("utf-8").rstrip("\r\n")
            except UnicodeDecodeError as exc:
                yield _parse_failure(
                    f"line is not valid UTF-8: {exc.reason}",
                    source_file=source_file,
                    line_number=line_number,
                    line=raw_line.decode("utf-8", errors="replace").rstrip("\r\n"),
                )
                continue
            if not line.strip():
                continue
            yield parse_line(line, source_file=source_file, line_number=line_number)


def read_files(paths: Iterable[Path]) -> Iterator[ReadResult]:
    for path in paths:
        yield from read_file(path)


def _parse_date(value: str) -> date:
    try:
        if len(value) != 10:
            raise ValueError
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"trx_date must be YYYY-MM-DD, got {value!r}") from None


def _parse_time(value: str) -> time:
    try:
        if len(value) != 8:
            raise ValueError
        return datetime.strptime(value, TIME_FORMAT).time()
    except ValueError:
        raise ValueError(f"trx_time must be HH:MM:SS, got {value!r}") from None


def _parse_failure(message: str, *, source_file: str, line_number: int, line: str) -> ReadResult:
    return ReadResult(
        failure=RecordFailure(
            kind=ErrorKind.PARSE,
            message=message,
            source_file=source_file,
            line_number=line_number,
            payload=line,
        )
    )
