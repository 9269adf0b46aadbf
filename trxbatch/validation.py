from decimal import Decimal, InvalidOperation

from trxbatch.errors import ErrorKind, RecordFailure
from trxbatch.schemas import ParsedRecord, ProcessResult, TransactionRecord


DEFAULT_VERSION = 0


def validate_record(parsed: ParsedRecord) -> ProcessResult:
    if not parsed.account_number:
        return _invalid(parsed, "account_number is required")

    if not parsed.trx_amount:
        return _invalid(parsed, "trx_amount is required")

    # Decimal() also accepts digit-group underscores such as "1_000".
    if "_" in parsed.trx_amount:
        return _invalid(parsed, f"trx_amount is not a number: {parsed.trx_amount!r}")
    try:
        amount = Decimal(parsed.trx_amount)
    except InvalidOperation:
        return _invalid(parsed, f"trx_amount is not a number: {parsed.trx_amount!r}")
    if not amount.is_finite():
        return _invalid(parsed, f"trx_amount must be finite, got {parsed.trx_amount!r}")

    return ProcessResult(
        record=TransactionRecord(
            account_number=parsed.account_number,
            trx_amount=amount,
            description=parsed.description,
            trx_date=parsed.trx_date,
            trx_time=parsed.trx_time,
            customer_id=parsed.customer_id,
            version=DEFAULT_VERSION if parsed.version is None else parsed.version,
        )
    )


def _invalid(parsed: ParsedRecord, reason: str) -> ProcessResult:
    return ProcessResult(
        failure=RecordFailure(
            kind=ErrorKind.VALIDATION,
            message=reason,
            source_file=parsed.source_file,
            line_number=parsed.line_number,
            payload=repr(parsed),
        )
    )
