from collections.abc import Sequence
import logging
from typing import Protocol

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from trxbatch.db_models import TransactionRecordRow
from trxbatch.errors import ErrorKind, RecordFailure, WriteError
from trxbatch.schemas import TransactionRecord
from trxbatch.skips import SkipTracker


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10


class TransactionSink(Protocol):
    def write_chunk(self, records: Sequence[TransactionRecord]) -> None: ...


class SqlTransactionSink:
    """Inserts one chunk per database transaction."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def write_chunk(self, records: Sequence[TransactionRecord]) -> None:
        if not records:
            return
        with self.session_factory() as db:
            try:
                db.execute(insert(TransactionRecordRow), [record.as_row() for record in records])
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise WriteError(f"failed to write chunk of {len(records)} records: {exc}") from exc


class ChunkWriter:
    def __init__(
        self,
        sink: TransactionSink,
        skip_tracker: SkipTracker,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.sink = sink
        self.skip_tracker = skip_tracker
        self.chunk_size = chunk_size
        self.buffer: list[TransactionRecord] = []
        self.write_count = 0
        self.chunk_count = 0

    def add(self, record: TransactionRecord) -> None:
        self.buffer.append(record)
        if len(self.buffer) >= self.chunk_size:
            self.flush()

    def flush(self) -> None:
        if not self.buffer:
            return
        chunk = self.buffer
        self.buffer = []
        self.chunk_count += 1

        try:
            self.sink.write_chunk(chunk)
        except WriteError as exc:
            logger.warning(
                "chunk write failed, retrying records individually",
                extra={"chunk": self.chunk_count, "size": len(chunk), "error": str(exc)},
            )
            self._scan(chunk)
            return

        self.write_count += len(chunk)
        logger.info("chunk written", extra={"chunk": self.chunk_count, "size": len(chunk)})

    def discard(self) -> int:
        dropped = len(self.buffer)
        self.buffer = []
        return dropped

    def _scan(self, chunk: list[TransactionRecord]) -> None:
        # Isolate the failing records; each retry is its own transaction.
        for record in chunk:
            try:
                self.sink.write_chunk([record])
            except WriteError as exc:
                self.skip_tracker.record(
                    RecordFailure(kind=ErrorKind.WRITE, message=str(exc), payload=repr(record))
                )
                continue
            self.write_count += 1
