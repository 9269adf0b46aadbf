from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
import logging
from pathlib import Path
from typing import TypeVar

from sqlalchemy.orm import Session, sessionmaker

from trxbatch.config import Settings
from trxbatch.errors import ErrorKind
from trxbatch.reader import read_files
from trxbatch.relocation import FileRelocator
from trxbatch.run_store import RunStore
from trxbatch.schemas import ParsedRecord, ProcessResult, ReadResult, RelocationResult, RunResult, RunStatus
from trxbatch.skips import RunErrorMarker, SkipTracker
from trxbatch.source import DirectorySource
from trxbatch.tracing import traced
from trxbatch.validation import validate_record
from trxbatch.writer import ChunkWriter, SqlTransactionSink


logger = logging.getLogger(__name__)
T = TypeVar("T")


@dataclass
class IngestProgress:
    files: list[Path] = field(default_factory=list)
    read_count: int = 0


class TransactionBatchJob:
    """One ingestion run followed by relocation of the run's input files.

    Instances are single-use: the writer and skip tracker hold per-run state.
    """

    def __init__(
        self,
        *,
        source: DirectorySource,
        writer: ChunkWriter,
        skip_tracker: SkipTracker,
        relocator: FileRelocator,
        run_store: RunStore | None = None,
        read: Callable[[Iterable[Path]], Iterator[ReadResult]] = read_files,
        validate: Callable[[ParsedRecord], ProcessResult] = validate_record,
    ) -> None:
        self.source = source
        self.writer = writer
        self.skip_tracker = skip_tracker
        self.relocator = relocator
        self.run_store = run_store
        self._read = traced("record_reader.read_files", read)
        self._validate = traced("validator.validate_record", validate)
        self._list_files = traced("directory_source.list_files", source.list_files)
        self._write = traced("chunk_writer.add", writer.add)
        self._flush = traced("chunk_writer.flush", writer.flush)
        self._relocate = traced("file_relocator.relocate", relocator.relocate)
        self._started = False

    def run(self) -> RunResult:
        if self._started:
            raise RuntimeError("TransactionBatchJob instances run once; build a new job per run")
        self._started = True

        input_dir = str(self.source.directory)
        run_id = self.run_store.start_run(input_dir=input_dir) if self.run_store else None
        if self.skip_tracker.marker.exists():
            logger.warning(
                "error marker already present before ingestion, files will be routed to the error directory",
                extra={"marker": str(self.skip_tracker.marker.path)},
            )

        progress = IngestProgress()
        relocation: RelocationResult | None = None
        error: str | None = None
        try:
            self._run_step(run_id, "ingest", lambda: self._ingest(progress))
            relocation = self._run_step(run_id, "relocate", self._relocate)
        except Exception as exc:
            error = str(exc)
            logger.exception("batch run failed", extra={"run_id": run_id, "input_dir": input_dir})

        result = self._build_result(run_id, progress, relocation, error)
        if self.run_store and run_id is not None:
            self.run_store.store_skipped_items(run_id, self.skip_tracker.skipped)
            self.run_store.finish_run(run_id, result)

        logger.info(
            "batch run finished",
            extra={
                "run_id": run_id,
                "status": result.status.value,
                "read_count": result.read_count,
                "write_count": result.write_count,
                "skip_count": result.skip_count,
            },
        )
        return result

    def _ingest(self, progress: IngestProgress) -> None:
        progress.files = self._list_files()
        logger.info("ingestion started", extra={"file_count": len(progress.files)})

        try:
            for read_result in self._read(progress.files):
                if read_result.failure is not None:
                    self.skip_tracker.record(read_result.failure)
                    continue
                progress.read_count += 1

                processed = self._validate(read_result.record)
                if processed.failure is not None:
                    self.skip_tracker.record(processed.failure)
                    continue
                self._write(processed.record)

            self._flush()
        except Exception:
            # The open chunk is rolled back, committed chunks stay.
            dropped = self.writer.discard()
            if dropped:
                logger.warning("discarded unwritten chunk", extra={"size": dropped})
            raise

    def _run_step(self, run_id: int | None, step_name: str, fn: Callable[[], T]) -> T:
        step_id = self.run_store.start_step(run_id, step_name) if self.run_store and run_id is not None else None
        try:
            result = fn()
        except Exception as exc:
            if step_id is not None:
                self.run_store.finish_step(step_id, error=str(exc))
            raise
        if step_id is not None:
            self.run_store.finish_step(step_id)
        return result

    def _build_result(
        self,
        run_id: int | None,
        progress: IngestProgress,
        relocation: RelocationResult | None,
        error: str | None,
    ) -> RunResult:
        counts = self.skip_tracker.counts
        if error is not None:
            status = RunStatus.FATAL
        elif self.skip_tracker.skip_count or (relocation is not None and relocation.routed_to_error and relocation.moved):
            status = RunStatus.COMPLETED_WITH_ERRORS
        else:
            status = RunStatus.SUCCESS

        return RunResult(
            run_id=run_id,
            status=status,
            files=[path.name for path in progress.files],
            read_count=progress.read_count,
            write_count=self.writer.write_count,
            read_skip_count=counts[ErrorKind.PARSE],
            process_skip_count=counts[ErrorKind.VALIDATION],
            write_skip_count=counts[ErrorKind.WRITE],
            relocated=[str(target) for _, target in self.relocator.moved],
            error=error,
        )


def build_job(
    settings: Settings,
    session_factory: sessionmaker[Session],
    *,
    clock: Callable[[], datetime] = datetime.now,
) -> TransactionBatchJob:
    source = DirectorySource(settings.input_dir)
    marker = RunErrorMarker(settings.input_dir)
    skip_tracker = SkipTracker(marker, skip_limit=settings.skip_limit)
    writer = ChunkWriter(SqlTransactionSink(session_factory), skip_tracker, chunk_size=settings.chunk_size)
    relocator = FileRelocator(
        source,
        marker,
        completed_dir=settings.completed_dir,
        error_dir=settings.error_dir,
        clock=clock,
    )
    return TransactionBatchJob(
        source=source,
        writer=writer,
        skip_tracker=skip_tracker,
        relocator=relocator,
        run_store=RunStore(session_factory),
    )
