from sqlalchemy.orm import Session, sessionmaker

from trxbatch.db_models import BatchRun, SkippedItem, StepRun, utc_now
from trxbatch.errors import RecordFailure
from trxbatch.schemas import RunResult


class RunStore:
    """Audit trail of batch runs, their steps and skipped items."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def start_run(self, *, input_dir: str) -> int:
        with self.session_factory() as db:
            run = BatchRun(input_dir=input_dir, status="STARTED", started_at=utc_now())
            db.add(run)
            db.commit()
            db.refresh(run)
            return run.id

    def start_step(self, run_id: int, step_name: str) -> int:
        with self.session_factory() as db:
            step = StepRun(run_id=run_id, step_name=step_name, status="started", started_at=utc_now())
            db.add(step)
            db.commit()
            db.refresh(step)
            return step.id

    def finish_step(self, step_id: int, *, error: str | None = None) -> None:
        with self.session_factory() as db:
            step = db.get(StepRun, step_id)
            if step is None:
                return
            finished_at = utc_now()
            step.status = "failed" if error else "succeeded"
            step.completed_at = finished_at
            step.duration_ms = (finished_at - step.started_at).total_seconds() * 1000
            step.error = error
            db.commit()

    def store_skipped_items(self, run_id: int, failures: list[RecordFailure]) -> None:
        with self.session_factory() as db:
            for failure in failures:
                db.add(
                    SkippedItem(
                        run_id=run_id,
                        kind=failure.kind.value,
                        source_file=failure.source_file,
                        line_number=failure.line_number,
                        payload=failure.payload,
                        reason=failure.message,
                    )
                )
            db.commit()

    def finish_run(self, run_id: int, result: RunResult) -> None:
        with self.session_factory() as db:
            run = db.get(BatchRun, run_id)
            if run is None:
                return
            run.status = result.status.value
            run.file_count = len(result.files)
            run.read_count = result.read_count
            run.write_count = result.write_count
            run.skip_count = result.skip_count
            run.error = result.error
            run.completed_at = utc_now()
            db.commit()
