import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from trxbatch.config import Settings
from trxbatch.pipeline import build_job
from trxbatch.schemas import RunResult, RunStatus
from trxbatch.source import DirectorySource


logger = logging.getLogger(__name__)


def poll_input_directory(settings: Settings, session_factory: sessionmaker[Session]) -> RunResult | None:
    if not DirectorySource(settings.input_dir).list_files():
        logger.debug("no input files to process", extra={"input_dir": settings.input_dir})
        return None

    result = build_job(settings, session_factory).run()
    if result.status == RunStatus.FATAL:
        logger.error(
            "scheduled batch run failed",
            extra={"run_id": result.run_id, "status": result.status.value, "error": result.error},
        )
        return result
    logger.info(
        "scheduled batch run completed",
        extra={"run_id": result.run_id, "status": result.status.value, "skip_count": result.skip_count},
    )
    return result


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    # max_instances=1 keeps two runs from sharing the input directory and marker.
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        poll_input_directory,
        "interval",
        args=[settings, session_factory],
        seconds=settings.poll_interval_seconds,
        id="poll_input_directory",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    logger.info(
        "watching input directory",
        extra={"input_dir": settings.input_dir, "poll_interval_seconds": settings.poll_interval_seconds},
    )

    if run_now:
        poll_input_directory(settings, session_factory)

    scheduler.start()
