import argparse
import logging

from trxbatch.config import get_settings
from trxbatch.database import build_session_factory
from trxbatch.pipeline import build_job
from trxbatch.scheduler import start_scheduler
from trxbatch.schemas import RunStatus


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load delimited transaction files into the database")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="process every input file once")

    watch_parser = subparsers.add_parser("watch", help="poll the input directory on an interval")
    watch_parser.add_argument("--run-now", action="store_true", help="also run once immediately")

    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    session_factory = build_session_factory(settings.database_url)
    if args.command == "watch":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    result = build_job(settings, session_factory).run()

    print(
        "run_id={run_id} status={status} files={files} read={read} written={written} skipped={skipped} "
        "read_skips={read_skips} process_skips={process_skips} write_skips={write_skips}".format(
            run_id=result.run_id,
            status=result.status.value,
            files=len(result.files),
            read=result.read_count,
            written=result.write_count,
            skipped=result.skip_count,
            read_skips=result.read_skip_count,
            process_skips=result.process_skip_count,
            write_skips=result.write_skip_count,
        )
    )
    if result.error:
        print(f"error={result.error}")
    if result.status == RunStatus.FATAL:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
