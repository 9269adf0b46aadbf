from dataclasses import dataclass
import os

from dotenv import load_dotenv

from trxbatch.errors import ConfigError


load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    input_dir: str
    completed_dir: str
    error_dir: str
    chunk_size: int
    skip_limit: int | None
    poll_interval_seconds: int


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"{name} must be set")
    return value


def _int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _optional_int(name: str) -> int | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return _int(name, value)


def get_settings() -> Settings:
    chunk_size = _int("CHUNK_SIZE", os.getenv("CHUNK_SIZE", "10"))
    if chunk_size < 1:
        raise ConfigError("CHUNK_SIZE must be at least 1")

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./transactions.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        # transaction.input.dir / transaction.completed.dir / transaction.error.dir
        input_dir=_required("TRANSACTION_INPUT_DIR"),
        completed_dir=_required("TRANSACTION_COMPLETED_DIR"),
        error_dir=_required("TRANSACTION_ERROR_DIR"),
        chunk_size=chunk_size,
        skip_limit=_optional_int("SKIP_LIMIT"),
        poll_interval_seconds=_int("POLL_INTERVAL_SECONDS", os.getenv("POLL_INTERVAL_SECONDS", "60")),
    )
