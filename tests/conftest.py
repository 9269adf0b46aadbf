from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from trxbatch.config import Settings
from trxbatch.database import build_session_factory
from trxbatch.errors import WriteError
from trxbatch.schemas import TransactionRecord


HEADER = "accountNumber|trxAmount|description|trxDate|trxTime|customerId"
FIXED_NOW = datetime(2023, 8, 24, 12, 34, 56)
FIXED_STAMP = "20230824123456"


def write_input(directory: Path, name: str, lines: list[str], *, header: bool = True) -> Path:
    path = directory / name
    rows = ([HEADER] if header else []) + lines
    path.write_text("\n".join(rows) + ("\n" if rows else ""), encoding="utf-8")
    return path


def valid_line(index: int) -> str:
    return f"ACC{index:04d}|{index}.50|Payment {index}|2023-08-24|12:34:56|CUST{index}"


class RecordingSink:
    def __init__(self, fail_accounts: Sequence[str] = ()) -> None:
        self.calls: list[list[TransactionRecord]] = []
        self.fail_accounts = set(fail_accounts)

    def write_chunk(self, records: Sequence[TransactionRecord]) -> None:
        records = list(records)
        if any(record.account_number in self.fail_accounts for record in records):
            raise WriteError(f"rejected chunk of {len(records)}")
        self.calls.append(records)

    @property
    def written(self) -> list[TransactionRecord]:
        return [record for call in self.calls for record in call]


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data" / "input").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def input_dir(temp_workspace: Path) -> Path:
    return temp_workspace / "data" / "input"


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        input_dir=str(temp_workspace / "data" / "input"),
        completed_dir=str(temp_workspace / "data" / "completed"),
        error_dir=str(temp_workspace / "data" / "error"),
        chunk_size=10,
        skip_limit=None,
        poll_interval_seconds=60,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW
