import os
from pathlib import Path
import subprocess
import sys

from conftest import write_input


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env["TRANSACTION_INPUT_DIR"] = str(tmp_path / "data" / "input")
    env["TRANSACTION_COMPLETED_DIR"] = str(tmp_path / "data" / "completed")
    env["TRANSACTION_ERROR_DIR"] = str(tmp_path / "data" / "error")
    env.pop("SKIP_LIMIT", None)
    return env


def _run_cli(env: dict[str, str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "trxbatch.main", "run"],
        cwd=Path(__file__).resolve().parents[1],
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )


def test_cli_returns_zero_on_success(tmp_path: Path) -> None:
    input_dir = tmp_path / "data" / "input"
    input_dir.mkdir(parents=True, exist_ok=True)
    write_input(input_dir, "trx.txt", ["123456|123.45|Desc|2023-08-24|12:34:56|789"])

    proc = _run_cli(_base_env(tmp_path))

    assert proc.returncode == 0
    assert "status=SUCCESS" in proc.stdout
    assert "written=1" in proc.stdout
    assert len(list((tmp_path / "data" / "completed").glob("trx_*.txt"))) == 1


def test_cli_returns_zero_when_records_are_skipped(tmp_path: Path) -> None:
    input_dir = tmp_path / "data" / "input"
    input_dir.mkdir(parents=True, exist_ok=True)
    write_input(input_dir, "bad.txt", ["IncorrectFormatData"])

    proc = _run_cli(_base_env(tmp_path))

    assert proc.returncode == 0
    assert "status=COMPLETED_WITH_ERRORS" in proc.stdout
    assert len(list((tmp_path / "data" / "error").glob("bad_ERROR_*.txt"))) == 1


def test_cli_returns_nonzero_on_fatal_run(tmp_path: Path) -> None:
    input_dir = tmp_path / "data" / "input"
    input_dir.mkdir(parents=True, exist_ok=True)
    write_input(input_dir, "bad.txt", ["IncorrectFormatData", "AlsoBad"])
    env = _base_env(tmp_path)
    env["SKIP_LIMIT"] = "1"

    proc = _run_cli(env)

    assert proc.returncode == 1
    assert "status=FATAL" in proc.stdout
    assert (input_dir / "bad.txt").exists()
