import pytest

from trxbatch.config import get_settings
from trxbatch.errors import ConfigError


@pytest.fixture()
def directory_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TRANSACTION_INPUT_DIR", str(tmp_path / "input"))
    monkeypatch.setenv("TRANSACTION_COMPLETED_DIR", str(tmp_path / "completed"))
    monkeypatch.setenv("TRANSACTION_ERROR_DIR", str(tmp_path / "error"))
    monkeypatch.delenv("CHUNK_SIZE", raising=False)
    monkeypatch.delenv("SKIP_LIMIT", raising=False)
    return tmp_path


def test_defaults(directory_env) -> None:
    settings = get_settings()

    assert settings.input_dir == str(directory_env / "input")
    assert settings.chunk_size == 10
    assert settings.skip_limit is None


def test_skip_limit_from_env(directory_env, monkeypatch) -> None:
    monkeypatch.setenv("SKIP_LIMIT", "5")

    assert get_settings().skip_limit == 5


@pytest.mark.parametrize("name", ["TRANSACTION_INPUT_DIR", "TRANSACTION_COMPLETED_DIR", "TRANSACTION_ERROR_DIR"])
def test_directories_are_required(directory_env, monkeypatch, name) -> None:
    monkeypatch.delenv(name)

    with pytest.raises(ConfigError, match=name):
        get_settings()


def test_chunk_size_must_be_positive(directory_env, monkeypatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "0")

    with pytest.raises(ConfigError):
        get_settings()


@pytest.mark.parametrize("name", ["CHUNK_SIZE", "SKIP_LIMIT", "POLL_INTERVAL_SECONDS"])
def test_non_integer_values_are_config_errors(directory_env, monkeypatch, name) -> None:
    monkeypatch.setenv(name, "ten")

    with pytest.raises(ConfigError, match=name):
        get_settings()
