import pytest

from logship.config import (
    InvalidEndpoint,
    InvalidToken,
    MissingBackupConfig,
    validate_config,
)


def test_valid_environment_builds_config(valid_env: dict[str, str]) -> None:
    config = validate_config(valid_env)

    assert config.token == valid_env["LogzioToken"]
    assert config.endpoint_url == "https://listener.logz.io:8071"
    assert config.backup_connection == valid_env["LogsStorageConnectionString"]
    assert config.debug is None
    assert config.debug_enabled is False


def test_token_only_needs_32_contiguous_letters_somewhere(valid_env: dict[str, str]) -> None:
    valid_env["LogzioToken"] = "1234-" + "x" * 32 + "-5678"

    assert validate_config(valid_env).token.startswith("1234-")


@pytest.mark.parametrize(
    ("field", "value", "error"),
    [
        ("LogzioToken", "tooShortToken", InvalidToken),
        ("LogzioToken", "abcdefghijklmnop1qrstuvwxyzABCDEF", InvalidToken),
        ("LogzioListener", "https://listener.example.com:8071", InvalidEndpoint),
        ("LogzioListener", "https://listener.logz.io:8071/", InvalidEndpoint),
        ("LogsStorageConnectionString", "", MissingBackupConfig),
    ],
)
def test_single_malformed_field_is_rejected(valid_env: dict[str, str], field: str, value: str, error) -> None:
    valid_env[field] = value

    with pytest.raises(error):
        validate_config(valid_env)


@pytest.mark.parametrize(
    ("missing", "error"),
    [
        ("LogzioToken", InvalidToken),
        ("LogzioListener", InvalidEndpoint),
        ("LogsStorageConnectionString", MissingBackupConfig),
    ],
)
def test_missing_field_is_rejected(valid_env: dict[str, str], missing: str, error) -> None:
    del valid_env[missing]

    with pytest.raises(error):
        validate_config(valid_env)


def test_validation_stops_at_first_failure() -> None:
    # Everything is wrong; the token is checked first.
    with pytest.raises(InvalidToken):
        validate_config({"LogzioListener": "nope", "LogsStorageConnectionString": ""})


def test_debug_value_is_kept_verbatim(valid_env: dict[str, str]) -> None:
    valid_env["Debug"] = "TRUE"
    config = validate_config(valid_env)

    assert config.debug == "TRUE"
    assert config.debug_enabled is True

    valid_env["Debug"] = "verbose"
    assert validate_config(valid_env).debug_enabled is False


def test_config_is_read_per_call(valid_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in valid_env.items():
        monkeypatch.setenv(key, value)
    first = validate_config()

    monkeypatch.setenv("LogzioListener", "https://listener-eu.logz.io:8071")
    second = validate_config()

    assert first.endpoint_url == "https://listener.logz.io:8071"
    assert second.endpoint_url == "https://listener-eu.logz.io:8071"
