"""Unit tests for settings validation and CLI parsing."""

import pytest

from gold_oracle.main import build_parser, settings_from_args
from gold_oracle.src.config import OracleSettings
from gold_oracle.src.errors import ConfigurationError

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
PRIVATE_KEY = "0x" + "11" * 32

ENV_VARS = [
    "GOLD_API_KEY",
    "GOLD_API_URL",
    "GOLD_SYMBOL",
    "GOLD_CURRENCY",
    "RPC_URL",
    "PRIVATE_KEY",
    "CONTRACT_ADDRESS",
    "HOST",
    "PORT",
    "API_KEY",
    "UPDATE_INTERVAL_MINUTES",
    "MAX_RETRIES",
    "RETRY_DELAY_SECONDS",
    "FETCH_TIMEOUT",
    "CONFIRMATION_TIMEOUT",
    "INITIAL_DELAY",
]


def make_settings(**overrides) -> OracleSettings:
    values = {
        "gold_api_key": "goldapi-token",
        "rpc_url": "http://localhost:8545",
        "private_key": PRIVATE_KEY,
        "contract_address": CONTRACT,
    }
    values.update(overrides)
    return OracleSettings(**values)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove oracle variables from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestOracleSettingsDefaults:
    """Test default settings."""

    def test_defaults(self) -> None:
        settings = OracleSettings()
        assert settings.port == 3000
        assert settings.update_interval_minutes == 15
        assert settings.update_interval_seconds == 900
        assert settings.max_retries == 3
        assert settings.retry_delay == 5.0
        assert settings.confirmation_timeout == 120.0
        assert settings.initial_delay == 10.0
        assert settings.gold_api_url == "https://www.goldapi.io/api"
        assert settings.api_key is None


class TestOracleSettingsValidate:
    """Test startup validation."""

    def test_valid(self) -> None:
        make_settings().validate()

    def test_all_missing_listed(self) -> None:
        """Every missing variable is named in one error."""
        with pytest.raises(ConfigurationError) as exc_info:
            OracleSettings().validate()
        message = str(exc_info.value)
        assert "Missing required environment variables" in message
        for name in ("GOLD_API_KEY", "RPC_URL", "PRIVATE_KEY", "CONTRACT_ADDRESS"):
            assert name in message

    def test_one_missing(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(private_key="").validate()
        message = str(exc_info.value)
        assert "PRIVATE_KEY" in message
        assert "GOLD_API_KEY" not in message

    def test_api_key_optional(self) -> None:
        """API_KEY only gates the manual update route."""
        make_settings(api_key=None).validate()

    @pytest.mark.parametrize(
        "overrides, match",
        [
            ({"contract_address": "0x1234"}, "CONTRACT_ADDRESS is not a valid address"),
            ({"port": 0}, "PORT must be between 1 and 65535"),
            ({"port": 70000}, "PORT must be between 1 and 65535"),
            ({"update_interval_minutes": 0}, "at least 1 minute"),
            ({"max_retries": -1}, "Max retries"),
            ({"retry_delay": -0.5}, "Retry delay"),
            ({"initial_delay": -1}, "Initial delay"),
            ({"fetch_timeout": 0}, "Fetch timeout"),
            ({"confirmation_timeout": 0}, "Confirmation timeout"),
        ],
    )
    def test_out_of_range(self, overrides, match) -> None:
        with pytest.raises(ConfigurationError, match=match):
            make_settings(**overrides).validate()


class TestOracleSettingsSummary:
    """Test the startup banner."""

    def test_secrets_redacted(self) -> None:
        """Neither keys nor tokens are printed."""
        settings = make_settings(api_key="top-secret")
        rendered = " ".join(f"{label} {value}" for label, value in settings.summary())
        assert PRIVATE_KEY not in rendered
        assert "goldapi-token" not in rendered
        assert "top-secret" not in rendered
        assert CONTRACT in rendered

    def test_manual_update_state(self) -> None:
        assert dict(make_settings(api_key="k").summary())["Manual Update"] == "enabled"
        assert (
            dict(make_settings().summary())["Manual Update"]
            == "disabled (API_KEY not set)"
        )


class TestSettingsFromArgs:
    """Test CLI and environment parsing."""

    def test_environment_defaults(self, clean_env) -> None:
        clean_env.setenv("GOLD_API_KEY", "goldapi-token")
        clean_env.setenv("RPC_URL", "http://localhost:8545")
        clean_env.setenv("PRIVATE_KEY", PRIVATE_KEY)
        clean_env.setenv("CONTRACT_ADDRESS", CONTRACT)
        clean_env.setenv("UPDATE_INTERVAL_MINUTES", "5")
        clean_env.setenv("API_KEY", "manual-key")

        settings = settings_from_args(build_parser().parse_args([]))

        assert settings.gold_api_key == "goldapi-token"
        assert settings.private_key == PRIVATE_KEY
        assert settings.contract_address == CONTRACT
        assert settings.update_interval_minutes == 5
        assert settings.api_key == "manual-key"
        assert settings.port == 3000
        settings.validate()

    def test_args_override_environment(self, clean_env) -> None:
        clean_env.setenv("PORT", "8080")
        args = build_parser().parse_args(["--port", "9090", "--max-retries", "0"])
        settings = settings_from_args(args)
        assert settings.port == 9090
        assert settings.max_retries == 0

    def test_empty_api_key_disables_route(self, clean_env) -> None:
        clean_env.setenv("API_KEY", "")
        settings = settings_from_args(build_parser().parse_args([]))
        assert settings.api_key is None

    def test_modes(self, clean_env) -> None:
        parser = build_parser()
        assert parser.parse_args(["--once"]).once
        args = parser.parse_args(["--transfer-ownership", CONTRACT])
        assert args.new_owner == CONTRACT
        assert not args.once

    def test_modes_are_exclusive(self, clean_env) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--once", "--transfer-ownership", CONTRACT])
