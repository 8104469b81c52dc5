import pydantic
import pytest

from src.config import Settings


REQUIRED_ENV = {
    "BRIDGE_PROCESSOR_KEY": "key",
    "BRIDGE_PROCESSOR_PASSPHRASE": "passp",
    "BRIDGE_PROCESSOR_MERCHANT_CODE": "0010000000",
    "BRIDGE_ORIGIN_API_KEY": "api-key",
    "BRIDGE_ORIGIN_SECRET": "secret",
    "BRIDGE_ORIGIN_MERCHANT_ID": "merchant",
    "BRIDGE_ORIGIN_API_URL": "https://origin.example.com/api",
}


@pytest.fixture
def env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


class TestSettings:
    """Tests for eager validation of process configuration."""

    @pytest.mark.unit
    def test_loads_required_values_and_defaults(self, env):
        settings = Settings()
        assert settings.processor_key == "key"
        assert settings.origin_api_url == "https://origin.example.com/api"
        assert settings.app_env == "development"
        assert settings.is_production is False
        assert settings.port == 3000
        assert settings.call_log_size == 1000
        assert settings.metrics_window_seconds == 300
        assert settings.processor_base_url == "https://icom.yaad.net/p/"

    @pytest.mark.unit
    @pytest.mark.parametrize("name", sorted(REQUIRED_ENV))
    def test_missing_credential_fails_startup(self, env, name):
        env.delenv(name)
        with pytest.raises(pydantic.ValidationError):
            Settings()

    @pytest.mark.unit
    def test_blank_credential_fails_startup(self, env):
        env.setenv("BRIDGE_ORIGIN_API_KEY", "   ")
        with pytest.raises(pydantic.ValidationError):
            Settings()

    @pytest.mark.unit
    def test_outbound_secret_defaults_to_shared_secret(self, env):
        assert Settings().outbound_secret == "secret"
        env.setenv("BRIDGE_ORIGIN_OUTBOUND_SECRET", "outbound")
        assert Settings().outbound_secret == "outbound"

    @pytest.mark.unit
    def test_production_mode(self, env):
        env.setenv("BRIDGE_APP_ENV", "production")
        assert Settings().is_production is True

    @pytest.mark.unit
    def test_unknown_mode_rejected(self, env):
        env.setenv("BRIDGE_APP_ENV", "staging")
        with pytest.raises(pydantic.ValidationError):
            Settings()

    @pytest.mark.unit
    def test_public_url_is_optional(self, env):
        assert Settings().public_url is None
        env.setenv("BRIDGE_PUBLIC_URL", "  ")
        assert Settings().public_url is None
        env.setenv("BRIDGE_PUBLIC_URL", "https://bridge.example.com")
        assert Settings().public_url == "https://bridge.example.com"
