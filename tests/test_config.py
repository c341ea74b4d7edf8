import pytest
from pydantic import ValidationError

from tradesim.core.config import Settings, ThresholdPreset, VaultSettings
from tradesim.core.exceptions import InsufficientDataError, InvalidWeightsError, TradingSystemError
from tradesim.core.logging_config import censor_sensitive_data


def test_defaults(settings):
    assert settings.initial_capital == 10_000
    assert settings.risk_per_trade == 0.01
    assert settings.max_notional_fraction == 0.30
    assert settings.time_exit_bars == 6
    assert settings.slippage_bps == 0
    assert settings.regime_thresholds is ThresholdPreset.TUNED


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RISK_PER_TRADE", "0.02")
    monkeypatch.setenv("REGIME_THRESHOLDS", "legacy")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.risk_per_trade == 0.02
    assert settings.regime_thresholds is ThresholdPreset.LEGACY
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("field, value", [
    ("risk_per_trade", 0.0),
    ("risk_per_trade", 0.06),
    ("max_notional_fraction", 1.5),
    ("time_exit_bars", 0),
    ("slippage_bps", -1),
    ("log_level", "LOUD"),
    ("regime_thresholds", "aggressive"),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_trading_config_warnings():
    settings = Settings(_env_file=None, risk_per_trade=0.03, slippage_bps=150)
    warnings = settings.validate_trading_config()
    assert len(warnings) == 2


def _vault(**overrides):
    values = dict(
        rpc_url_arbitrum="https://arb.example.test",
        wallet_private_key="f" * 64,
        dhh_vault_id="v",
        dhh_manager_id="m",
        bull2x_token="0x1",
        bull3x_token="0x2",
        bear1x_token="0x3",
        usdc_token="0x4",
    )
    values.update(overrides)
    return VaultSettings(_env_file=None, **values)


def test_vault_settings_valid():
    vault = _vault()
    assert vault.token_addresses()["usdc"] == "0x4"
    assert "f" * 64 not in repr(vault)


def test_vault_rejects_short_key():
    with pytest.raises(ValidationError):
        _vault(wallet_private_key="abc")


def test_vault_rejects_non_http_rpc():
    with pytest.raises(ValidationError):
        _vault(rpc_url_arbitrum="ws://arb.example.test")


def test_sensitive_keys_redacted():
    event = censor_sensitive_data(None, "info", {"event": "x", "wallet_private_key": "abc", "size": 1})
    assert event["wallet_private_key"] == "***REDACTED***"
    assert event["size"] == 1


def test_contract_address_not_redacted():
    event = censor_sensitive_data(None, "info", {"event": "Planned adjustment", "contract": "0xusdc"})
    assert event["contract"] == "0xusdc"


def test_exception_details_in_message():
    err = InsufficientDataError("too short", available=1, required=2)
    assert isinstance(err, TradingSystemError)
    assert "available" in str(err)

    weights_err = InvalidWeightsError("NORMAL", 1.1)
    assert weights_err.details["regime"] == "NORMAL"
