from decimal import Decimal

from invoice_engine.core import config as config_mod


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("ALLOWED_TAX_RATES", "0, 7,19,")
    monkeypatch.setenv("TIMEZONE", "Europe/Vienna")
    monkeypatch.setenv("DEFAULT_REMINDER_DAYS_AFTER_DUE", "0")
    settings = config_mod.Settings()
    assert settings.ALLOWED_TAX_RATES == (Decimal("0"), Decimal("7"), Decimal("19"))
    assert settings.TIMEZONE == "Europe/Vienna"
    assert settings.DEFAULT_REMINDER_DAYS_AFTER_DUE == 0


def test_settings_load_dotenv_once_per_instance(monkeypatch):
    calls = []
    monkeypatch.setattr(config_mod, "load_dotenv", lambda: calls.append(1))
    config_mod.Settings()
    assert calls == [1]
