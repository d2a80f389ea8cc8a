from pathlib import Path

import pytest

from mint_lunchmoney.config import Settings
from mint_lunchmoney.errors import MigrationError


def test_defaults_without_environment():
    s = Settings.from_env()
    assert s.api_key is None
    assert s.base_url == "https://dev.lunchmoney.app"
    assert s.csv_path == Path("./data.csv")
    assert s.batch_size == 100
    assert s.currency == "usd"
    with pytest.raises(MigrationError, match="LUNCH_MONEY_API_KEY"):
        s.require_api_key()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LUNCH_MONEY_API_KEY", " token ")
    monkeypatch.setenv("MINT_LM_BATCH_SIZE", "25")
    monkeypatch.setenv("MINT_LM_CURRENCY", "CAD")
    s = Settings.from_env()
    assert s.require_api_key() == "token"
    assert s.batch_size == 25
    assert s.currency == "cad"


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_invalid_batch_size_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("MINT_LM_BATCH_SIZE", raw)
    assert Settings.from_env().batch_size == 100


def test_repr_hides_api_key(monkeypatch):
    monkeypatch.setenv("LUNCH_MONEY_API_KEY", "TOPSECRET123")
    s = Settings.from_env()
    assert "TOPSECRET123" not in repr(s)
    assert "batch_size=100" in repr(s)
