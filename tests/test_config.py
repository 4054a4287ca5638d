import pytest

from survey_app.utils import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "LOCATION_SETTINGS_REQUEST_CODE",
        "LOCATION_SETTINGS_TIMEOUT_S",
        "LOCATION_PRIORITY",
        "LOCATION_INTERVAL_MS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_default_request_code_is_stable_16_bit():
    code = config.settings_request_code()
    assert code == config.settings_request_code()
    assert 0 <= code <= 0xFFFF


def test_request_code_override(monkeypatch):
    monkeypatch.setenv("LOCATION_SETTINGS_REQUEST_CODE", "0x1F001")
    assert config.settings_request_code() == 0xF001


def test_invalid_request_code_falls_back(monkeypatch):
    monkeypatch.setenv("LOCATION_SETTINGS_REQUEST_CODE", "abc")
    assert config.settings_request_code() == config._default_request_code()


@pytest.mark.parametrize("raw, expected", [("", None), ("0", None), ("-3", None), ("nope", None), ("45", 45.0)])
def test_resolution_timeout(monkeypatch, raw, expected):
    monkeypatch.setenv("LOCATION_SETTINGS_TIMEOUT_S", raw)
    assert config.resolution_timeout_s() == expected


def test_location_priority(monkeypatch):
    assert config.location_priority() == 100
    monkeypatch.setenv("LOCATION_PRIORITY", "Low_Power")
    assert config.location_priority() == 104
    monkeypatch.setenv("LOCATION_PRIORITY", "fastest")
    assert config.location_priority() == 100


def test_location_interval(monkeypatch):
    assert config.location_interval_ms() == config.DEFAULT_INTERVAL_MS
    monkeypatch.setenv("LOCATION_INTERVAL_MS", "2500")
    assert config.location_interval_ms() == 2500
    monkeypatch.setenv("LOCATION_INTERVAL_MS", "-1")
    assert config.location_interval_ms() == config.DEFAULT_INTERVAL_MS
