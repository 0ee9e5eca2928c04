import pydantic
import pytest

from kconnect.api import conf
from kconnect.api.http import client_from_settings


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("KCONNECT_API_CONFIG", str(tmp_path / "missing.conf"))
    settings = conf.load_settings()
    assert settings == conf.ApiSettings()
    assert settings.azure_cli == "az"
    assert settings.interactive is True


def test_settings_are_validated():
    with pytest.raises(pydantic.ValidationError):
        conf.ApiSettings(http_timeout = 0)
    with pytest.raises(pydantic.ValidationError):
        conf.ApiSettings(azure_cli = "")


@pytest.mark.asyncio
async def test_client_from_settings():
    client = client_from_settings(conf.ApiSettings(http_timeout = 5))
    try:
        assert client.timeout.connect == 5
    finally:
        await client.aclose()
