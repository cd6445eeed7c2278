"""Tests for credential tier resolution."""

import logging

import pytest

from curseforge_mcp.api.cfwidget import CfWidgetClient
from curseforge_mcp.api.core import CoreApiClient
from curseforge_mcp.api.upload import UploadApiClient
from curseforge_mcp.capabilities import CapabilityGroup, resolve_capabilities
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import ConfigurationError


def make_settings(tmp_path, **overrides):
    values = {
        "curseforge_api_key": "",
        "curseforge_author_token": "",
        "data_dir": tmp_path,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_no_credentials_enables_public_only(tmp_path, caplog):
    settings = make_settings(tmp_path)

    with caplog.at_level(logging.INFO, logger="curseforge_mcp.capabilities"):
        table = resolve_capabilities(settings, has_session=False)

    assert table.enabled_groups() == [CapabilityGroup.PUBLIC]
    assert isinstance(table.client(CapabilityGroup.PUBLIC), CfWidgetClient)
    assert table.client(CapabilityGroup.CATALOG) is None
    assert "CURSEFORGE_API_KEY" in table.reasons()[CapabilityGroup.CATALOG]
    assert "CURSEFORGE_API_KEY not set" in caplog.text


def test_api_key_enables_catalog(tmp_path):
    settings = make_settings(tmp_path, curseforge_api_key="key")

    table = resolve_capabilities(settings, has_session=False)

    assert table.enabled_groups() == [CapabilityGroup.PUBLIC, CapabilityGroup.CATALOG]
    assert isinstance(table.client(CapabilityGroup.CATALOG), CoreApiClient)


def test_all_credentials_enable_everything(tmp_path):
    settings = make_settings(tmp_path, curseforge_api_key="key", curseforge_author_token="token")
    web_client = object()

    table = resolve_capabilities(settings, has_session=True, web_client=web_client)

    assert table.enabled_groups() == list(CapabilityGroup)
    assert isinstance(table.client(CapabilityGroup.UPLOAD), UploadApiClient)
    assert table.client(CapabilityGroup.WEB) is web_client
    assert table.reasons() == {}


def test_whitespace_secret_counts_as_missing(tmp_path):
    settings = make_settings(tmp_path, curseforge_api_key="   ")

    table = resolve_capabilities(settings, has_session=False)

    assert not table.is_enabled(CapabilityGroup.CATALOG)


def test_failing_factory_disables_only_its_group(tmp_path, caplog):
    settings = make_settings(tmp_path, curseforge_api_key="key", curseforge_author_token="token")

    def broken(settings):
        raise RuntimeError("bad key format")

    with caplog.at_level(logging.WARNING, logger="curseforge_mcp.capabilities"):
        table = resolve_capabilities(
            settings,
            has_session=False,
            factories={CapabilityGroup.CATALOG: broken},
        )

    assert not table.is_enabled(CapabilityGroup.CATALOG)
    assert table.is_enabled(CapabilityGroup.UPLOAD)
    assert "bad key format" in table.reasons()[CapabilityGroup.CATALOG]
    assert "bad key format" in caplog.text


def test_table_is_read_only(tmp_path):
    table = resolve_capabilities(make_settings(tmp_path), has_session=False)

    with pytest.raises(TypeError):
        table._by_group[CapabilityGroup.WEB] = None
    with pytest.raises(AttributeError):
        table[CapabilityGroup.PUBLIC].enabled = False


def test_clients_refuse_missing_secrets(tmp_path):
    settings = make_settings(tmp_path)

    with pytest.raises(ConfigurationError):
        CoreApiClient(settings)
    with pytest.raises(ConfigurationError):
        UploadApiClient(settings)
