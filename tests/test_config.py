"""
Settings tests — YAML file, environment overrides and validation.
"""
import os

import pytest

from tfimport.config import Settings, load_settings, validate_provider_config
from tfimport.errors import ConfigError

REDIS_TEMPLATE = (
    "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"
    "/providers/Microsoft.Cache/redis/{cacheName}"
)


def _write(tmp_path, text):
    path = tmp_path / "tfimport.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestDefaults:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = load_settings(environ={})
        assert settings.provider_name == "azurerm"
        assert settings.provider_version == "2.38.0"
        assert settings.provider_config == "features {}"
        assert settings.timeout == 60
        assert settings.recursive_timeout == 300
        assert settings.recursive_depth == 50
        assert settings.cache_dir.endswith(os.path.join(".tfimport", "terraform"))

    def test_local_file_picked_up(self, tmp_path, monkeypatch):
        _write(tmp_path, "recursive_depth: 3\n")
        monkeypatch.chdir(tmp_path)
        assert load_settings(environ={}).recursive_depth == 3


class TestFile:
    def test_provider_section(self, tmp_path):
        path = _write(tmp_path, (
            "provider:\n"
            "  version: 2.40.0\n"
            "  config: |\n"
            "    features {}\n"
            "    skip_provider_registration = true\n"
            "timeout: 90\n"
        ))
        settings = load_settings(path, environ={})
        assert settings.provider_version == "2.40.0"
        assert "skip_provider_registration" in settings.provider_config
        assert settings.timeout == 90.0

    def test_extra_resource_types(self, tmp_path):
        path = _write(tmp_path, f"resource_types:\n  azurerm_redis_cache: {REDIS_TEMPLATE}\n")
        config = load_settings(path, environ={}).import_config()
        assert "azurerm_redis_cache" in config.supported_types
        assert "azurerm_storage_account" in config.supported_types

    def test_extra_ignore_rules_appended(self, tmp_path):
        path = _write(tmp_path, (
            "ignore_rules:\n"
            "  azurerm_storage_container:\n"
            "    - /subscriptions/{s}/resourceGroups/{g}/providers/Microsoft.Storage/storageAccounts/{a}/x\n"
        ))
        config = load_settings(path, environ={}).import_config()
        assert len(config.ignore_templates["azurerm_storage_container"]) == 2

    def test_invalid_template(self, tmp_path):
        path = _write(tmp_path, "resource_types:\n  azurerm_redis_cache: subscriptions/{id}\n")
        with pytest.raises(ConfigError, match="azurerm_redis_cache"):
            load_settings(path, environ={})

    def test_vm_types_cannot_be_remapped(self, tmp_path):
        path = _write(tmp_path, f"resource_types:\n  azurerm_linux_virtual_machine: {REDIS_TEMPLATE}\n")
        with pytest.raises(ConfigError, match="VM probe"):
            load_settings(path, environ={})

    def test_invalid_provider_hcl(self, tmp_path):
        path = _write(tmp_path, 'provider:\n  config: "features {"\n')
        with pytest.raises(ConfigError, match="Invalid provider config"):
            load_settings(path, environ={})

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "provider: [unclosed\n")
        with pytest.raises(ConfigError):
            load_settings(path, environ={})

    def test_not_a_mapping(self, tmp_path):
        path = _write(tmp_path, "- one\n- two\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path, environ={})

    def test_bad_number(self, tmp_path):
        path = _write(tmp_path, "timeout: soon\n")
        with pytest.raises(ConfigError):
            load_settings(path, environ={})


class TestEnvironment:
    def test_overrides_file(self, tmp_path):
        path = _write(tmp_path, "cache_dir: /from/file\n")
        settings = load_settings(path, environ={
            "TFIMPORT_CACHE_DIR": "/from/env",
            "TFIMPORT_TERRAFORM_BIN": "/usr/local/bin/terraform",
            "AZURE_ACCESS_TOKEN": "abc",
        })
        assert settings.cache_dir == "/from/env"
        assert settings.terraform_bin == "/usr/local/bin/terraform"
        assert settings.access_token == "abc"

    def test_empty_values_ignored(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_settings(environ={"TFIMPORT_CACHE_DIR": ""}).cache_dir == Settings().cache_dir


class TestProviderConfig:
    def test_valid(self):
        validate_provider_config('features {}\nsubscription_id = "00000000"')

    def test_invalid(self):
        with pytest.raises(ConfigError):
            validate_provider_config("features {")
