"""
Settings, loaded from an optional ``tfimport.yaml`` and the environment.

Example file::

    provider:
      version: "2.38.0"
      config: |
        features {}
    cache_dir: ~/.tfimport/terraform
    resource_types:
      azurerm_redis_cache: /subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}/providers/Microsoft.Cache/redis/{cacheName}
    ignore_rules:
      azurerm_key_vault:
        - /subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}/providers/Microsoft.KeyVault/vaults/{vaultName}/secrets
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import hcl2
import yaml

from tfimport.deadline import DEFAULT_TIMEOUT_SECONDS, RECURSIVE_TIMEOUT_SECONDS
from tfimport.errors import ConfigError
from tfimport.mappings import ImportConfig, build_import_config

CONFIG_FILE = "tfimport.yaml"
RECURSIVE_DEPTH = 50


def _default_cache_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".tfimport", "terraform")


@dataclass
class Settings:
    provider_name: str = "azurerm"
    provider_version: str = "2.38.0"
    provider_config: str = "features {}"
    cache_dir: str = field(default_factory=_default_cache_dir)
    terraform_bin: str = "terraform"
    arm_endpoint: str = "https://management.azure.com"
    access_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    recursive_timeout: float = RECURSIVE_TIMEOUT_SECONDS
    recursive_depth: int = RECURSIVE_DEPTH
    resource_types: Dict[str, str] = field(default_factory=dict)
    ignore_rules: Dict[str, List[str]] = field(default_factory=dict)
    verbose: bool = False

    def import_config(self) -> ImportConfig:
        return build_import_config(self.resource_types, self.ignore_rules)


def validate_provider_config(text: str) -> None:
    """Raise ConfigError unless ``text`` is a valid HCL provider body."""
    try:
        hcl2.loads(text + "\n")
    except Exception as exc:
        raise ConfigError(f"Invalid provider config HCL: {exc}") from exc


def _apply_file(settings: Settings, data: Dict[str, Any], path: str) -> None:
    provider = data.get("provider") or {}
    if not isinstance(provider, dict):
        raise ConfigError(f"{path}: 'provider' must be a mapping")
    settings.provider_name = str(provider.get("name", settings.provider_name))
    settings.provider_version = str(provider.get("version", settings.provider_version))
    settings.provider_config = str(provider.get("config", settings.provider_config))

    for key in ("cache_dir", "terraform_bin", "arm_endpoint"):
        if key in data:
            setattr(settings, key, str(data[key]))
    for key in ("timeout", "recursive_timeout"):
        if key in data:
            setattr(settings, key, float(data[key]))
    if "recursive_depth" in data:
        settings.recursive_depth = int(data["recursive_depth"])

    types = data.get("resource_types") or {}
    rules = data.get("ignore_rules") or {}
    if not isinstance(types, dict) or not isinstance(rules, dict):
        raise ConfigError(f"{path}: 'resource_types' and 'ignore_rules' must be mappings")
    settings.resource_types = {str(k): str(v) for k, v in types.items()}
    settings.ignore_rules = {str(k): [str(p) for p in (v or [])] for k, v in rules.items()}


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from ``path`` (or ./tfimport.yaml when present) and the
    environment. Environment variables win over the file.
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    if path is None and os.path.exists(CONFIG_FILE):
        path = CONFIG_FILE
    if path is not None:
        try:
            with open(path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        try:
            _apply_file(settings, data, path)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{path}: {exc}") from exc

    if env.get("TFIMPORT_CACHE_DIR"):
        settings.cache_dir = env["TFIMPORT_CACHE_DIR"]
    if env.get("TFIMPORT_TERRAFORM_BIN"):
        settings.terraform_bin = env["TFIMPORT_TERRAFORM_BIN"]
    if env.get("AZURE_ACCESS_TOKEN"):
        settings.access_token = env["AZURE_ACCESS_TOKEN"]

    validate_provider_config(settings.provider_config)
    # Fail on bad templates at load time rather than mid-crawl
    settings.import_config()
    return settings
