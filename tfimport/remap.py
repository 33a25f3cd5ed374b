"""
Import ID computation.

The azurerm provider usually wants the ARM ID with the casing of its own
documentation, which rebuilding through the template gives us. A few types
are imported by a different identifier entirely; those have an entry in
``ID_OVERRIDES``.
"""
from typing import Callable, Dict, Mapping, Optional

from tfimport.endpoints import EndpointTemplate, template
from tfimport.errors import RemapError, TemplateBuildError
from tfimport.mappings import ImportConfig

ImportIdFunc = Callable[[EndpointTemplate, Mapping[str, str]], str]

_CONTAINER_PATH = template("/{containerName}")


def rebuild_import_id(endpoint: EndpointTemplate, values: Mapping[str, str]) -> str:
    try:
        return endpoint.build(values)
    except TemplateBuildError as exc:
        raise RemapError(str(exc)) from exc


def storage_container_import_id(endpoint: EndpointTemplate, values: Mapping[str, str]) -> str:
    path = rebuild_import_id(_CONTAINER_PATH, values)
    account_name = values.get("accountName")
    if not account_name:
        raise RemapError("accountName not found in match values")
    return f"https://{account_name}.blob.core.windows.net{path}"


ID_OVERRIDES: Dict[str, ImportIdFunc] = {
    "azurerm_storage_container": storage_container_import_id,
}


class IdentifierRemapper:
    def __init__(self, config: ImportConfig, overrides: Optional[Mapping[str, ImportIdFunc]] = None) -> None:
        self.config = config
        self.overrides = dict(ID_OVERRIDES if overrides is None else overrides)

    def strategy_for(self, resource_type: str) -> ImportIdFunc:
        return self.overrides.get(resource_type, rebuild_import_id)

    def remap_import_id(self, resource_type: str, endpoint: EndpointTemplate, values: Mapping[str, str]) -> str:
        return self.strategy_for(resource_type)(endpoint, values)

    def import_id_for(self, resource_type: str, resource_id: str) -> str:
        endpoint = self.config.template_for(resource_type)
        if endpoint is None:
            raise RemapError(f"Endpoint not found for resource type {resource_type!r}")
        result = endpoint.match(resource_id)
        if not result.is_match:
            raise RemapError(f"{resource_id!r} does not match the template for {resource_type!r}")
        return self.remap_import_id(resource_type, endpoint, result.values)
