"""
Lookup tables: resource ID templates per azurerm resource type and the rules
used to skip children during a recursive crawl.

The built-in tables are combined with user additions once, by
``build_import_config``, into an immutable ``ImportConfig`` that is passed to
the resolver, ignore engine and remapper.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tfimport.endpoints import EndpointTemplate, template
from tfimport.errors import ConfigError, TemplateError

_RG = "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"

VM_API_VERSION = "2020-06-01"
VM_TEMPLATE = template(_RG + "/providers/Microsoft.Compute/virtualMachines/{vmName}", VM_API_VERSION)

WINDOWS_VM_TYPE = "azurerm_windows_virtual_machine"
LINUX_VM_TYPE = "azurerm_linux_virtual_machine"

# OS type reported by the VM probe -> resource type
VM_OS_TYPES = {
    "Windows": WINDOWS_VM_TYPE,
    "Linux": LINUX_VM_TYPE,
}

RESOURCE_TYPES: Dict[str, str] = {
    "azurerm_resource_group": _RG,

    # App Service
    "azurerm_app_service_plan": _RG + "/providers/Microsoft.Web/serverfarms/{farmName}",
    "azurerm_app_service": _RG + "/providers/Microsoft.Web/sites/{siteName}",

    # Storage
    "azurerm_storage_account": _RG + "/providers/Microsoft.Storage/storageAccounts/{accountName}",
    # TODO: use azurerm_storage_data_lake_gen2_filesystem when the account has isHnsEnabled set
    "azurerm_storage_container": (
        _RG + "/providers/Microsoft.Storage/storageAccounts/{accountName}"
        "/blobServices/default/containers/{containerName}"
    ),

    # SQL
    "azurerm_mssql_server": _RG + "/providers/Microsoft.Sql/servers/{serverName}",
    "azurerm_mssql_database": _RG + "/providers/Microsoft.Sql/servers/{serverName}/databases/{databaseName}",

    # Networking
    "azurerm_private_endpoint": _RG + "/providers/Microsoft.Network/privateEndpoints/{endpointName}",
    "azurerm_network_interface": _RG + "/providers/Microsoft.Network/networkInterfaces/{networkInterfaceName}",
    "azurerm_network_security_group": (
        _RG + "/providers/Microsoft.Network/networkSecurityGroups/{networkSecurityGroupName}"
    ),
    "azurerm_network_security_rule": (
        _RG + "/providers/Microsoft.Network/networkSecurityGroups/{networkSecurityGroupName}"
        "/securityRules/{securityRuleName}"
    ),
    "azurerm_private_dns_zone": _RG + "/providers/Microsoft.Network/privateDnsZones/{privateZoneName}",
    "azurerm_private_dns_zone_virtual_network_link": (
        _RG + "/providers/Microsoft.Network/privateDnsZones/{privateZoneName}"
        "/virtualNetworkLinks/{virtualNetworkLinkName}"
    ),
    "azurerm_public_ip": _RG + "/providers/Microsoft.Network/publicIPAddresses/{publicIpAddressName}",
    "azurerm_virtual_network_gateway": (
        _RG + "/providers/Microsoft.Network/virtualNetworkGateways/{virtualNetworkGatewayName}"
    ),
    "azurerm_virtual_network": _RG + "/providers/Microsoft.Network/virtualNetworks/{virtualNetworkName}",
    "azurerm_subnet": (
        _RG + "/providers/Microsoft.Network/virtualNetworks/{virtualNetworkName}/subnets/{subnetName}"
    ),

    # Key Vault
    "azurerm_key_vault": _RG + "/providers/Microsoft.KeyVault/vaults/{vaultName}",

    # Virtual machines (the VMs themselves are resolved by the OS type probe)
    "azurerm_virtual_machine_extension": (
        _RG + "/providers/Microsoft.Compute/virtualMachines/{vmName}/extensions/{vmExtensionName}"
    ),
    "azurerm_managed_disk": _RG + "/providers/Microsoft.Compute/disks/{diskName}",
}

# Pseudo-resources surfaced by the tree that can never be imported
IGNORE_SUFFIXES: Tuple[str, ...] = (
    "/<diagsettings>",
    "/<activitylog>",
    "/providers/Microsoft.Resources/deployments",
    "/providers/microsoft.Insights/metrics",
    "/providers/microsoft.insights/metricdefinitions",
)

# Child templates to skip, keyed on the resource type of the governing ancestor
IGNORE_TEMPLATES: Dict[str, List[str]] = {
    "azurerm_app_service": [
        _RG + "/providers/Microsoft.Web/sites/{siteName}/instances",
        _RG + "/providers/Microsoft.Web/sites/{siteName}/processes",
    ],
    "azurerm_storage_container": [
        _RG + "/providers/Microsoft.Storage/storageAccounts/{accountName}"
        "/blobServices/default/containers/{containerName}/{path}",
    ],
    "azurerm_mssql_database": [
        _RG + "/providers/Microsoft.Sql/servers/{serverName}/databases/{databaseName}/{placeholder}",
    ],
}


@dataclass(frozen=True)
class VmProbeRule:
    template: EndpointTemplate
    os_types: Mapping[str, str]
    # JSON path of the OS type in the probe response
    os_type_path: Tuple[str, ...] = ("properties", "storageProfile", "osDisk", "osType")


@dataclass(frozen=True)
class ImportConfig:
    resource_types: Mapping[str, EndpointTemplate]
    vm_probe: VmProbeRule
    ignore_suffixes: Tuple[str, ...] = ()
    ignore_templates: Mapping[str, Tuple[EndpointTemplate, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def template_for(self, resource_type: str) -> Optional[EndpointTemplate]:
        """Template used to match and rebuild IDs of ``resource_type``."""
        found = self.resource_types.get(resource_type)
        if found is None and resource_type in self.vm_probe.os_types.values():
            return self.vm_probe.template
        return found

    @property
    def supported_types(self) -> List[str]:
        return sorted(set(self.resource_types) | set(self.vm_probe.os_types.values()))


def _templates(paths: Iterable[str], where: str) -> Tuple[EndpointTemplate, ...]:
    try:
        return tuple(template(p) for p in paths)
    except TemplateError as exc:
        raise ConfigError(f"Invalid template in {where}: {exc}") from exc


def build_import_config(
    extra_types: Optional[Mapping[str, str]] = None,
    extra_ignore: Optional[Mapping[str, Iterable[str]]] = None,
) -> ImportConfig:
    """Combine the built-in tables with user additions into an ImportConfig."""
    types: Dict[str, EndpointTemplate] = {}
    for name, path in {**RESOURCE_TYPES, **(extra_types or {})}.items():
        if name in VM_OS_TYPES.values():
            raise ConfigError(f"{name} is resolved by the VM probe and cannot be remapped")
        (types[name],) = _templates([path], f"resource_types.{name}")

    ignore: Dict[str, Tuple[EndpointTemplate, ...]] = {
        name: _templates(paths, f"ignore rules for {name}") for name, paths in IGNORE_TEMPLATES.items()
    }
    for name, paths in (extra_ignore or {}).items():
        ignore[name] = ignore.get(name, ()) + _templates(paths, f"ignore_rules.{name}")

    return ImportConfig(
        resource_types=MappingProxyType(types),
        vm_probe=VmProbeRule(VM_TEMPLATE, MappingProxyType(dict(VM_OS_TYPES))),
        ignore_suffixes=IGNORE_SUFFIXES,
        ignore_templates=MappingProxyType(ignore),
    )
